"""Tests for page fetching and the scrape flow."""

import re
from unittest.mock import MagicMock

import pytest
import requests

from amzscrape import scraper
from amzscrape.config import USER_AGENTS
from amzscrape.extractor import ExtractionError
from amzscrape.fetcher import FetchError, create_session, fetch_html
from amzscrape.models import utc_now_iso
from amzscrape.scraper import scrape_product


def _session_returning(html="", status=200):
    response = MagicMock()
    response.text = html
    response.status_code = status
    if status >= 400:
        error = requests.exceptions.HTTPError(f"{status} Client Error")
        error.response = response
        response.raise_for_status.side_effect = error
    session = MagicMock()
    session.get.return_value = response
    return session


class TestFetchHtml:
    def test_returns_body_with_rotated_user_agent(self):
        session = _session_returning("<html>ok</html>")
        assert fetch_html("https://www.amazon.com/dp/B08N5WRWNW", session=session) == "<html>ok</html>"

        _, kwargs = session.get.call_args
        assert kwargs["headers"]["User-Agent"] in USER_AGENTS
        assert kwargs["timeout"] == 30

    def test_http_error_reports_status(self):
        session = _session_returning(status=503)
        with pytest.raises(FetchError, match="HTTP Error 503"):
            fetch_html("https://www.amazon.com/dp/B08N5WRWNW", session=session)

    def test_timeout(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.Timeout("slow")
        with pytest.raises(FetchError, match="Timeout") as exc_info:
            fetch_html("https://www.amazon.com/dp/B08N5WRWNW", session=session)
        assert isinstance(exc_info.value.__cause__, requests.exceptions.Timeout)

    def test_connection_error_is_extraction_error(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(ExtractionError):
            fetch_html("https://www.amazon.com/dp/B08N5WRWNW", session=session)

    def test_single_attempt(self):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(FetchError):
            fetch_html("https://www.amazon.com/dp/B08N5WRWNW", session=session)
        assert session.get.call_count == 1

    def test_create_session(self):
        session = create_session()
        try:
            assert session.max_redirects == 5
            assert "Accept-Language" in session.headers
        finally:
            session.close()


class TestScrapeProduct:
    def test_stamps_url_and_time(self, product_html, product_url):
        session = _session_returning(product_html)
        record = scrape_product(product_url, session=session)

        assert record.url == product_url
        assert record.asin == "B0863TXGM3"
        assert record.id is None
        assert re.match(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$", record.extracted_at)

    def test_fetch_failure_wrapped(self, product_url):
        session = _session_returning(status=404)
        with pytest.raises(FetchError, match="^Failed to scrape product: HTTP Error 404"):
            scrape_product(product_url, session=session)

    def test_extraction_failure_wrapped(self, monkeypatch, product_url):
        monkeypatch.setattr(scraper, "fetch_html", lambda url, session=None: "<html></html>")

        def broken(html, url, on_event=None):
            raise ExtractionError("Failed to parse HTML document")

        monkeypatch.setattr(scraper, "extract_from_html", broken)
        with pytest.raises(ExtractionError, match="Failed to scrape product: Failed to parse"):
            scrape_product(product_url)

    def test_utc_now_iso_format(self):
        assert utc_now_iso().endswith("Z")
