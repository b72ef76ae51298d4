"""Scrape flow: fetch a product page, extract it, stamp caller fields."""

from typing import Optional

import requests  # type: ignore[import-untyped]

from amzscrape.extractor import EventCallback, ExtractionError, extract_from_html
from amzscrape.fetcher import FetchError, fetch_html
from amzscrape.logging_config import get_logger, log_scrape_event
from amzscrape.models import ProductRecord, utc_now_iso
from amzscrape.url_validation import sanitize_url

__all__ = ["scrape_product"]

logger = get_logger("scraper")


def scrape_product(
    url: str,
    session: Optional[requests.Session] = None,
    on_event: Optional[EventCallback] = None,
) -> ProductRecord:
    """Fetch and extract a single product page.

    The returned record has `url` and `extracted_at` set; `id` stays None
    until the record is stored in the catalog.

    Raises:
        FetchError: If the page could not be fetched
        ExtractionError: If the page could not be parsed
    """
    url = sanitize_url(url)
    logger.info(f"Scraping product: {url}")

    try:
        html = fetch_html(url, session=session)
        record = extract_from_html(html, url, on_event=on_event)
    except FetchError as e:
        log_scrape_event("scrape_failed", {"url": url, "error": str(e)})
        raise FetchError(f"Failed to scrape product: {e}") from e
    except ExtractionError as e:
        log_scrape_event("scrape_failed", {"url": url, "error": str(e)})
        raise ExtractionError(f"Failed to scrape product: {e}") from e

    record.url = url
    record.extracted_at = utc_now_iso()

    logger.info(f"Successfully scraped product: {record.title or '(untitled)'}")
    log_scrape_event("scrape_complete", {
        "url": url,
        "asin": record.asin,
        "title": record.title,
        "images": len(record.images),
    })
    return record
