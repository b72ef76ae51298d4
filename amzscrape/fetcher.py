"""HTTP fetching of product pages."""

import random
from typing import Optional

import requests  # type: ignore[import-untyped]

from amzscrape.config import MAX_REDIRECTS, REQUEST_HEADERS, REQUEST_TIMEOUT, USER_AGENTS
from amzscrape.extractor import ExtractionError
from amzscrape.logging_config import get_logger

__all__ = ["FetchError", "create_session", "random_user_agent", "fetch_html"]

logger = get_logger("fetcher")


class FetchError(ExtractionError):
    """Raised when a page could not be fetched, whatever the cause."""


def random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def create_session() -> requests.Session:
    """Create a requests Session with browser-like headers and a redirect cap."""
    session = requests.Session()
    session.headers.update(REQUEST_HEADERS)
    session.max_redirects = MAX_REDIRECTS
    return session


def fetch_html(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = REQUEST_TIMEOUT,
) -> str:
    """GET a page and return its HTML.

    One attempt only; there is no retry or backoff.

    Raises:
        FetchError: On connection errors, timeouts, too many redirects or
            non-2xx responses. The underlying requests exception is chained.
    """
    sess = session or create_session()
    headers = {"User-Agent": random_user_agent()}

    try:
        resp = sess.get(url, headers=headers, timeout=timeout)
        resp.raise_for_status()
    except requests.exceptions.HTTPError as e:
        status_code = e.response.status_code if e.response is not None else "unknown"
        logger.error(f"HTTP error fetching {url}: {e}")
        raise FetchError(f"HTTP Error {status_code} fetching {url}") from e
    except requests.exceptions.Timeout as e:
        logger.error(f"Timeout fetching {url}: {e}")
        raise FetchError(f"Timeout fetching {url}") from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Request error fetching {url}: {e}")
        raise FetchError(f"Failed to fetch {url}: {e}") from e
    finally:
        if session is None:
            sess.close()

    return str(resp.text)
