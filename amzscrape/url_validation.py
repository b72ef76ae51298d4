"""URL validation and sanitization utilities.

Product URLs must point at an Amazon storefront product page before any
request is made.
"""

import re
from typing import Optional
from urllib.parse import urlparse

__all__ = [
    "URLValidationError",
    "sanitize_url",
    "validate_url",
    "validate_product_url",
    "is_amazon_url",
    "is_valid_product_url",
    "extract_asin_from_url",
]


class URLValidationError(ValueError):
    """Raised when URL validation fails."""


# Dangerous URL schemes to reject
DANGEROUS_SCHEMES = {"javascript", "data", "vbscript", "file"}

# Product detail pages: /dp/<ASIN> or /gp/product/<ASIN>
PRODUCT_PATH_MARKERS = ("/dp/", "/gp/product/")

# A 10-character catalog ID isolated as one path segment
ASIN_PATH_RE = re.compile(r"/([A-Z0-9]{10})(?=/|$)")


def sanitize_url(url: str) -> str:
    """Strip whitespace and control characters from a URL."""
    if not url:
        return ""
    url = url.strip()
    url = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", url)
    return url.replace("%00", "")


def validate_url(url: str, require_https: bool = False) -> str:
    """Validate a URL for safety.

    Raises:
        URLValidationError: If the URL is empty, has a dangerous or
            non-HTTP scheme, or has no host.
    """
    if not url:
        raise URLValidationError("URL is empty")

    url = sanitize_url(url)

    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise URLValidationError(f"Failed to parse URL: {e}") from e

    scheme = parsed.scheme.lower()
    if scheme in DANGEROUS_SCHEMES:
        raise URLValidationError(f"Dangerous URL scheme: {scheme}")
    if require_https and scheme != "https":
        raise URLValidationError(f"URL must use HTTPS, got: {scheme}")
    if scheme not in ("http", "https"):
        raise URLValidationError(f"Invalid URL scheme: {scheme}")

    if not parsed.netloc:
        raise URLValidationError("URL has no domain")

    return url


def is_amazon_url(url: str) -> bool:
    """Loose check used by the HTTP layer: the URL mentions an Amazon host."""
    return bool(url) and "amazon." in url


def validate_product_url(url: str) -> str:
    """Validate an Amazon product page URL.

    Returns:
        The sanitized URL

    Raises:
        URLValidationError: If the URL is not an Amazon product page
    """
    url = validate_url(url)
    parsed = urlparse(url)

    host = parsed.hostname or ""
    if "amazon." not in host:
        raise URLValidationError(f"Not an Amazon URL: {url}")

    if not any(marker in parsed.path for marker in PRODUCT_PATH_MARKERS):
        raise URLValidationError(
            f"URL is not a product page: {url}\n"
            f"Expected a path containing /dp/<ASIN> or /gp/product/<ASIN>"
        )

    return url


def is_valid_product_url(url: str) -> bool:
    """Check a product URL without raising."""
    try:
        validate_product_url(url)
        return True
    except URLValidationError:
        return False


def extract_asin_from_url(url: str) -> Optional[str]:
    """Return the first 10-character uppercase-alphanumeric path segment, if any."""
    if not url:
        return None
    try:
        path = urlparse(url).path
    except ValueError:
        return None
    match = ASIN_PATH_RE.search(path)
    return match.group(1) if match else None
