"""Configuration and constants for the scraper."""

from pathlib import Path
from typing import Dict, List, Tuple

__all__ = [
    "USER_AGENTS",
    "REQUEST_HEADERS",
    "REQUEST_TIMEOUT",
    "MAX_REDIRECTS",
    "DB_PATH",
    "DOWNLOADS_DIR",
    "EXPORT_DIR",
    "SITE_MARKER",
    "CURRENCY_SYMBOLS",
    "HIGH_RES_IMAGE_TOKEN",
    "MAX_COLORS",
    "MAX_IMAGES",
    "MAX_CATEGORIES",
    "MAX_TAGS",
    "HIGH_RATING_THRESHOLD",
    "DEAL_THRESHOLDS",
    "KEYWORD_TAGS",
    "BULLET_MARKER",
]

_PROJECT_ROOT = Path(__file__).parent.parent

# Rotated per request; see fetcher.random_user_agent()
USER_AGENTS: List[str] = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:89.0) Gecko/20100101 Firefox/89.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/14.1.1 Safari/605.1.15",
]

# Browser-like headers sent with every page request (User-Agent added per request)
REQUEST_HEADERS: Dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "DNT": "1",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
}

# Request timeout (seconds)
REQUEST_TIMEOUT = 30
MAX_REDIRECTS = 5

# Storage paths
DB_PATH = str(_PROJECT_ROOT / "data" / "catalog.db")
DOWNLOADS_DIR = str(_PROJECT_ROOT / "downloads")
EXPORT_DIR = str(_PROJECT_ROOT / "data" / "exports")


# =============================================================================
# Extraction constants
# =============================================================================

# Image URLs and breadcrumb texts are checked against this marker
SITE_MARKER = "amazon"

# Glyphs accepted as the leading character of a price text
CURRENCY_SYMBOLS = "₹$€£¥"

# Replacement size token for Amazon image URLs
HIGH_RES_IMAGE_TOKEN = "._AC_SX500_"

# List caps
MAX_COLORS = 10
MAX_IMAGES = 6
MAX_CATEGORIES = 5
MAX_TAGS = 8

# Tag thresholds
HIGH_RATING_THRESHOLD = 4.0

# Ordered (minimum discount %, tag); first threshold met wins
DEAL_THRESHOLDS: List[Tuple[int, str]] = [
    (50, "Great Deal"),
    (20, "Good Deal"),
]

# Lower-cased title keyword -> tag, checked in this order
KEYWORD_TAGS: Dict[str, str] = {
    "wireless": "Wireless",
    "bluetooth": "Bluetooth",
    "smart": "Smart Device",
    "premium": "Premium",
    "professional": "Professional",
    "portable": "Portable",
    "waterproof": "Waterproof",
    "rechargeable": "Rechargeable",
}

BULLET_MARKER = "•"
