"""Amazon product page scraper and local catalog."""

__version__ = "0.1.0"

# Re-export main components for convenient imports
from amzscrape.config import DB_PATH, DOWNLOADS_DIR
from amzscrape.db import (
    CatalogError,
    add_product,
    delete_product,
    get_product,
    init_db,
    list_products,
    update_product,
)
from amzscrape.extractor import (
    ExtractionError,
    extract_from_html,
    extract_product,
    generate_tags,
    parse_document,
)
from amzscrape.fetcher import FetchError, fetch_html
from amzscrape.images import download_image, download_product_images
from amzscrape.models import ProductImage, ProductRecord
from amzscrape.scraper import scrape_product

__all__ = [
    # Version
    "__version__",
    # Config
    "DB_PATH",
    "DOWNLOADS_DIR",
    # Models
    "ProductImage",
    "ProductRecord",
    # Extraction
    "ExtractionError",
    "FetchError",
    "parse_document",
    "extract_product",
    "extract_from_html",
    "generate_tags",
    "fetch_html",
    "scrape_product",
    # Catalog
    "CatalogError",
    "init_db",
    "add_product",
    "update_product",
    "get_product",
    "delete_product",
    "list_products",
    # Images
    "download_image",
    "download_product_images",
]
