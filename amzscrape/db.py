"""SQLite-backed product catalog."""

import json
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, List, Optional

from amzscrape.config import DB_PATH
from amzscrape.logging_config import get_logger, log_scrape_event
from amzscrape.models import ProductRecord, utc_now_iso

__all__ = [
    "CatalogError",
    "get_connection",
    "init_db",
    "add_product",
    "update_product",
    "get_product",
    "delete_product",
    "clear_products",
    "list_products",
    "get_brands",
    "get_categories",
    "get_product_count",
    "mark_image_downloaded",
]

logger = get_logger("db")

# Scalar record attributes stored as plain TEXT columns
SCALAR_COLUMNS = (
    "title",
    "brand",
    "model",
    "asin",
    "original_price",
    "offer_price",
    "offer_percentage",
    "amount_saved",
    "rating",
    "rating_count",
    "about_item",
    "technical_data",
    "url",
    "extracted_at",
    "updated_at",
)

# List attributes stored as JSON TEXT columns
JSON_COLUMNS = ("colors", "images", "categories", "tags")


class CatalogError(ValueError):
    """Raised when a record cannot be stored."""


@contextmanager
def get_connection(db_path: str = DB_PATH) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: str = DB_PATH) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS products (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                title TEXT NOT NULL,
                brand TEXT DEFAULT '',
                model TEXT DEFAULT '',
                asin TEXT DEFAULT '',
                original_price TEXT DEFAULT '',
                offer_price TEXT DEFAULT '',
                offer_percentage TEXT DEFAULT '',
                amount_saved TEXT DEFAULT '',
                rating TEXT DEFAULT '',
                rating_count TEXT DEFAULT '',
                about_item TEXT DEFAULT '',
                technical_data TEXT DEFAULT '',
                colors_json TEXT DEFAULT '[]',
                images_json TEXT DEFAULT '[]',
                categories_json TEXT DEFAULT '[]',
                tags_json TEXT DEFAULT '[]',
                url TEXT DEFAULT '',
                extracted_at TEXT DEFAULT '',
                updated_at TEXT DEFAULT ''
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_products_brand ON products(brand)")
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_products_asin ON products(asin)")
        conn.commit()


def _row_to_record(row: sqlite3.Row) -> ProductRecord:
    data: Dict[str, Any] = {"id": row["id"]}
    record = ProductRecord.from_dict(data)
    for column in SCALAR_COLUMNS:
        setattr(record, column, row[column] or "")

    wire: Dict[str, Any] = {}
    for column in JSON_COLUMNS:
        raw = row[f"{column}_json"]
        try:
            wire[column] = json.loads(raw) if raw else []
        except json.JSONDecodeError:
            logger.warning(f"Corrupt {column} JSON for product {row['id']}")
            wire[column] = []
    lists = ProductRecord.from_dict(wire)
    record.colors = lists.colors
    record.images = lists.images
    record.categories = lists.categories
    record.tags = lists.tags
    return record


def _column_values(record: ProductRecord) -> Dict[str, Any]:
    values: Dict[str, Any] = {column: getattr(record, column) or "" for column in SCALAR_COLUMNS}
    wire = record.to_dict()
    for column in JSON_COLUMNS:
        values[f"{column}_json"] = json.dumps(wire[column], ensure_ascii=False)
    return values


def _require_title(record: ProductRecord) -> None:
    if not record.title or not record.title.strip():
        raise CatalogError("Product title is required")


def add_product(db_path: str, record: ProductRecord) -> int:
    """Insert a record and return its new ID (also set on `record.id`).

    Raises:
        CatalogError: If the record has no title
    """
    _require_title(record)
    values = _column_values(record)
    columns = list(values.keys())

    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(
            f"INSERT INTO products ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})",
            [values[c] for c in columns],
        )
        conn.commit()
        product_id = int(cursor.lastrowid)

    record.id = product_id
    log_scrape_event("catalog_add", {"product_id": product_id, "asin": record.asin})
    return product_id


def get_product(db_path: str, product_id: int) -> Optional[ProductRecord]:
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT * FROM products WHERE id = ?", (product_id,))
        row = cursor.fetchone()
        return _row_to_record(row) if row else None


def update_product(
    db_path: str,
    product_id: int,
    changes: Dict[str, Any],
    updated_at: Optional[str] = None,
) -> Optional[ProductRecord]:
    """Merge wire-format `changes` into a stored record.

    Returns the updated record, or None if no product has that ID.

    Raises:
        CatalogError: If the merge would leave the record without a title
    """
    existing = get_product(db_path, product_id)
    if existing is None:
        return None

    merged = existing.to_dict()
    merged.update({k: v for k, v in changes.items() if k != "id"})
    record = ProductRecord.from_dict(merged)
    record.id = product_id
    _require_title(record)

    if updated_at is None:
        updated_at = utc_now_iso()
    record.updated_at = updated_at

    values = _column_values(record)
    set_clause = ", ".join(f"{column} = ?" for column in values)

    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute(
            f"UPDATE products SET {set_clause} WHERE id = ?",
            list(values.values()) + [product_id],
        )
        conn.commit()

    log_scrape_event("catalog_update", {"product_id": product_id})
    return record


def delete_product(db_path: str, product_id: int) -> bool:
    """Delete one product. Returns False if it did not exist."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("DELETE FROM products WHERE id = ?", (product_id,))
        conn.commit()
        deleted = cursor.rowcount > 0

    if deleted:
        log_scrape_event("catalog_delete", {"product_id": product_id})
    return deleted


def clear_products(db_path: str) -> int:
    """Delete every product, returning how many were removed."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) AS count FROM products")
        removed = int(cursor.fetchone()["count"])
        cursor.execute("DELETE FROM products")
        conn.commit()

    log_scrape_event("catalog_clear", {"removed": removed})
    return removed


def _matches_search(record: ProductRecord, search: str) -> bool:
    haystack = " ".join(
        [record.title, record.brand, record.model, record.asin]
        + record.categories
        + record.tags
    ).lower()
    return search.lower() in haystack


def list_products(
    db_path: str = DB_PATH,
    search: Optional[str] = None,
    brand: Optional[str] = None,
    category: Optional[str] = None,
) -> List[ProductRecord]:
    """List products in insertion order, optionally filtered.

    Args:
        search: Case-insensitive substring over title, brand, model, ASIN,
            categories and tags
        brand: Exact brand match
        category: Product must list this category
    """
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        if brand:
            cursor.execute("SELECT * FROM products WHERE brand = ? ORDER BY id", (brand,))
        else:
            cursor.execute("SELECT * FROM products ORDER BY id")
        records = [_row_to_record(row) for row in cursor.fetchall()]

    if search:
        records = [r for r in records if _matches_search(r, search)]
    if category:
        records = [r for r in records if category in r.categories]
    return records


def get_brands(db_path: str = DB_PATH) -> List[str]:
    """Sorted distinct non-empty brands."""
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT DISTINCT brand FROM products WHERE brand != '' ORDER BY brand")
        return [row["brand"] for row in cursor.fetchall()]


def get_categories(db_path: str = DB_PATH) -> List[str]:
    """Sorted distinct categories across all products."""
    categories = set()
    for record in list_products(db_path):
        categories.update(record.categories)
    return sorted(categories)


def get_product_count(db_path: str = DB_PATH) -> int:
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) AS count FROM products")
        return int(cursor.fetchone()["count"])


def mark_image_downloaded(db_path: str, product_id: int, index: int) -> bool:
    """Flag one image of a stored product as downloaded.

    Returns False when the product or image index does not exist.
    """
    record = get_product(db_path, product_id)
    if record is None or not 0 <= index < len(record.images):
        return False

    record.images[index].downloaded = True
    images_json = json.dumps([image.to_dict() for image in record.images], ensure_ascii=False)
    with get_connection(db_path) as conn:
        cursor = conn.cursor()
        cursor.execute("UPDATE products SET images_json = ? WHERE id = ?", (images_json, product_id))
        conn.commit()
    return True
