"""JSON and CSV export of catalog products."""

import csv
import json
import os
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from amzscrape.models import ProductRecord

__all__ = [
    "catalog_export_filename",
    "product_export_filename",
    "export_catalog_json",
    "export_product_json",
    "write_json_export",
    "product_to_row",
    "export_db_to_csv",
    "CSV_FIELDS",
]

CSV_FIELDS = [
    "id", "asin", "title", "brand", "model",
    "originalPrice", "offerPrice", "offerPercentage", "amountSaved",
    "rating", "ratingCount", "colors", "categories", "tags", "images",
    "aboutItem", "technicalData", "url", "extractedAt", "updatedAt",
]

LIST_SEPARATOR = "; "


def catalog_export_filename(on: Optional[date] = None) -> str:
    """File name for a full-catalog export, e.g. amazon-products-2024-05-01.json."""
    return f"amazon-products-{(on or date.today()).isoformat()}.json"


def product_export_filename(record: ProductRecord) -> str:
    """File name for a single product, keyed by ASIN or catalog ID."""
    return f"product-{record.asin or record.id}.json"


def export_catalog_json(products: Iterable[ProductRecord]) -> str:
    return json.dumps([p.to_dict() for p in products], indent=2, ensure_ascii=False)


def export_product_json(record: ProductRecord) -> str:
    return json.dumps(record.to_dict(), indent=2, ensure_ascii=False)


def write_json_export(payload: str, path: str) -> str:
    """Write an export payload to disk, creating parent directories."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(payload)
    return path


def product_to_row(record: ProductRecord) -> Dict[str, Any]:
    """Flatten a record into a CSV-ready row.

    List fields are joined with '; ' and images are reduced to their URLs.
    """
    row = record.to_dict()
    for key in ("colors", "categories", "tags"):
        row[key] = LIST_SEPARATOR.join(row[key])
    row["images"] = LIST_SEPARATOR.join(image["url"] for image in row["images"])
    row.setdefault("id", "")
    return row


def export_db_to_csv(db_path: str, csv_path: str) -> int:
    """Export every catalog product to CSV.

    Returns:
        Number of products exported
    """
    from amzscrape.db import list_products

    products = list_products(db_path)
    if not products:
        print("No products to export.")
        return 0

    rows: List[Dict[str, Any]] = [product_to_row(p) for p in products]

    os.makedirs(os.path.dirname(csv_path) or ".", exist_ok=True)
    with open(csv_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)

    print(f"Exported {len(rows)} products to {csv_path}")
    return len(rows)
