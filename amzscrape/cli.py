"""Command-line interface for the scraper and catalog."""

import argparse
import json
import logging
import sys
from typing import List, Optional

__all__ = ["main", "parse_args", "show_stats"]

from amzscrape.config import DB_PATH, DOWNLOADS_DIR, EXPORT_DIR
from amzscrape.db import (
    CatalogError,
    add_product,
    clear_products,
    delete_product,
    get_brands,
    get_categories,
    get_product_count,
    init_db,
    list_products,
    mark_image_downloaded,
)
from amzscrape.export_utils import (
    catalog_export_filename,
    export_catalog_json,
    export_db_to_csv,
    write_json_export,
)
from amzscrape.extractor import ExtractionError
from amzscrape.images import download_product_images
from amzscrape.logging_config import setup_logging
from amzscrape.scraper import scrape_product
from amzscrape.url_validation import URLValidationError, validate_product_url


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Amazon product scraper with a local SQLite catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Extract a product and print it as JSON
  python -m amzscrape.cli https://www.amazon.in/dp/B0ABCDEF12 --json

  # Extract, save to the catalog and download its images
  python -m amzscrape.cli https://www.amazon.in/dp/B0ABCDEF12 --save --download-images

  # List saved products matching a search term
  python -m amzscrape.cli --list --search wireless

  # Export the catalog
  python -m amzscrape.cli --export-json data/exports/catalog.json
  python -m amzscrape.cli --export-csv data/exports/catalog.csv
        """,
    )

    parser.add_argument("url", nargs="?", help="Amazon product URL to extract")
    parser.add_argument("--save", action="store_true", help="Save the extracted product to the catalog")
    parser.add_argument(
        "--download-images",
        action="store_true",
        help=f"Download product images (to --downloads-dir, default: {DOWNLOADS_DIR})",
    )
    parser.add_argument("--downloads-dir", default=DOWNLOADS_DIR, help="Image download directory")
    parser.add_argument("--json", action="store_true", help="Print the extracted product as JSON")

    # Catalog
    parser.add_argument("--db", default=DB_PATH, help=f"SQLite database path (default: {DB_PATH})")
    parser.add_argument("--list", action="store_true", help="List saved products")
    parser.add_argument("--search", help="Filter --list by a search term")
    parser.add_argument("--brand", help="Filter --list by brand")
    parser.add_argument("--category", help="Filter --list by category")
    parser.add_argument("--delete", type=int, metavar="ID", help="Delete a saved product")
    parser.add_argument("--clear", action="store_true", help="Delete all saved products")

    # Export
    parser.add_argument(
        "--export-json",
        metavar="PATH",
        nargs="?",
        const="",
        help=f"Export the catalog to JSON (default file in {EXPORT_DIR})",
    )
    parser.add_argument("--export-csv", metavar="PATH", help="Export the catalog to CSV")

    parser.add_argument("--stats", action="store_true", help="Show catalog statistics and exit")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    return parser.parse_args(argv)


def show_stats(db_path: str) -> None:
    """Display catalog statistics."""
    init_db(db_path)

    print(f"\n{'='*50}")
    print(f"Catalog: {db_path}")
    print(f"{'='*50}")
    print(f"\nTotal products: {get_product_count(db_path)}")

    brands = get_brands(db_path)
    print(f"\nBrands ({len(brands)}):")
    for brand in brands:
        print(f"  {brand}: {len(list_products(db_path, brand=brand))}")

    categories = get_categories(db_path)
    print(f"\nCategories ({len(categories)}):")
    for category in categories:
        print(f"  {category}")
    print()


def _print_listing(db_path: str, search: Optional[str], brand: Optional[str], category: Optional[str]) -> None:
    products = list_products(db_path, search=search, brand=brand, category=category)
    if not products:
        print("No products found.")
        return
    for p in products:
        price = p.offer_price or "-"
        rating = f"{p.rating}★" if p.rating else "-"
        print(f"  [{p.id}] {p.title[:60]}  {p.brand or '-'}  {price}  {rating}")
    print(f"\n{len(products)} product(s)")


def _scrape(args: argparse.Namespace) -> int:
    try:
        url = validate_product_url(args.url)
    except URLValidationError as e:
        print(f"Invalid product URL: {e}", file=sys.stderr)
        return 2

    try:
        record = scrape_product(url)
    except ExtractionError as e:
        print(str(e), file=sys.stderr)
        return 1

    if args.save:
        init_db(args.db)
        try:
            add_product(args.db, record)
            print(f"Saved product {record.id}: {record.title}")
        except CatalogError as e:
            print(f"Not saved: {e}", file=sys.stderr)

    if args.download_images and record.images:
        results = download_product_images(record, args.downloads_dir)
        for index, result in enumerate(results):
            if result.success and record.id is not None:
                mark_image_downloaded(args.db, record.id, index)
            status = f"saved {result.filename}" if result.success else f"failed ({result.error})"
            print(f"  image {result.url}: {status}")

    if args.json or not args.save:
        print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    args = parse_args(argv)
    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)

    if args.stats:
        show_stats(args.db)
        return 0

    if args.delete is not None:
        init_db(args.db)
        if delete_product(args.db, args.delete):
            print(f"Deleted product {args.delete}")
            return 0
        print(f"Product {args.delete} not found", file=sys.stderr)
        return 1

    if args.clear:
        init_db(args.db)
        print(f"Removed {clear_products(args.db)} products")
        return 0

    if args.export_json is not None:
        init_db(args.db)
        products = list_products(args.db)
        if not products:
            print("No products to export.")
            return 0
        path = args.export_json or f"{EXPORT_DIR}/{catalog_export_filename()}"
        write_json_export(export_catalog_json(products), path)
        print(f"Exported {len(products)} products to {path}")
        return 0

    if args.export_csv:
        init_db(args.db)
        export_db_to_csv(args.db, args.export_csv)
        return 0

    if args.list:
        init_db(args.db)
        _print_listing(args.db, args.search, args.brand, args.category)
        return 0

    if args.url:
        return _scrape(args)

    print("Nothing to do. Pass a product URL or one of --list/--stats/--export-json/--export-csv.")
    return 2


if __name__ == "__main__":
    sys.exit(main())
