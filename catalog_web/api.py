"""API endpoints for scraping and curating products.

The scrape endpoint returns an unsaved record; the client reviews it and
POSTs it to /api/products to store it in the catalog.
"""

import os
from datetime import datetime, timezone
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, current_app, jsonify, request

from amzscrape.db import (
    CatalogError,
    add_product,
    clear_products,
    delete_product,
    get_brands,
    get_categories,
    get_product,
    list_products,
    mark_image_downloaded,
    update_product,
)
from amzscrape.export_utils import (
    catalog_export_filename,
    export_catalog_json,
    export_product_json,
    product_export_filename,
)
from amzscrape.extractor import ExtractionError
from amzscrape.images import download_image
from amzscrape.logging_config import get_logger
from amzscrape.models import ProductRecord, utc_now_iso
from amzscrape.scraper import scrape_product
from amzscrape.url_validation import URLValidationError, is_amazon_url, validate_url

__all__ = ["api"]

logger = get_logger("web.api")

api = Blueprint("api", __name__, url_prefix="/api")

JsonResponse = Tuple[Response, int]


def _db_path() -> str:
    return current_app.config["CATALOG_DB_PATH"]


def _error(message: str, status: int, **extra: Any) -> JsonResponse:
    body: Dict[str, Any] = {"error": message}
    body.update(extra)
    return jsonify(body), status


def _attachment(payload: str, filename: str) -> Response:
    return Response(
        payload,
        mimetype="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------- SCRAPING ----------


@api.route("/scrape", methods=["POST"])
def scrape() -> JsonResponse:
    data = request.get_json(silent=True) or {}
    url = (data.get("url") or "").strip()

    if not url:
        return _error("URL is required", 400)
    if not is_amazon_url(url):
        return _error("Please provide a valid Amazon product URL", 400)
    try:
        url = validate_url(url)
    except URLValidationError as e:
        return _error(str(e), 400)

    logger.info(f"Received scrape request for: {url}")
    try:
        record = scrape_product(url)
    except ExtractionError as e:
        logger.error(f"Scrape API error: {e}")
        return _error(str(e) or "Failed to scrape product", 500, success=False)

    return jsonify({
        "success": True,
        "data": record.to_dict(),
        "scrapedAt": datetime.now(timezone.utc).isoformat(),
    }), 200


@api.route("/download-image", methods=["POST"])
def download_image_endpoint() -> Any:
    data = request.get_json(silent=True) or {}
    url = data.get("url")
    product_id = data.get("productId")
    index = data.get("index")

    if not url or product_id is None or index is None:
        return _error("Missing required parameters", 400)
    try:
        index = int(index)
    except (TypeError, ValueError):
        return _error("index must be an integer", 400)

    result = download_image(url, product_id, index, current_app.config["DOWNLOADS_DIR"])
    if not result.success or not result.filepath:
        return _error(result.error or "Failed to download image", 500)

    # Serve the bytes and drop the temporary file
    try:
        with open(result.filepath, "rb") as f:
            content = f.read()
    finally:
        os.remove(result.filepath)

    try:
        mark_image_downloaded(_db_path(), int(product_id), index)
    except (TypeError, ValueError):
        pass  # product not stored in the catalog

    return Response(
        content,
        mimetype="image/jpeg",
        headers={"Content-Disposition": f'attachment; filename="{result.filename}"'},
    )


# ---------- CATALOG ----------


@api.route("/products", methods=["GET"])
def products_index() -> JsonResponse:
    products = list_products(
        _db_path(),
        search=request.args.get("search") or None,
        brand=request.args.get("brand") or None,
        category=request.args.get("category") or None,
    )
    return jsonify({
        "products": [p.to_dict() for p in products],
        "count": len(products),
    }), 200


@api.route("/products", methods=["POST"])
def products_create() -> JsonResponse:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _error("Product JSON body is required", 400)

    record = ProductRecord.from_dict(data)
    record.id = None
    if not record.extracted_at:
        record.extracted_at = utc_now_iso()
    record.updated_at = utc_now_iso()

    try:
        add_product(_db_path(), record)
    except CatalogError as e:
        return _error(str(e), 400)
    return jsonify(record.to_dict()), 201


@api.route("/products", methods=["DELETE"])
def products_clear() -> JsonResponse:
    removed = clear_products(_db_path())
    return jsonify({"removed": removed}), 200


@api.route("/products/export", methods=["GET"])
def products_export() -> Any:
    products = list_products(_db_path())
    if not products:
        return _error("No products to export", 404)
    return _attachment(export_catalog_json(products), catalog_export_filename())


@api.route("/products/<int:product_id>", methods=["GET"])
def products_show(product_id: int) -> JsonResponse:
    record = get_product(_db_path(), product_id)
    if record is None:
        return _error("Product not found", 404)
    return jsonify(record.to_dict()), 200


@api.route("/products/<int:product_id>", methods=["PUT"])
def products_update(product_id: int) -> JsonResponse:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _error("Product JSON body is required", 400)

    try:
        record = update_product(_db_path(), product_id, data)
    except CatalogError as e:
        return _error(str(e), 400)
    if record is None:
        return _error("Product not found", 404)
    return jsonify(record.to_dict()), 200


@api.route("/products/<int:product_id>", methods=["DELETE"])
def products_delete(product_id: int) -> JsonResponse:
    if not delete_product(_db_path(), product_id):
        return _error("Product not found", 404)
    return jsonify({"deleted": product_id}), 200


@api.route("/products/<int:product_id>/export", methods=["GET"])
def products_export_one(product_id: int) -> Any:
    record = get_product(_db_path(), product_id)
    if record is None:
        return _error("Product not found", 404)
    return _attachment(export_product_json(record), product_export_filename(record))


@api.route("/filters", methods=["GET"])
def filters() -> JsonResponse:
    return jsonify({
        "brands": get_brands(_db_path()),
        "categories": get_categories(_db_path()),
    }), 200
