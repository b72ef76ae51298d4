"""Flask web app exposing the scraper and the product catalog.

Routes:
    GET  /health                        liveness and uptime
    /api/...                            see catalog_web.api
"""

import base64
import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from amzscrape.db import init_db
from amzscrape.logging_config import get_logger

from .api import api
from .config import (
    CATALOG_DB_PATH,
    FLASK_DEBUG,
    FLASK_HOST,
    FLASK_PORT,
    IMAGE_DOWNLOADS_DIR,
    MAX_CONTENT_LENGTH,
)

logger = get_logger("web")

_STARTED_AT = time.monotonic()

app = Flask(__name__)
app.config.update(
    CATALOG_DB_PATH=CATALOG_DB_PATH,
    DOWNLOADS_DIR=IMAGE_DOWNLOADS_DIR,
    MAX_CONTENT_LENGTH=MAX_CONTENT_LENGTH,
)
app.register_blueprint(api)


# ---------- BASIC AUTH ----------


def _basic_auth_creds() -> Tuple[Optional[str], Optional[str]]:
    """Get credentials from environment."""
    return os.getenv("DEMO_USER"), os.getenv("DEMO_PASS")


def _unauthorized() -> Response:
    return Response(
        "Authentication required",
        401,
        {"WWW-Authenticate": 'Basic realm="Login Required"'},
    )


@app.before_request
def require_basic_auth() -> Optional[Response]:
    """
    Enforce HTTP Basic Auth for all routes except /health.
    Skips enforcement if credentials are not configured (DEMO_USER/DEMO_PASS unset).
    """
    if request.path == "/health":
        return None

    user, password = _basic_auth_creds()
    if not user or not password:
        return None  # auth disabled

    header = request.headers.get("Authorization", "")
    if not header.startswith("Basic "):
        return _unauthorized()

    try:
        decoded = base64.b64decode(header.split(" ", 1)[1]).decode("utf-8")
        username, passwd = decoded.split(":", 1)
    except (ValueError, UnicodeDecodeError):
        return _unauthorized()

    if username == user and passwd == password:
        return None
    return _unauthorized()


@app.before_request
def ensure_schema() -> None:
    init_db(app.config["CATALOG_DB_PATH"])


# ---------- ROUTES ----------


@app.route("/health", methods=["GET"])
def health() -> Response:
    return jsonify({
        "status": "OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
    })


# ---------- ERROR HANDLING ----------


@app.errorhandler(404)
def not_found(_error: Any) -> Tuple[Response, int]:
    return jsonify({"error": "Endpoint not found"}), 404


@app.errorhandler(Exception)
def unhandled_error(error: Exception) -> Tuple[Response, int]:
    if isinstance(error, HTTPException):
        body: Dict[str, Any] = {"error": error.name, "message": error.description}
        return jsonify(body), error.code or 500

    logger.exception("Unhandled error")
    return jsonify({
        "error": "Internal server error",
        "message": str(error) if app.debug else "Something went wrong",
    }), 500


if __name__ == "__main__":
    from amzscrape.logging_config import setup_logging

    setup_logging()
    logger.info(f"Amazon product scraper running on http://localhost:{FLASK_PORT}")
    logger.info(f"Downloads directory: {IMAGE_DOWNLOADS_DIR}")
    app.run(host=FLASK_HOST, port=FLASK_PORT, debug=FLASK_DEBUG)
