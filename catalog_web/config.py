"""Centralized configuration for the catalog web app."""

import os
from pathlib import Path

from dotenv import load_dotenv

from amzscrape.config import DB_PATH, DOWNLOADS_DIR

_PROJECT_ROOT = Path(__file__).parent.parent

# Load environment variables from .env file (explicitly specify path)
load_dotenv(dotenv_path=_PROJECT_ROOT / ".env")

# Storage (env overrides for deployments and tests)
CATALOG_DB_PATH = os.getenv("CATALOG_DB_PATH", DB_PATH)
IMAGE_DOWNLOADS_DIR = os.getenv("DOWNLOADS_DIR", DOWNLOADS_DIR)

# Flask app settings (allow env overrides; default debug off for safety)
# Hosting platforms set PORT dynamically; fall back to FLASK_PORT or 3000 for local.
FLASK_HOST = os.getenv("FLASK_HOST", "0.0.0.0")
FLASK_PORT = int(os.getenv("FLASK_PORT", os.getenv("PORT", "3000")))
FLASK_DEBUG = os.getenv("FLASK_DEBUG", "False").lower() == "true"

# Maximum accepted request body (JSON product payloads)
MAX_CONTENT_LENGTH = 10 * 1024 * 1024
