"""Shared fixtures for the web test suite."""

import pytest

from catalog_web.app import app


@pytest.fixture
def client(tmp_path, monkeypatch):
    """Flask test client backed by a throwaway catalog, auth disabled."""
    monkeypatch.delenv("DEMO_USER", raising=False)
    monkeypatch.delenv("DEMO_PASS", raising=False)
    monkeypatch.setitem(app.config, "CATALOG_DB_PATH", str(tmp_path / "catalog.db"))
    monkeypatch.setitem(app.config, "DOWNLOADS_DIR", str(tmp_path / "downloads"))
    app.config["TESTING"] = True
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def product_payload():
    return {
        "title": "Anker Soundcore 2 Portable Bluetooth Speaker",
        "brand": "Anker",
        "asin": "B01MTB55WH",
        "offerPrice": "$39.99",
        "originalPrice": "$59.99",
        "rating": "4.6",
        "colors": ["Black", "Blue"],
        "categories": ["Electronics", "Speakers"],
        "tags": ["Anker", "Portable"],
        "images": [
            {"url": "https://m.media-amazon.com/images/I/a._AC_SX500_.jpg", "alt": "Front"},
        ],
        "url": "https://www.amazon.com/dp/B01MTB55WH",
    }
