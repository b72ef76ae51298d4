"""Shared fixtures for the scraper test suite."""

import tempfile
from pathlib import Path

import pytest

from amzscrape.db import init_db
from amzscrape.models import ProductImage, ProductRecord

PRODUCT_URL = "https://www.amazon.in/Sony-WH-1000XM4/dp/B0863TXGM3/ref=sr_1_1"

PRODUCT_HTML = """
<html>
<head><title>Amazon.in: Sony WH-1000XM4</title></head>
<body>
<div id="wayfinding-breadcrumbs_container">
  <ul>
    <li><a href="/electronics">Electronics</a></li>
    <li><a href="/audio">Headphones, Earbuds &amp; Accessories</a></li>
    <li><a href="/basics">Amazon Basics</a></li>
    <li><a href="/audio">Headphones, Earbuds &amp; Accessories</a></li>
    <li><a href="/tv">TV</a></li>
  </ul>
</div>

<div id="imageBlock">
  <img id="landingImage" alt="Sony headphones"
       data-old-hires="https://m.media-amazon.com/images/I/41abc._SL1500_.jpg"
       src="https://m.media-amazon.com/images/I/41abc._SX300_.jpg">
</div>
<div id="altImages">
  <ul>
    <li><img alt="" src="https://m.media-amazon.com/images/I/41abc._SS40_.jpg"></li>
    <li><img alt="Side view" src="https://m.media-amazon.com/images/I/51def._SS40_.jpg"></li>
    <li><img src="https://m.media-amazon.com/images/G/01/sprite._CB1_.png"></li>
    <li><img src="https://images.example.com/other._SS40_.jpg"></li>
  </ul>
</div>

<span id="productTitle">
    Sony WH-1000XM4 Wireless Premium Noise Cancelling Headphones
</span>
<a id="bylineInfo" href="/stores/Sony/page/1">Visit the Sony Store</a>
<div class="po-brand"><span class="po-break-word">Sony</span></div>
<div class="po-model_name"><span class="po-break-word">WH-1000XM4</span></div>

<div id="averageCustomerReviews">
  <span id="acrPopover"><i class="a-icon a-icon-star"><span class="a-icon-alt">4.5 out of 5 stars</span></i></span>
  <a href="#customerReviews"><span id="acrCustomerReviewText">1,234 ratings</span></a>
</div>

<div id="corePrice">
  <span class="a-price a-text-price"><span class="a-offscreen">₹29,990.00</span></span>
  <span class="a-price a-text-normal"><span class="a-offscreen">₹19,990.00</span></span>
  <span class="savingsPercentage">-33%</span>
</div>

<div id="variation_color_name">
  <ul>
    <li title="Black"><img alt="Black" src="https://m.media-amazon.com/images/I/black._SS36_.jpg"></li>
    <li title=""><img alt="Silver" src="https://m.media-amazon.com/images/I/silver._SS36_.jpg"></li>
    <li><span>Midnight Blue</span></li>
    <li title="X"></li>
  </ul>
</div>
<span class="a-button-thumbnail"><img alt="Black"></span>

<div id="feature-bullets">
  <ul>
    <li><span>Industry-leading noise cancellation with Dual Noise Sensor technology</span></li>
    <li><span>Short</span></li>
    <li><span>Up to 30-hour battery life with quick charging</span></li>
    <li><span>See more product details</span></li>
  </ul>
</div>

<table id="productDetails_techSpec_section_1">
  <tbody>
    <tr><th>Model Name</th><td>WH-1000XM4</td></tr>
    <tr><th>Connectivity</th><td>Wireless</td></tr>
    <tr><th>Item model number</th><td>WH1000XM4/B</td></tr>
    <tr><th>Warranty</th><td>N/A</td></tr>
  </tbody>
</table>

<div data-asin="B0863TXGM3"></div>
</body>
</html>
"""


@pytest.fixture
def product_html():
    return PRODUCT_HTML


@pytest.fixture
def product_url():
    return PRODUCT_URL


@pytest.fixture
def temp_db():
    """Create a temporary catalog database."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = f.name
    init_db(db_path)
    yield db_path
    Path(db_path).unlink(missing_ok=True)


@pytest.fixture
def sample_record():
    return ProductRecord(
        title="Anker Soundcore 2 Portable Bluetooth Speaker",
        brand="Anker",
        model="A3105",
        asin="B01MTB55WH",
        original_price="$59.99",
        offer_price="$39.99",
        offer_percentage="33% off",
        amount_saved="20.00",
        rating="4.6",
        rating_count="98765",
        colors=["Black", "Blue"],
        about_item="• 24-hour playtime on a single charge",
        technical_data="Model Name: A3105\nConnectivity: Bluetooth",
        images=[
            ProductImage(url="https://m.media-amazon.com/images/I/a._AC_SX500_.jpg", alt="Front"),
            ProductImage(url="https://m.media-amazon.com/images/I/b._AC_SX500_.jpg", alt="Back"),
        ],
        categories=["Electronics", "Speakers"],
        tags=["Anker", "Highly Rated", "Good Deal", "Portable", "Bluetooth"],
        url="https://www.amazon.com/dp/B01MTB55WH",
        extracted_at="2024-05-01T10:00:00.000Z",
    )
