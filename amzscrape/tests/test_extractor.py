"""Tests for product field extraction."""

import pytest

from amzscrape import extractor
from amzscrape.extractor import (
    ExtractionError,
    extract_from_html,
    extract_pricing,
    extract_product,
    generate_tags,
    parse_document,
    upgrade_image_url,
)
from amzscrape.models import ProductRecord

NO_ASIN_URL = "https://www.amazon.in/some-product/dp/"


def _extract(body: str, url: str = NO_ASIN_URL, events=None) -> ProductRecord:
    on_event = (lambda t, d: events.append((t, d))) if events is not None else None
    return extract_from_html(f"<html><body>{body}</body></html>", url, on_event=on_event)


class TestFullPage:
    """Extraction of a complete product page."""

    @pytest.fixture
    def record(self, product_html, product_url):
        return extract_from_html(product_html, product_url)

    def test_title_is_trimmed(self, record):
        assert record.title == "Sony WH-1000XM4 Wireless Premium Noise Cancelling Headphones"

    def test_brand_skips_store_link(self, record):
        assert record.brand == "Sony"

    def test_model_from_direct_selector(self, record):
        assert record.model == "WH-1000XM4"

    def test_asin_from_url(self, record):
        assert record.asin == "B0863TXGM3"

    def test_pricing(self, record):
        assert record.original_price == "₹29,990.00"
        assert record.offer_price == "₹19,990.00"
        assert record.offer_percentage == "-33%"
        assert record.amount_saved == "10000.00"

    def test_rating(self, record):
        assert record.rating == "4.5"
        assert record.rating_count == "1234"

    def test_colors_union_across_selectors(self, record):
        assert record.colors == ["Black", "Silver", "Midnight Blue"]

    def test_about_item_bullets(self, record):
        assert record.about_item == (
            "• Industry-leading noise cancellation with Dual Noise Sensor technology\n"
            "• Up to 30-hour battery life with quick charging"
        )

    def test_technical_data_lines(self, record):
        assert record.technical_data.split("\n") == [
            "Model Name: WH-1000XM4",
            "Connectivity: Wireless",
            "Item model number: WH1000XM4/B",
        ]

    def test_images_rewritten_and_filtered(self, record):
        assert [image.url for image in record.images] == [
            "https://m.media-amazon.com/images/I/41abc._AC_SX500_.jpg",
            "https://m.media-amazon.com/images/I/51def._AC_SX500_.jpg",
        ]
        assert record.images[0].alt == "Product image 1"
        assert record.images[1].alt == "Side view"
        assert not any(image.downloaded for image in record.images)

    def test_categories_skip_site_name_and_short_text(self, record):
        assert record.categories == ["Electronics", "Headphones, Earbuds & Accessories"]

    def test_tags(self, record):
        assert record.tags == ["Sony", "Highly Rated", "Good Deal", "Wireless", "Premium"]

    def test_caller_fields_untouched(self, record):
        assert record.id is None
        assert record.url == ""
        assert record.extracted_at == ""
        assert record.updated_at == ""


class TestEmptyDocument:
    def test_empty_document_yields_defaults(self):
        record = extract_from_html("<html><body></body></html>", NO_ASIN_URL)
        assert record == ProductRecord()

    def test_plain_text_document(self):
        record = extract_from_html("not really html", NO_ASIN_URL)
        assert record.title == ""
        assert record.tags == []


class TestInvalidDocument:
    def test_non_text_input_raises(self):
        with pytest.raises(ExtractionError):
            parse_document(12345)  # type: ignore[arg-type]

    def test_non_document_raises(self):
        with pytest.raises(ExtractionError):
            extract_product(None, NO_ASIN_URL)  # type: ignore[arg-type]


class TestTitleAndBrand:
    def test_title_fallback_order(self):
        record = _extract('<h1 class="a-size-large a-spacing-none">Fallback Title</h1>')
        assert record.title == "Fallback Title"

    def test_empty_title_node_falls_through(self):
        record = _extract('<span id="productTitle">   </span><div class="product-title">Second</div>')
        assert record.title == "Second"

    @pytest.mark.parametrize(
        "byline, expected",
        [
            ("Brand: Anker", "Anker"),
            ("by Philips", "Philips"),
            ("BRAND: Boat", "Boat"),
        ],
    )
    def test_brand_prefixes_stripped(self, byline, expected):
        record = _extract(f'<a id="bylineInfo">{byline}</a>')
        assert record.brand == expected

    def test_brand_from_title(self):
        record = _extract('<span id="productTitle">JBL Flip 5 Waterproof Speaker</span>')
        assert record.brand == "JBL"

    def test_brand_from_title_captures_lead_word(self):
        record = _extract('<span id="productTitle">Premium Wireless Bluetooth Speaker</span>')
        assert record.brand == "Premium"

    def test_brand_empty_without_title_or_nodes(self):
        record = _extract('<a id="bylineInfo">Visit the Store</a>')
        assert record.brand == ""


class TestModel:
    def test_model_from_second_details_table(self):
        body = """
        <table id="tech"><tbody>
          <tr><td>Item model number</td><td>XYZ-1</td></tr>
          <tr><td>Colour</td><td>Black</td></tr>
        </tbody></table>
        <table id="productDetails_detailBullets_sections1"><tbody>
          <tr><th>Model</th><td>-</td></tr>
          <tr><th>Model Name</th><td>Soundcore 2</td></tr>
        </tbody></table>
        """
        assert _extract(body).model == "Soundcore 2"

    def test_model_reads_last_cell_only(self):
        body = """
        <table id="tech"><tbody>
          <tr><th>Model Name</th><td>Series</td><td>X1</td></tr>
        </tbody></table>
        """
        assert _extract(body).model == "X1"

    def test_model_missing(self):
        body = '<table id="tech"><tbody><tr><td>Weight</td><td>300 g</td></tr></tbody></table>'
        assert _extract(body).model == ""


class TestAsin:
    PAGE = '<div data-asin=""></div><input type="hidden" id="ASIN" name="ASIN" value="B0PAGE1234">'

    def test_url_segment_wins_over_page(self):
        record = _extract(self.PAGE, url="https://www.amazon.com/dp/B08N5WRWNW/")
        assert record.asin == "B08N5WRWNW"

    def test_url_segment_at_end_of_path(self):
        record = _extract("", url="https://www.amazon.com/dp/B08N5WRWNW?th=1")
        assert record.asin == "B08N5WRWNW"

    def test_page_attribute_fallback(self):
        assert _extract(self.PAGE).asin == "B0PAGE1234"

    def test_invalid_page_value_ignored(self):
        assert _extract('<input id="ASIN" value="not-an-asin">').asin == ""


class TestPricing:
    def test_no_price_nodes(self):
        pricing = extract_pricing(parse_document("<p>nothing</p>"))
        assert pricing == {
            "original_price": "",
            "offer_price": "",
            "offer_percentage": "",
            "amount_saved": "",
        }

    def test_offer_only_mirrors_into_original(self):
        record = _extract('<span class="a-price"><span class="a-offscreen">$49.99</span></span>')
        assert record.offer_price == "$49.99"
        assert record.original_price == record.offer_price
        assert record.amount_saved == ""
        assert record.offer_percentage == ""

    def test_original_only_mirrors_into_offer(self):
        record = _extract('<span class="a-text-price">₹999</span>')
        assert record.original_price == "₹999"
        assert record.offer_price == record.original_price
        assert record.amount_saved == ""

    def test_savings_and_percentage_computed(self):
        body = """
        <span data-cy="original-price">$80.00</span>
        <span class="a-price-current"><span class="a-offscreen">$59.99</span></span>
        """
        record = _extract(body)
        assert record.original_price == "$80.00"
        assert record.offer_price == "$59.99"
        assert record.amount_saved == f"{round(80.00 - 59.99, 2):.2f}"
        assert record.offer_percentage == "25% off"

    def test_percentage_rounds_half_up(self):
        body = """
        <span data-cy="original-price">$8.00</span>
        <span class="a-price-current"><span class="a-offscreen">$7.00</span></span>
        """
        # 1 / 8 = 12.5%
        assert _extract(body).offer_percentage == "13% off"

    def test_discount_text_kept_over_computed(self):
        body = """
        <span class="a-badge-text">Limited time deal</span>
        <span class="savingsPercentage">-45%</span>
        <span data-cy="original-price">$100.00</span>
        <span class="a-price-current"><span class="a-offscreen">$55.00</span></span>
        """
        record = _extract(body)
        assert record.offer_percentage == "-45%"
        assert record.amount_saved == "45.00"

    def test_no_savings_when_offer_higher(self):
        body = """
        <span data-cy="original-price">$10.00</span>
        <span class="a-price-current"><span class="a-offscreen">$12.00</span></span>
        """
        record = _extract(body)
        assert record.amount_saved == ""
        assert record.offer_percentage == ""

    def test_price_without_currency_rejected(self):
        record = _extract('<span class="a-price-whole">1,299.</span>')
        assert record.offer_price == ""
        assert record.original_price == ""

    def test_unparseable_price_skips_savings(self):
        events = []
        body = """
        <span data-cy="original-price">$1.2.3</span>
        <span class="a-price-current"><span class="a-offscreen">$5</span></span>
        """
        record = _extract(body, events=events)
        assert record.original_price == "$1.2.3"
        assert record.offer_price == "$5"
        assert record.amount_saved == ""
        assert record.offer_percentage == ""
        assert any(event_type == "savings_error" for event_type, _ in events)


class TestRating:
    def test_rating_and_count(self):
        body = """
        <span class="a-icon-alt">4.5 out of 5 stars</span>
        <span id="acrCustomerReviewText">1,234 ratings</span>
        """
        record = _extract(body)
        assert record.rating == "4.5"
        assert record.rating_count == "1234"

    def test_non_rating_text_falls_through(self):
        body = """
        <span class="a-icon-alt">Previous page</span>
        <div id="acrPopover"><span class="a-icon-alt">3 OUT OF 5 stars</span></div>
        """
        assert _extract(body).rating == "3"

    def test_count_without_digits_ignored(self):
        body = '<span id="acrCustomerReviewText">No ratings</span>'
        assert _extract(body).rating_count == ""


class TestListCaps:
    def test_colors_capped_and_unique(self):
        items = "".join(f'<li title="Color {i}"></li>' for i in range(15))
        body = f'<ul id="variation_color_name">{items}</ul><ul class="swatches"><li>Color 0</li></ul>'
        colors = _extract(body).colors
        assert len(colors) == 10
        assert len(set(colors)) == len(colors)
        assert colors[0] == "Color 0"

    def test_images_capped_at_six(self):
        imgs = "".join(
            f'<img src="https://m.media-amazon.com/images/I/img{i}._SS40_.jpg">' for i in range(9)
        )
        images = _extract(f'<div id="altImages">{imgs}</div>').images
        assert len(images) == 6
        assert len({image.url for image in images}) == 6

    def test_image_attribute_preference(self):
        body = (
            '<div id="imageBlock"><img data-src="https://m.media-amazon.com/images/I/lazy.jpg" '
            'src="https://m.media-amazon.com/images/I/placeholder.gif"></div>'
        )
        images = _extract(body).images
        assert [image.url for image in images] == ["https://m.media-amazon.com/images/I/lazy.jpg"]

    def test_categories_first_selector_only_and_capped(self):
        crumbs = "".join(f"<a>Category {i}</a>" for i in range(7))
        body = f'<div class="a-breadcrumb">{crumbs}</div><div id="nav-subnav"><a>Other Nav</a></div>'
        categories = _extract(body).categories
        assert categories == [f"Category {i}" for i in range(5)]

    def test_technical_data_skips_selector_without_rows(self):
        body = """
        <table id="tech"><tbody><tr><td>Warranty</td><td>N/A</td></tr></tbody></table>
        <table class="a-keyvalue"><tbody><tr><th>Weight</th><td>250 g</td></tr></tbody></table>
        """
        assert _extract(body).technical_data == "Weight: 250 g"

    def test_about_item_falls_back_to_description(self):
        body = '<div id="productDescription"><p>A long enough product description.</p></div>'
        assert _extract(body).about_item == "• A long enough product description."


class TestTags:
    def test_keyword_tags_with_rating(self):
        tags = generate_tags("Premium Wireless Bluetooth Speaker", rating="4.6")
        for expected in ("Wireless", "Bluetooth", "Premium", "Highly Rated"):
            assert expected in tags
        assert len(tags) <= 8
        assert len(set(tags)) == len(tags)

    def test_tags_from_extracted_page(self):
        body = """
        <span id="productTitle">Premium Wireless Bluetooth Speaker</span>
        <span class="a-icon-alt">4.6 out of 5 stars</span>
        """
        tags = _extract(body).tags
        assert tags == ["Premium", "Highly Rated", "Wireless", "Bluetooth"]

    @pytest.mark.parametrize(
        "offer_percentage, expected",
        [
            ("55% off", "Great Deal"),
            ("-50%", "Great Deal"),
            ("20% off", "Good Deal"),
            ("19% off", None),
        ],
    )
    def test_deal_tags(self, offer_percentage, expected):
        tags = generate_tags("Thing", offer_percentage=offer_percentage)
        deal_tags = [t for t in tags if t.endswith("Deal")]
        assert deal_tags == ([expected] if expected else [])

    def test_tags_capped_at_eight(self):
        title = "smart premium professional portable waterproof rechargeable wireless bluetooth"
        tags = generate_tags(title, brand="Acme", rating="4.9", offer_percentage="60% off")
        assert len(tags) == 8
        assert tags[:3] == ["Acme", "Highly Rated", "Great Deal"]

    def test_unparseable_rating_ignored(self):
        assert generate_tags("Thing", rating="n/a") == []


class TestImageUrlRewrite:
    @pytest.mark.parametrize(
        "src, expected",
        [
            (
                "https://m.media-amazon.com/images/I/71abc._AC_US40_.jpg",
                "https://m.media-amazon.com/images/I/71abc._AC_SX500_.jpg",
            ),
            (
                "https://m.media-amazon.com/images/I/71abc._SX38_SY50_CR,0,0,38,50_.jpg",
                "https://m.media-amazon.com/images/I/71abc._AC_SX500_.jpg",
            ),
            (
                "https://m.media-amazon.com/images/I/71abc.jpg",
                "https://m.media-amazon.com/images/I/71abc.jpg",
            ),
        ],
    )
    def test_upgrade_image_url(self, src, expected):
        assert upgrade_image_url(src) == expected


class TestFieldIsolation:
    def test_failing_field_degrades_alone(self, monkeypatch, product_html, product_url):
        def boom(_doc):
            raise AttributeError("broken markup")

        monkeypatch.setattr(extractor, "extract_colors", boom)
        events = []
        record = extract_from_html(
            product_html, product_url, on_event=lambda t, d: events.append((t, d))
        )

        assert record.colors == []
        assert record.title.startswith("Sony")
        errors = [d for t, d in events if t == "field_error"]
        assert errors and errors[0]["field"] == "colors"

    def test_events_bracket_extraction(self, product_html, product_url):
        events = []
        extract_from_html(product_html, product_url, on_event=lambda t, d: events.append(t))
        assert events[0] == "extract_start"
        assert events[-1] == "extract_complete"
