"""Product field extraction from parsed Amazon product pages.

Each field is described by a `FieldRule`: an ordered list of CSS selectors,
an optional attribute preference list, and a validator that both checks and
normalizes a candidate value. Rules are evaluated by one of three reducers:

- `first_match`: commit to the first selector whose first node yields a
  validated value (title, brand, prices, rating, ...).
- `union`: accumulate values from every node of every selector up to a cap
  (colors, images).
- `first_selector`: collect all node values of a selector and stop at the
  first selector that yields anything (about, technical data, categories).

Extraction never raises for missing content. Each field is computed in
isolation, so a failure in one field only resets that field to its default.
Diagnostics go to an optional `on_event(event_type, data)` callback.
"""

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from bs4 import BeautifulSoup, ParserRejectedMarkup, Tag

from amzscrape.config import (
    BULLET_MARKER,
    CURRENCY_SYMBOLS,
    DEAL_THRESHOLDS,
    HIGH_RATING_THRESHOLD,
    HIGH_RES_IMAGE_TOKEN,
    KEYWORD_TAGS,
    MAX_CATEGORIES,
    MAX_COLORS,
    MAX_IMAGES,
    MAX_TAGS,
    SITE_MARKER,
)
from amzscrape.logging_config import get_logger
from amzscrape.models import ProductImage, ProductRecord, unique_capped
from amzscrape.url_validation import extract_asin_from_url

__all__ = [
    "ExtractionError",
    "FieldRule",
    "FIELD_RULES",
    "EventCallback",
    "parse_document",
    "extract_product",
    "extract_from_html",
    "extract_pricing",
    "generate_tags",
    "upgrade_image_url",
]

logger = get_logger("extractor")

EventCallback = Callable[[str, Dict[str, Any]], None]
Validator = Callable[[str], Optional[str]]


class ExtractionError(Exception):
    """Raised when a page cannot be turned into a product record at all."""


@dataclass(frozen=True)
class FieldRule:
    """Ordered selector strategies for one field.

    `attrs` lists attributes to read in order of preference; an empty tuple
    means the node's trimmed text. `validate` returns the normalized value or
    None to reject the candidate.
    """

    selectors: Tuple[str, ...]
    attrs: Tuple[str, ...] = ()
    validate: Optional[Validator] = None


# =============================================================================
# Validators
# =============================================================================

CURRENCY_RE = re.compile(rf"^[{re.escape(CURRENCY_SYMBOLS)}]\s?\d")
RATING_RE = re.compile(r"(\d+\.?\d*)\s*out\s*of\s*5", re.IGNORECASE)
COUNT_RE = re.compile(r"\d[\d,]*")
ASIN_RE = re.compile(r"^[A-Z0-9]{10}$")
BRAND_FROM_TITLE_RE = re.compile(r"^([A-Z][a-zA-Z\s&-]+?)[\s-]+")
BRAND_PREFIX_RE = re.compile(r"^Brand:\s*", re.IGNORECASE)
BY_PREFIX_RE = re.compile(r"^by\s+", re.IGNORECASE)
LOW_RES_TOKEN_RE = re.compile(r"\._[A-Z]{2}[0-9]+_")
SIZE_SEGMENT_RE = re.compile(r"\._.*?\.")
DISCOUNT_NUMBER_RE = re.compile(r"\d+")

BRAND_NOISE = ("visit", "store")
EMPTY_SPEC_VALUES = {"N/A", "-", "\u200e"}


def _non_empty(text: str) -> Optional[str]:
    return text or None


def _currency(text: str) -> Optional[str]:
    return text if CURRENCY_RE.match(text) else None


def _percentage(text: str) -> Optional[str]:
    return text if "%" in text else None


def _rating(text: str) -> Optional[str]:
    match = RATING_RE.search(text)
    return match.group(1) if match else None


def _rating_count(text: str) -> Optional[str]:
    match = COUNT_RE.search(text)
    return match.group(0).replace(",", "") if match else None


def _asin(text: str) -> Optional[str]:
    return text if ASIN_RE.match(text) else None


def _brand(text: str) -> Optional[str]:
    lowered = text.lower()
    if not text or any(noise in lowered for noise in BRAND_NOISE):
        return None
    cleaned = BY_PREFIX_RE.sub("", BRAND_PREFIX_RE.sub("", text))
    return cleaned or None


# =============================================================================
# Rule table
# =============================================================================

TECH_ROW_SELECTORS = (
    "#tech tbody tr",
    "#productDetails_detailBullets_sections1 tbody tr",
    "#productDetails_techSpec_section_1 tbody tr",
    ".a-keyvalue tbody tr",
)

FIELD_RULES: Dict[str, FieldRule] = {
    "title": FieldRule(
        selectors=(
            "#productTitle",
            ".product-title",
            '[data-cy="product-title"]',
            "h1.a-size-large.a-spacing-none",
            "h1 span",
        ),
        validate=_non_empty,
    ),
    "brand": FieldRule(
        selectors=(
            "#bylineInfo",
            '.a-link-normal[href*="/stores/"]',
            "a[data-brand]",
            ".po-brand .po-break-word",
            "#brandNameHeading",
            '[data-cy="brand-name"]',
        ),
        validate=_brand,
    ),
    "model": FieldRule(
        selectors=(
            ".po-model_name .po-break-word",
            '[data-cy="model-name"]',
            "#model_name",
            ".model-name",
        ),
        validate=_non_empty,
    ),
    "model_rows": FieldRule(
        selectors=(
            "#tech tbody tr",
            "#productDetails_detailBullets_sections1 tbody tr",
        ),
    ),
    "asin": FieldRule(
        selectors=("[data-asin]", "#ASIN", 'input[name="ASIN"]'),
        attrs=("value", "data-asin"),
        validate=_asin,
    ),
    "original_price": FieldRule(
        selectors=(
            ".a-price.a-text-price .a-offscreen",
            ".a-text-strike .a-offscreen",
            ".a-price-was .a-offscreen",
            '[data-cy="original-price"]',
            ".a-text-price",
        ),
        validate=_currency,
    ),
    "offer_price": FieldRule(
        selectors=(
            ".a-price.a-text-normal .a-offscreen",
            ".a-price-current .a-offscreen",
            ".a-price .a-offscreen",
            '[data-cy="price-recipe"] .a-price .a-offscreen',
            "#apex_desktop .a-price .a-offscreen",
            ".a-price-whole",
        ),
        validate=_currency,
    ),
    "offer_percentage": FieldRule(
        selectors=(
            ".a-badge-text",
            ".savingsPercentage",
            '[data-cy="discount-percentage"]',
            ".a-size-large.a-color-price",
        ),
        validate=_percentage,
    ),
    "rating": FieldRule(
        selectors=(
            ".a-icon-alt",
            '[data-cy="reviews-ratings-slot"] .a-icon-alt',
            ".reviewCountTextLinkedHistogram .a-icon-alt",
            "#acrPopover .a-icon-alt",
        ),
        validate=_rating,
    ),
    "rating_count": FieldRule(
        selectors=(
            "#acrCustomerReviewText",
            '[data-cy="reviews-ratings-slot"] a[href*="reviews"]',
            ".reviewCountTextLinkedHistogram a",
            "#averageCustomerReviews a",
        ),
        validate=_rating_count,
    ),
    "colors": FieldRule(
        selectors=(
            "#variation_color_name li",
            ".a-button-thumbnail img",
            '[data-cy="color-name"]',
            "#color_name_list li",
            ".swatches li",
        ),
        attrs=("title", "alt"),
    ),
    "about_item": FieldRule(
        selectors=(
            "#feature-bullets ul li span",
            '[data-cy="item-bullets"] li',
            "#productDescription p",
            ".a-unordered-list.a-vertical.a-spacing-none li span",
        ),
    ),
    "technical_data": FieldRule(selectors=TECH_ROW_SELECTORS),
    "images": FieldRule(
        selectors=(
            "#altImages img",
            "#imageBlock img",
            ".a-dynamic-image",
            "#main-image",
            '[data-cy="product-image"]',
        ),
        attrs=("data-old-hires", "data-large-image-url", "data-src", "src"),
    ),
    "categories": FieldRule(
        selectors=(
            "#wayfinding-breadcrumbs_container a",
            ".a-breadcrumb a",
            "#nav-subnav a",
            '[data-cy="breadcrumb"] a',
        ),
    ),
}


# =============================================================================
# Node access
# =============================================================================

def _text(node: Tag) -> str:
    return node.get_text().strip()


def _attr(node: Tag, name: str) -> str:
    value = node.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return value.strip() if isinstance(value, str) else ""


def _read(node: Tag, attrs: Tuple[str, ...]) -> str:
    """Read the first non-empty preferred attribute, or the node text."""
    if not attrs:
        return _text(node)
    for name in attrs:
        value = _attr(node, name)
        if value:
            return value
    return ""


def _joined_text(row: Tag, selector: str) -> str:
    return "".join(node.get_text() for node in row.select(selector)).strip()


def _row_cells(row: Tag) -> Tuple[str, str]:
    """Label and value of a technical-details table row."""
    label = _joined_text(row, "td:first-child, th:first-child")
    value = _joined_text(row, "td:last-child, td:nth-child(2)")
    return label, value


# =============================================================================
# Reducers
# =============================================================================

def first_match(doc: Tag, rule: FieldRule) -> str:
    """Value of the first selector whose first node passes validation."""
    for selector in rule.selectors:
        node = doc.select_one(selector)
        if node is None:
            continue
        value = _read(node, rule.attrs)
        if rule.validate is not None:
            value = rule.validate(value) or ""
        if value:
            return value
    return ""


def union(
    doc: Tag,
    rule: FieldRule,
    collect: Callable[[Tag], Optional[str]],
    limit: int,
) -> List[str]:
    """Unique values from every node of every selector, in discovery order."""
    values: List[str] = []
    for selector in rule.selectors:
        for node in doc.select(selector):
            value = collect(node)
            if value and value not in values:
                values.append(value)
                if len(values) >= limit:
                    return values
    return values


def first_selector(
    doc: Tag,
    rule: FieldRule,
    collect: Callable[[Tag], Optional[str]],
    unique: bool = False,
) -> List[str]:
    """All collected values of the first selector that yields any."""
    for selector in rule.selectors:
        values: List[str] = []
        for node in doc.select(selector):
            value = collect(node)
            if not value or (unique and value in values):
                continue
            values.append(value)
        if values:
            return values
    return []


# =============================================================================
# Per-field extraction
# =============================================================================

def extract_title(doc: Tag) -> str:
    return first_match(doc, FIELD_RULES["title"])


def extract_brand(doc: Tag, title: str) -> str:
    brand = first_match(doc, FIELD_RULES["brand"])
    if brand:
        return brand
    if title:
        match = BRAND_FROM_TITLE_RE.match(title)
        if match:
            return match.group(1).strip()
    return ""


def extract_model(doc: Tag) -> str:
    model = first_match(doc, FIELD_RULES["model"])
    if model:
        return model

    # Scan every technical-details table, not just the first one present
    for selector in FIELD_RULES["model_rows"].selectors:
        for row in doc.select(selector):
            label = _joined_text(row, "td:first-child, th:first-child").lower()
            value = _joined_text(row, "td:last-child")
            if "model" in label and "number" not in label:
                if value and value not in EMPTY_SPEC_VALUES:
                    return value
    return ""


def extract_asin(doc: Tag, source_url: str) -> str:
    from_url = extract_asin_from_url(source_url)
    if from_url:
        return from_url
    return first_match(doc, FIELD_RULES["asin"])


def _price_value(text: str) -> float:
    return float(re.sub(r"[^0-9.]", "", text))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def extract_pricing(doc: Tag, emit: Optional[EventCallback] = None) -> Dict[str, str]:
    """Offer/original price, discount text and computed savings.

    Returns a dict with `original_price`, `offer_price`, `offer_percentage`
    and `amount_saved`, each an empty string when unknown.
    """
    original = first_match(doc, FIELD_RULES["original_price"])
    offer = first_match(doc, FIELD_RULES["offer_price"])

    if not original and offer:
        original = offer
    elif not offer and original:
        offer = original

    percentage = first_match(doc, FIELD_RULES["offer_percentage"])
    saved_text = ""

    if original and offer and original != offer:
        try:
            original_value = _price_value(original)
            saved = original_value - _price_value(offer)
            if saved > 0:
                saved_text = f"{saved:.2f}"
                if not percentage:
                    percentage = f"{_round_half_up(saved / original_value * 100)}% off"
        except (ValueError, ZeroDivisionError) as e:
            if emit is not None:
                emit("savings_error", {
                    "original_price": original,
                    "offer_price": offer,
                    "error": str(e),
                })

    return {
        "original_price": original,
        "offer_price": offer,
        "offer_percentage": percentage,
        "amount_saved": saved_text,
    }


def extract_rating(doc: Tag) -> Tuple[str, str]:
    return (
        first_match(doc, FIELD_RULES["rating"]),
        first_match(doc, FIELD_RULES["rating_count"]),
    )


def _color_name(node: Tag) -> Optional[str]:
    name = _read(node, FIELD_RULES["colors"].attrs) or _text(node)
    if not name:
        img = node.find("img")
        if img is not None:
            name = _attr(img, "alt") or _attr(img, "title")
    return name if len(name) > 1 else None


def extract_colors(doc: Tag) -> List[str]:
    return union(doc, FIELD_RULES["colors"], _color_name, MAX_COLORS)


def _about_text(node: Tag) -> Optional[str]:
    text = _text(node)
    if len(text) > 10 and "see more" not in text.lower():
        return text
    return None


def extract_about_item(doc: Tag) -> str:
    items = first_selector(doc, FIELD_RULES["about_item"], _about_text)
    if not items:
        return ""
    return f"{BULLET_MARKER} " + f"\n{BULLET_MARKER} ".join(items)


def _spec_line(row: Tag) -> Optional[str]:
    label, value = _row_cells(row)
    if label and value and value not in EMPTY_SPEC_VALUES:
        return f"{label}: {value}"
    return None


def extract_technical_data(doc: Tag) -> str:
    return "\n".join(first_selector(doc, FIELD_RULES["technical_data"], _spec_line))


def upgrade_image_url(src: str) -> str:
    """Swap a low-resolution size token in an Amazon image URL for a 500px one."""
    src = LOW_RES_TOKEN_RE.sub(HIGH_RES_IMAGE_TOKEN, src, count=1)
    return SIZE_SEGMENT_RE.sub(f"{HIGH_RES_IMAGE_TOKEN}.", src, count=1)


def extract_images(doc: Tag) -> List[ProductImage]:
    rule = FIELD_RULES["images"]
    images: List[ProductImage] = []
    seen = set()

    for selector in rule.selectors:
        for node in doc.select(selector):
            src = _read(node, rule.attrs)
            if not src:
                continue
            src = upgrade_image_url(src)
            if src in seen or SITE_MARKER not in src or "sprite" in src:
                continue
            seen.add(src)
            alt = _attr(node, "alt") or f"Product image {len(images) + 1}"
            images.append(ProductImage(url=src, alt=alt))
            if len(images) >= MAX_IMAGES:
                return images
    return images


def _category_text(node: Tag) -> Optional[str]:
    text = _text(node)
    if len(text) > 2 and SITE_MARKER not in text.lower():
        return text
    return None


def extract_categories(doc: Tag) -> List[str]:
    values = first_selector(doc, FIELD_RULES["categories"], _category_text, unique=True)
    return values[:MAX_CATEGORIES]


def _discount_value(offer_percentage: str) -> Optional[int]:
    match = DISCOUNT_NUMBER_RE.search(offer_percentage or "")
    return int(match.group(0)) if match else None


def generate_tags(
    title: str,
    brand: str = "",
    rating: str = "",
    offer_percentage: str = "",
) -> List[str]:
    """Derive tags from brand, rating, discount size and title keywords."""
    tags: List[str] = []
    if brand:
        tags.append(brand)

    try:
        if rating and float(rating) >= HIGH_RATING_THRESHOLD:
            tags.append("Highly Rated")
    except ValueError:
        pass

    discount = _discount_value(offer_percentage)
    if discount is not None:
        for threshold, tag in DEAL_THRESHOLDS:
            if discount >= threshold:
                tags.append(tag)
                break

    lowered = (title or "").lower()
    for keyword, tag in KEYWORD_TAGS.items():
        if keyword in lowered:
            tags.append(tag)

    return unique_capped(tags, MAX_TAGS)


# =============================================================================
# Entry points
# =============================================================================

def _log_event(event_type: str, data: Dict[str, Any]) -> None:
    level = logging.WARNING if event_type.endswith("_error") else logging.DEBUG
    logger.log(level, "%s: %s", event_type, data)


def _isolated(field: str, func: Callable[[], Any], default: Any, emit: EventCallback) -> Any:
    try:
        return func()
    except Exception as e:
        emit("field_error", {"field": field, "error": f"{type(e).__name__}: {e}"})
        return default


def parse_document(html: Union[str, bytes]) -> BeautifulSoup:
    """Parse raw page HTML.

    Raises:
        ExtractionError: If the input is not HTML text or the parser rejects it
    """
    if not isinstance(html, (str, bytes)):
        raise ExtractionError(f"Expected HTML text, got {type(html).__name__}")
    try:
        return BeautifulSoup(html, "html.parser")
    except (ParserRejectedMarkup, AssertionError, ValueError) as e:
        raise ExtractionError(f"Failed to parse document: {e}") from e


def extract_product(
    document: Tag,
    source_url: str,
    on_event: Optional[EventCallback] = None,
) -> ProductRecord:
    """Build a product record from a parsed page.

    Args:
        document: Parsed page (BeautifulSoup or any Tag)
        source_url: URL the page was fetched from; used for the ASIN
        on_event: Optional diagnostics callback `(event_type, data)`

    Returns:
        A ProductRecord; missing fields are left at their empty defaults.
        `id`, `url` and the timestamps are not set.

    Raises:
        ExtractionError: If `document` is not a parsed document
    """
    if not isinstance(document, Tag):
        raise ExtractionError(f"Expected a parsed document, got {type(document).__name__}")

    emit = on_event or _log_event
    emit("extract_start", {"url": source_url})

    record = ProductRecord()
    record.title = _isolated("title", lambda: extract_title(document), "", emit)
    record.brand = _isolated("brand", lambda: extract_brand(document, record.title), "", emit)
    record.model = _isolated("model", lambda: extract_model(document), "", emit)
    record.asin = _isolated("asin", lambda: extract_asin(document, source_url), "", emit)

    pricing = _isolated("pricing", lambda: extract_pricing(document, emit), {}, emit)
    record.original_price = pricing.get("original_price", "")
    record.offer_price = pricing.get("offer_price", "")
    record.offer_percentage = pricing.get("offer_percentage", "")
    record.amount_saved = pricing.get("amount_saved", "")

    record.rating, record.rating_count = _isolated(
        "rating", lambda: extract_rating(document), ("", ""), emit
    )

    record.colors = _isolated("colors", lambda: extract_colors(document), [], emit)
    record.about_item = _isolated("about_item", lambda: extract_about_item(document), "", emit)
    record.technical_data = _isolated(
        "technical_data", lambda: extract_technical_data(document), "", emit
    )
    record.images = _isolated("images", lambda: extract_images(document), [], emit)
    record.categories = _isolated("categories", lambda: extract_categories(document), [], emit)
    record.tags = _isolated(
        "tags",
        lambda: generate_tags(record.title, record.brand, record.rating, record.offer_percentage),
        [],
        emit,
    )

    emit("extract_complete", {
        "url": source_url,
        "title": record.title,
        "asin": record.asin,
        "images": len(record.images),
    })
    return record


def extract_from_html(
    html: Union[str, bytes],
    source_url: str,
    on_event: Optional[EventCallback] = None,
) -> ProductRecord:
    """Parse raw HTML and extract a product record from it."""
    return extract_product(parse_document(html), source_url, on_event=on_event)
