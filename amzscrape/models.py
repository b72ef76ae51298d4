"""Data models for extracted products."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

__all__ = ["ProductImage", "ProductRecord", "unique_capped", "utc_now_iso"]


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def unique_capped(values: Iterable[str], limit: int) -> List[str]:
    """De-duplicate values preserving order, keeping at most `limit` of them."""
    result: List[str] = []
    for value in values:
        if value and value not in result:
            result.append(value)
            if len(result) >= limit:
                break
    return result


@dataclass
class ProductImage:
    """A product image reference. `downloaded` flips after a successful download."""

    url: str
    alt: str = ""
    downloaded: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "alt": self.alt, "downloaded": self.downloaded}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductImage":
        return cls(
            url=str(data.get("url") or ""),
            alt=str(data.get("alt") or ""),
            downloaded=bool(data.get("downloaded", False)),
        )


# Attribute name -> camelCase key used in the JSON wire format
_WIRE_KEYS: Dict[str, str] = {
    "title": "title",
    "brand": "brand",
    "model": "model",
    "asin": "asin",
    "original_price": "originalPrice",
    "offer_price": "offerPrice",
    "offer_percentage": "offerPercentage",
    "amount_saved": "amountSaved",
    "rating": "rating",
    "rating_count": "ratingCount",
    "about_item": "aboutItem",
    "technical_data": "technicalData",
    "url": "url",
    "extracted_at": "extractedAt",
    "updated_at": "updatedAt",
}

_LIST_KEYS = ("colors", "categories", "tags")


@dataclass
class ProductRecord:
    """A single product extracted from an Amazon product page.

    Every scalar field defaults to an empty string and every list field to an
    empty list, so a record built from an empty page is still complete.
    `id`, `url`, `extracted_at` and `updated_at` are assigned by the caller
    (scrape service or catalog store), never by the extractor.
    """

    title: str = ""
    brand: str = ""
    model: str = ""
    asin: str = ""

    # Pricing
    original_price: str = ""
    offer_price: str = ""
    offer_percentage: str = ""
    amount_saved: str = ""

    # Reviews
    rating: str = ""
    rating_count: str = ""

    colors: List[str] = field(default_factory=list)
    about_item: str = ""
    technical_data: str = ""
    images: List[ProductImage] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)

    # Caller-assigned
    id: Optional[int] = None
    url: str = ""
    extracted_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the camelCase JSON wire format."""
        data: Dict[str, Any] = {}
        if self.id is not None:
            data["id"] = self.id
        for attr, key in _WIRE_KEYS.items():
            data[key] = getattr(self, attr)
        for key in _LIST_KEYS:
            data[key] = list(getattr(self, key))
        data["images"] = [image.to_dict() for image in self.images]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductRecord":
        """Build a record from wire-format data, re-applying caps and de-duplication."""
        from amzscrape.config import MAX_CATEGORIES, MAX_COLORS, MAX_IMAGES, MAX_TAGS

        record = cls()
        for attr, key in _WIRE_KEYS.items():
            value = data.get(key)
            if value is not None:
                setattr(record, attr, str(value))

        record.colors = unique_capped((str(c) for c in data.get("colors") or []), MAX_COLORS)
        record.categories = unique_capped(
            (str(c) for c in data.get("categories") or []), MAX_CATEGORIES
        )
        record.tags = unique_capped((str(t) for t in data.get("tags") or []), MAX_TAGS)

        seen = set()
        for raw in data.get("images") or []:
            if not isinstance(raw, dict):
                continue
            image = ProductImage.from_dict(raw)
            if not image.url or image.url in seen:
                continue
            seen.add(image.url)
            record.images.append(image)
            if len(record.images) >= MAX_IMAGES:
                break

        raw_id = data.get("id")
        if raw_id is not None:
            try:
                record.id = int(raw_id)
            except (TypeError, ValueError):
                record.id = None
        return record
