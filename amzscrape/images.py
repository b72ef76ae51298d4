"""Product image retrieval.

Images are fetched one at a time and written to the downloads directory as
`product-<id>-image-<n>.<ext>`. A failed download is reported in its result
and never stops the remaining images of the same product.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

import requests  # type: ignore[import-untyped]

from amzscrape.config import DOWNLOADS_DIR, REQUEST_TIMEOUT, USER_AGENTS
from amzscrape.logging_config import get_logger, log_scrape_event
from amzscrape.models import ProductRecord

__all__ = [
    "ImageDownloadResult",
    "image_extension",
    "image_filename",
    "safe_product_id",
    "sanitize_filename",
    "download_image",
    "download_product_images",
]

logger = get_logger("images")

IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "gif")
CHUNK_SIZE = 8192
UNSAFE_ID_CHARS_RE = re.compile(r"[^A-Za-z0-9_-]+")


@dataclass
class ImageDownloadResult:
    """Outcome of a single image download."""

    success: bool
    url: str
    filename: Optional[str] = None
    filepath: Optional[str] = None
    size: int = 0
    error: Optional[str] = None


def image_extension(url: str, content_type: Optional[str] = None) -> str:
    """Pick a file extension from the Content-Type, then the URL, else jpg."""
    if content_type:
        if "jpeg" in content_type or "jpg" in content_type:
            return "jpg"
        for ext in ("png", "webp", "gif"):
            if ext in content_type:
                return ext

    url_ext = url.split(".")[-1].split("?")[0].lower()
    if url_ext in IMAGE_EXTENSIONS:
        return url_ext
    return "jpg"


def safe_product_id(product_id: Union[int, str]) -> str:
    """Reduce a product identifier to a single path-safe token."""
    cleaned = UNSAFE_ID_CHARS_RE.sub("-", str(product_id)).strip("-")
    return cleaned or "product"


def image_filename(product_id: Union[int, str], index: int, extension: str) -> str:
    return f"product-{safe_product_id(product_id)}-image-{index + 1}.{extension}"


def sanitize_filename(name: str, max_length: int = 50) -> str:
    """Make a filesystem-safe, lower-case stem out of a product title."""
    cleaned = re.sub(r"[^a-z0-9]", "-", (name or "").lower())
    cleaned = re.sub(r"-+", "-", cleaned).strip("-")
    return cleaned[:max_length] or "product"


def download_image(
    url: str,
    product_id: Union[int, str],
    index: int,
    downloads_dir: str = DOWNLOADS_DIR,
    session: Optional[requests.Session] = None,
) -> ImageDownloadResult:
    """Stream one image to disk.

    Network and filesystem errors are returned as a failed result, not raised.
    """
    sess = session or requests.Session()
    headers = {"User-Agent": USER_AGENTS[0]}
    filepath: Optional[Path] = None

    try:
        with sess.get(url, headers=headers, timeout=REQUEST_TIMEOUT, stream=True) as response:
            response.raise_for_status()
            extension = image_extension(url, response.headers.get("content-type"))
            filename = image_filename(product_id, index, extension)
            filepath = Path(downloads_dir) / filename
            filepath.parent.mkdir(parents=True, exist_ok=True)

            with open(filepath, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
    except (requests.exceptions.RequestException, OSError) as e:
        logger.error(f"Image download error for {url}: {e}")
        if filepath is not None:
            filepath.unlink(missing_ok=True)
        return ImageDownloadResult(success=False, url=url, error=str(e))
    finally:
        if session is None:
            sess.close()

    size = filepath.stat().st_size
    logger.debug(f"Saved image {filename} ({size} bytes)")
    return ImageDownloadResult(
        success=True,
        url=url,
        filename=filename,
        filepath=str(filepath),
        size=size,
    )


def download_product_images(
    record: ProductRecord,
    downloads_dir: str = DOWNLOADS_DIR,
    session: Optional[requests.Session] = None,
) -> List[ImageDownloadResult]:
    """Download every image of a record in order, flipping `downloaded` on success."""
    product_id: Union[int, str] = record.id if record.id is not None else (
        record.asin or sanitize_filename(record.title)
    )
    results: List[ImageDownloadResult] = []

    for index, image in enumerate(record.images):
        result = download_image(image.url, product_id, index, downloads_dir, session=session)
        if result.success:
            image.downloaded = True
        results.append(result)

    succeeded = sum(1 for r in results if r.success)
    log_scrape_event("image_download", {
        "message": f"Downloaded {succeeded}/{len(results)} images",
        "product_id": product_id,
        "succeeded": succeeded,
        "failed": len(results) - succeeded,
    })
    return results
