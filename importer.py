"""
Ring import pipeline.

validate → resolve vendor → fetch → bot check → parse → extract → assemble.
Every stage can end the import with a RingImportError; nothing retries.
"""

import logging
import time

import httpx

from errors import NoImagesFound, UnsupportedVendor
from extractor import extract_images, extract_metadata
from fetcher import detect_bot_protection, fetch_page
from models import ImportSuccess, ProductMetadata
from parser import parse_html
from vendors import resolve_vendor, supported_vendor_names, validate_url, vendor_id

logger = logging.getLogger(__name__)


async def import_ring(url: str | None, client: httpx.AsyncClient | None = None) -> ImportSuccess:
    """Import a ring from a retailer product page URL."""
    url = validate_url(url)

    vendor = resolve_vendor(url)
    if vendor is None:
        logger.info(f"Rejected unsupported vendor URL: {url}")
        raise UnsupportedVendor(supported_vendor_names())

    logger.info(f"Importing ring from {vendor.name}: {url}")
    t0 = time.monotonic()

    page = await fetch_page(url, client=client, vendor=vendor)
    fetch_time = time.monotonic() - t0

    detect_bot_protection(page.html)

    parsed = parse_html(page.html, page.url)
    images = extract_images(parsed)
    metadata = extract_metadata(parsed)

    logger.info(
        f"  Extracted {len(images)} images, title={metadata.title!r}, "
        f"price={metadata.price} {metadata.currency} "
        f"(fetch {fetch_time:.2f}s, total {time.monotonic() - t0:.2f}s)"
    )

    return assemble_result(vendor_id(vendor), url, images, metadata)


def assemble_result(vendor: str, url: str, images: list[str], metadata: ProductMetadata) -> ImportSuccess:
    """Package a successful import. An empty image list is a failure, not a result."""
    if not images:
        logger.info(f"No images found on {url} (title={metadata.title!r})")
        raise NoImagesFound()
    return ImportSuccess(vendor=vendor, url=url, images=images, metadata=metadata)
