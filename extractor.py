"""
Ring image and metadata extraction over a ParsedPage.

Both extractors are ordered fallback chains over the static tables in
vocabulary.py:
  - images: OG → Twitter card → JSON-LD → gallery markup → large <img> tags,
    deduplicated in priority order and capped
  - metadata: meta tags and rendered markup first, JSON-LD fills the gaps,
    then ring attributes are inferred from the description text
"""

import html as html_lib
import logging
import re
from collections.abc import Callable, Iterable, Iterator
from functools import partial
from typing import Any
from urllib.parse import urlsplit

from bs4 import Tag

from config import get_settings
from models import ProductMetadata
from parser import ParsedPage, best_from_srcset, resolve_url
from vocabulary import (
    BRAND_SOURCES,
    CARAT_RE,
    CURRENCY_SOURCES,
    DEFAULT_CURRENCY,
    DESCRIPTION_SOURCES,
    DIAMOND_SHAPES,
    GALLERY_SELECTORS,
    GALLERY_URL_ATTRIBUTES,
    IMAGE_CDN_HOSTS,
    IMAGE_EXTENSION_RE,
    IMAGE_PATH_HINTS,
    METAL_TYPES,
    NON_PRODUCT_IMAGE_KEYWORDS,
    OG_IMAGE_KEYS,
    PRICE_RE,
    PRICE_SELECTORS,
    SETTING_STYLES,
    SRCSET_ATTRIBUTES,
    TITLE_SOURCES,
    TWITTER_IMAGE_KEYS,
)

logger = logging.getLogger(__name__)

PRODUCT_TYPES = {"Product", "ProductGroup", "IndividualProduct"}

METADATA_FIELDS = [
    "title",
    "description",
    "price",
    "currency",
    "brand",
    "sku",
    "metal_type",
    "gemstone",
    "setting",
    "carat_weight",
    "availability",
]


# ===== Generic helpers =====


def first_match(extractors: Iterable[Callable[[], str | None]]) -> str | None:
    """Run extractors in order and return the first non-empty cleaned result."""
    for extract in extractors:
        value = extract()
        if value:
            value = _clean_text(value)
            if value:
                return value
    return None


def _clean_text(text: str) -> str:
    """Unescape HTML entities and collapse whitespace."""
    text = html_lib.unescape(str(text))
    return re.sub(r"\s+", " ", text).strip()


def _element_value(el: Tag) -> str | None:
    """A tag's content= attribute if present, otherwise its visible text."""
    content = el.get("content")
    if isinstance(content, str) and content.strip():
        return content
    return el.get_text(" ", strip=True) or None


def _lookup(page: ParsedPage, kind: str, key: str) -> str | None:
    if kind == "meta":
        return page.meta(key)
    el = page.soup.select_one(key)
    return _element_value(el) if el else None


def _from_sources(page: ParsedPage, sources: Iterable[tuple[str, str]]) -> str | None:
    return first_match(partial(_lookup, page, kind, key) for kind, key in sources)


def iter_json_objects(data: Any) -> Iterator[dict]:
    """Yield every object in a JSON value in document order.

    Uses an explicit stack so hostile nesting depth can't blow the call stack.
    """
    stack = [data]
    while stack:
        node = stack.pop()
        if isinstance(node, dict):
            yield node
            stack.extend(reversed(list(node.values())))
        elif isinstance(node, list):
            stack.extend(reversed(node))


# ===== Images =====


def extract_images(page: ParsedPage, max_images: int | None = None) -> list[str]:
    """Collect candidate product image URLs in strategy-priority order.

    Returns at most max_images absolute URLs with no duplicates. Metadata
    sources (OG, Twitter, JSON-LD) are trusted as declared; markup sources
    must pass is_valid_image_url.
    """
    settings = get_settings()
    if max_images is None:
        max_images = settings.max_images

    found: dict[str, None] = {}  # insertion-ordered set

    def add(raw: str | None, validate: bool) -> None:
        url = resolve_url(raw, page.url)
        if not url:
            return
        if validate and not is_valid_image_url(url):
            return
        found.setdefault(url, None)

    # 1-2: Open Graph and Twitter card meta tags
    for key in OG_IMAGE_KEYS + TWITTER_IMAGE_KEYS:
        for raw in page.meta_all(key):
            add(raw, validate=False)
    after_meta = len(found)

    # 3: JSON-LD image fields anywhere in the structured data
    for raw in _json_ld_image_urls(page.json_ld):
        add(raw, validate=False)
    after_json_ld = len(found)

    # 4: gallery markup
    for selector in GALLERY_SELECTORS:
        for el in page.soup.select(selector):
            add(_element_image_url(el), validate=True)
    after_gallery = len(found)

    # 5: any <img> that is large or of unknown size
    for img in page.soup.find_all("img"):
        if _is_large_enough(img, settings.min_image_dimension):
            add(_element_image_url(img), validate=True)

    logger.debug(
        f"Image candidates: {after_meta} meta, {after_json_ld - after_meta} JSON-LD, "
        f"{after_gallery - after_json_ld} gallery, {len(found) - after_gallery} fallback"
    )
    return list(found)[:max_images]


def is_valid_image_url(url: str) -> bool:
    """Return False for URLs that are almost certainly not product photos.

    A site chrome keyword (logo, icon, sprite...) in the path or query rejects
    the URL unless it also has an image file extension, is served from a known
    image CDN, or sits under an image/product path segment.
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return False

    host = parts.netloc.lower()
    path = parts.path.lower()
    target = f"{path}?{parts.query.lower()}"

    if not any(word in target for word in NON_PRODUCT_IMAGE_KEYWORDS):
        return True
    return (
        any(cdn in host for cdn in IMAGE_CDN_HOSTS)
        or bool(IMAGE_EXTENSION_RE.search(path))
        or any(hint in path for hint in IMAGE_PATH_HINTS)
    )


def _json_ld_image_urls(json_ld: list[Any]) -> list[str]:
    """Every URL held by an `image` field anywhere in the JSON-LD blocks."""
    urls: list[str] = []
    for obj in iter_json_objects(json_ld):
        if "image" in obj:
            urls.extend(_image_value_urls(obj["image"]))
    return urls


def _image_value_urls(value: Any) -> list[str]:
    """Normalize a JSON-LD image value: string, ImageObject, or a list of either."""
    if isinstance(value, str):
        return [value]
    if isinstance(value, dict):
        url = value.get("url") or value.get("contentUrl")
        return [url] if isinstance(url, str) else []
    if isinstance(value, list):
        urls: list[str] = []
        for item in value:
            if isinstance(item, (str, dict)):
                urls.extend(_image_value_urls(item))
        return urls
    return []


def _element_image_url(el: Tag) -> str | None:
    """Best image URL on an <img>/<source>/gallery element.

    Zoom and lazy-load attributes beat srcset, which beats src (often a
    placeholder on lazy-loaded galleries).
    """
    for attr in GALLERY_URL_ATTRIBUTES:
        value = el.get(attr)
        if isinstance(value, str) and value.strip() and not value.startswith("data:"):
            return value
    for attr in SRCSET_ATTRIBUTES:
        best = best_from_srcset(el.get(attr))
        if best:
            return best
    src = el.get("src")
    return src if isinstance(src, str) else None


def _parse_dimension(value: Any) -> int | None:
    """Parse a width/height attribute ("600", "600px"). Percentages count as unknown."""
    if not isinstance(value, str):
        return None
    value = value.strip().lower()
    if value.endswith("%"):
        return None
    match = re.match(r"(\d+)", value)
    return int(match.group(1)) if match else None


def _is_large_enough(img: Tag, min_dimension: int) -> bool:
    width = _parse_dimension(img.get("width"))
    height = _parse_dimension(img.get("height"))
    if width is None and height is None:
        return True  # unknown size: keep it
    return (width or 0) >= min_dimension or (height or 0) >= min_dimension


# ===== Metadata =====


def extract_metadata(page: ParsedPage) -> ProductMetadata:
    """Pull product metadata from meta tags, markup, and JSON-LD.

    Rendered markup wins over JSON-LD; JSON-LD only fills fields the markup
    left empty. og:site_name is the brand of last resort and is applied after
    JSON-LD so a declared Product brand beats the store name.
    """
    fields: dict[str, str | None] = {
        "title": _from_sources(page, TITLE_SOURCES),
        "description": _from_sources(page, DESCRIPTION_SOURCES),
        "price": extract_price(page),
        "currency": _from_sources(page, CURRENCY_SOURCES),
        "brand": _from_sources(page, BRAND_SOURCES[:-1]),
        "sku": None,
        "availability": None,
    }

    _fill_from_json_ld(page.json_ld, fields)

    if not fields["brand"]:
        fields["brand"] = _from_sources(page, BRAND_SOURCES[-1:])
    fields["currency"] = _normalize_currency(fields["currency"])

    fields.update(infer_ring_attributes(fields["description"]))

    metadata = ProductMetadata(**{k: v for k, v in fields.items() if v is not None})
    logger.debug(f"Metadata fields found: {sorted(metadata.model_dump(exclude_none=True))}")
    return metadata


def extract_price(page: ParsedPage) -> str | None:
    """First price found by the ordered selector list, thousands separators stripped."""
    for selector in PRICE_SELECTORS:
        for el in page.soup.select(selector):
            price = normalize_price(_element_value(el))
            if price:
                return price
    return None


def normalize_price(text: str | None) -> str | None:
    """Pull the first number out of a price string: "$3,499.00" → "3499.00"."""
    if not text:
        return None
    match = PRICE_RE.search(str(text))
    if not match:
        return None
    return match.group().replace(",", "").rstrip(".")


def _normalize_currency(value: str | None) -> str:
    if value and re.fullmatch(r"[A-Za-z]{3}", value.strip()):
        return value.strip().upper()
    return DEFAULT_CURRENCY


def _fill_from_json_ld(json_ld: list[Any], fields: dict[str, str | None]) -> None:
    """Fill still-empty fields from the first JSON-LD Product and its first offer."""
    product = find_json_ld_product(json_ld)
    if product is None:
        return

    _set_if_empty(fields, "title", _as_text(product.get("name")))
    _set_if_empty(fields, "description", _as_text(product.get("description")))
    _set_if_empty(fields, "sku", _as_text(product.get("sku")))
    _set_if_empty(fields, "brand", _as_text(product.get("brand")))

    offer = _first_offer(product.get("offers"))
    if offer is None:
        return

    price = offer.get("price") or offer.get("lowPrice")
    if price is None and isinstance(offer.get("priceSpecification"), dict):
        price = offer["priceSpecification"].get("price")
    _set_if_empty(fields, "price", normalize_price(_as_text(price)))
    _set_if_empty(fields, "currency", _as_text(offer.get("priceCurrency")))

    availability = _as_text(offer.get("availability"))
    if availability:
        # "https://schema.org/InStock" → "InStock"
        availability = availability.rstrip("/").rsplit("/", 1)[-1]
    _set_if_empty(fields, "availability", availability)


def find_json_ld_product(json_ld: list[Any]) -> dict | None:
    """First object typed Product (or a Product variant) anywhere in the JSON-LD."""
    for obj in iter_json_objects(json_ld):
        types = obj.get("@type")
        if isinstance(types, str):
            types = [types]
        if isinstance(types, list) and PRODUCT_TYPES.intersection(t for t in types if isinstance(t, str)):
            return obj
    return None


def _first_offer(offers: Any) -> dict | None:
    if isinstance(offers, list):
        offers = next((o for o in offers if isinstance(o, dict)), None)
    if isinstance(offers, dict):
        # AggregateOffer may nest the concrete offers
        nested = offers.get("offers")
        if not offers.get("price") and not offers.get("lowPrice") and nested:
            return _first_offer(nested) or offers
        return offers
    return None


def _as_text(value: Any) -> str | None:
    """Flatten a JSON-LD scalar or {"name": ...} object to text."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return _clean_text(value) or None
    if isinstance(value, dict):
        return _as_text(value.get("name"))
    if isinstance(value, list) and value:
        return _as_text(value[0])
    return None


def _set_if_empty(fields: dict[str, str | None], key: str, value: str | None) -> None:
    if value and not fields.get(key):
        fields[key] = value


# ===== Ring attributes =====


def _compile_vocabulary(table: tuple[tuple[str, str], ...]) -> list[tuple[re.Pattern, str]]:
    return [(re.compile(rf"\b(?:{pattern})\b"), value) for pattern, value in table]


_RING_VOCABULARIES = [
    ("metal_type", _compile_vocabulary(METAL_TYPES)),
    ("gemstone", _compile_vocabulary(DIAMOND_SHAPES)),
    ("setting", _compile_vocabulary(SETTING_STYLES)),
]


def infer_ring_attributes(description: str | None) -> dict[str, str]:
    """Best-effort ring attributes from description text.

    Each vocabulary is scanned in order and the first whole-word hit wins,
    so "oval center stone with round accents" reads as round. A missing
    attribute is normal; a wrong one is possible on ambiguous copy.
    """
    if not description:
        return {}

    text = description.lower()
    attributes: dict[str, str] = {}

    for field_name, vocabulary in _RING_VOCABULARIES:
        for pattern, value in vocabulary:
            if pattern.search(text):
                attributes[field_name] = value
                break

    carat = CARAT_RE.search(text)
    if carat:
        attributes["carat_weight"] = f"{carat.group(1)} ct"

    return attributes
