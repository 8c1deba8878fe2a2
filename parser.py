"""
HTML parser for retailer product pages.

Turns raw HTML into a ParsedPage: the BeautifulSoup tree plus the pieces
both extractors need up front (JSON-LD blocks, <meta> tags, the page URL
for resolving relative links).
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


@dataclass
class ParsedPage:
    """A parsed product page. Owned by a single import request."""

    soup: BeautifulSoup
    url: str  # effective page URL, used as the base for relative links
    json_ld: list[Any] = field(default_factory=list)
    meta_tags: dict[str, list[str]] = field(default_factory=dict)

    def meta(self, key: str) -> str | None:
        """First content value of a <meta> tag keyed by property, name, or itemprop."""
        values = self.meta_tags.get(key.lower())
        return values[0] if values else None

    def meta_all(self, key: str) -> list[str]:
        return self.meta_tags.get(key.lower(), [])


def parse_html(html: str, url: str) -> ParsedPage:
    """Parse an HTML page and collect its structured data sources."""
    soup = BeautifulSoup(html, "lxml")

    return ParsedPage(
        soup=soup,
        url=url,
        json_ld=_extract_json_ld(soup),
        meta_tags=_extract_meta_tags(soup),
    )


# ---------------------------------------------------------------------------
# JSON-LD
# ---------------------------------------------------------------------------


def _extract_json_ld(soup: BeautifulSoup) -> list[Any]:
    """Extract all JSON-LD blocks from <script type="application/ld+json"> tags.

    Top-level arrays are flattened; nested shapes (@graph etc.) are left for
    the extractors to walk.
    """
    results: list[Any] = []
    for tag in soup.find_all("script", attrs={"type": "application/ld+json"}):
        text = tag.string
        if not text:
            continue
        # Some CMSes wrap the payload in HTML comments or CDATA markers
        text = text.strip().removeprefix("<!--").removesuffix("-->")
        text = text.strip().removeprefix("//<![CDATA[").removesuffix("//]]>")
        try:
            # strict=False tolerates raw newlines inside strings, which is common
            data = json.loads(text, strict=False)
        except (json.JSONDecodeError, TypeError):
            logger.debug("Skipping malformed JSON-LD block")
            continue
        if isinstance(data, list):
            results.extend(data)
        else:
            results.append(data)
    return results


# ---------------------------------------------------------------------------
# Meta tags
# ---------------------------------------------------------------------------


def _extract_meta_tags(soup: BeautifulSoup) -> dict[str, list[str]]:
    """Collect <meta> content values keyed by property=, name=, and itemprop=.

    Keys are lower-cased. Repeated keys (several og:image tags) keep every
    value in document order.
    """
    tags: dict[str, list[str]] = {}
    for meta in soup.find_all("meta"):
        content = meta.get("content")
        if not content or not isinstance(content, str):
            continue
        content = content.strip()
        if not content:
            continue
        for attr in ("property", "name", "itemprop"):
            key = meta.get(attr)
            if key and isinstance(key, str):
                tags.setdefault(key.strip().lower(), []).append(content)
    return tags


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------


def resolve_url(raw: str | None, page_url: str) -> str | None:
    """Resolve an image/link reference found on page_url to an absolute URL.

    Protocol-relative references get https:, root-relative ones the page
    origin, everything else is joined against the page URL. Anything that
    does not end up as an http(s) URL (data:, javascript:, ftp:...) resolves
    to None.
    """
    if not raw or not isinstance(raw, str):
        return None
    url = raw.strip()
    if not url:
        return None

    if url.startswith("//"):
        url = "https:" + url
    elif url.startswith("/"):
        parts = urlsplit(page_url)
        url = f"{parts.scheme}://{parts.netloc}{url}"
    elif not url.lower().startswith(("http://", "https://")):
        url = urljoin(page_url, url)

    if not url.lower().startswith(("http://", "https://")):
        return None
    return url


def best_from_srcset(srcset: str | None) -> str | None:
    """Parse an srcset attribute and return the highest-resolution URL.

    Handles both width descriptors (e.g. '800w') and pixel-density
    descriptors (e.g. '2x').  Falls back to the last entry when no
    descriptor is present.
    """
    if not srcset or not isinstance(srcset, str):
        return None

    best_url: str | None = None
    best_value: float = 0

    for entry in srcset.split(","):
        parts = entry.strip().split()
        if not parts:
            continue
        url = parts[0]
        if not url:
            continue

        if len(parts) >= 2:
            descriptor = parts[-1].strip().lower()
            try:
                if descriptor.endswith("w") or descriptor.endswith("x"):
                    value = float(descriptor[:-1])
                else:
                    value = 0
            except ValueError:
                value = 0
        else:
            # No descriptor: treat as a single candidate
            value = 1

        if value >= best_value:
            best_url = url
            best_value = value

    return best_url
