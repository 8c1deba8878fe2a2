"""
Supported jewelry retailers and URL-to-vendor resolution.

Matching is substring-based on the hostname so regional and country
subdomains (uk.tiffany.com, www.bluenile.com) resolve to the base vendor.
"""

import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx

from errors import InvalidUrl, MissingUrl

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Vendor:
    domain: str  # hostname pattern, also the vendor id returned to clients
    name: str


# Ordered: the first containing match wins. Entries are expected to be
# disjoint, so order only matters for hypothetical overlaps.
VENDORS: tuple[Vendor, ...] = (
    Vendor("www.tiffany.com", "Tiffany & Co."),
    Vendor("www.bluenile.com", "Blue Nile"),
    Vendor("www.jamesallen.com", "James Allen"),
    Vendor("www.brilliantearth.com", "Brilliant Earth"),
    Vendor("www.cartier.com", "Cartier"),
    Vendor("www.harrywinston.com", "Harry Winston"),
    Vendor("www.debeers.com", "De Beers"),
    Vendor("www.davidyurman.com", "David Yurman"),
    Vendor("www.kay.com", "Kay Jewelers"),
    Vendor("www.zales.com", "Zales"),
    Vendor("www.jared.com", "Jared"),
    Vendor("www.shaneco.com", "Shane Co."),
    Vendor("www.helzberg.com", "Helzberg Diamonds"),
    Vendor("www.ritani.com", "Ritani"),
    Vendor("www.vrai.com", "VRAI"),
    Vendor("www.cleanorigin.com", "Clean Origin"),
    Vendor("www.withclarity.com", "With Clarity"),
    Vendor("www.rarecarat.com", "Rare Carat"),
    Vendor("www.whiteflash.com", "Whiteflash"),
    Vendor("www.adiamor.com", "Adiamor"),
    Vendor("www.mejuri.com", "Mejuri"),
    Vendor("www.etsy.com", "Etsy"),
)


def _strip_www(domain: str) -> str:
    domain = domain.lower()
    return domain[4:] if domain.startswith("www.") else domain


def vendor_id(vendor: Vendor) -> str:
    """Identifier reported to clients: the vendor domain without 'www.'."""
    return _strip_www(vendor.domain)


def supported_vendor_names() -> list[str]:
    return [v.name for v in VENDORS]


def resolve_vendor(url: str) -> Vendor | None:
    """Map a URL to a supported vendor, or None when unknown or unparseable."""
    try:
        hostname = urlsplit(url.strip()).hostname
    except (ValueError, AttributeError):
        return None
    if not hostname:
        return None

    hostname = hostname.lower()
    for vendor in VENDORS:
        if _strip_www(vendor.domain) in hostname:
            return vendor
    return None


def validate_url(url: str | None) -> str:
    """Return the stripped URL if it is an absolute http(s) URL.

    Raises MissingUrl for an empty value and InvalidUrl for anything that
    does not parse with a scheme and hostname, or that httpx would refuse
    to send (bad port, control characters).
    """
    if url is None or not url.strip():
        raise MissingUrl()

    url = url.strip()
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        parts.port  # non-numeric or out-of-range port raises ValueError
        # what the fetcher will send; rejects control characters urlsplit lets through
        httpx.URL(url)
    except (ValueError, httpx.InvalidURL):
        logger.debug(f"Unparseable URL {url!r}")
        raise InvalidUrl() from None

    if parts.scheme.lower() not in ("http", "https") or not hostname or "." not in hostname:
        raise InvalidUrl()
    return url
