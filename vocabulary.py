"""
Static heuristic tables used by the fetcher and the extractors.

Everything here is ordered data: selectors are tried top to bottom and
vocabularies stop at the first hit, so extending coverage means appending
entries rather than touching extraction code.
"""

import re

# ---------------------------------------------------------------------------
# Bot protection
# ---------------------------------------------------------------------------

# Lower-cased substrings that only show up on challenge/interstitial pages.
BOT_PROTECTION_MARKERS: tuple[str, ...] = (
    "cf-browser-verification",
    "challenge-platform",
    "cf_chl_opt",
    "attention required! | cloudflare",
    "just a moment...",
    "g-recaptcha",
    "h-captcha",
    "px-captcha",
    "captcha-delivery.com",  # DataDome
    "_incapsula_resource",
    "distil_r_captcha",
    "are you a robot",
    "access denied",
)

# ---------------------------------------------------------------------------
# Images
# ---------------------------------------------------------------------------

OG_IMAGE_KEYS: tuple[str, ...] = ("og:image", "og:image:url", "og:image:secure_url")
TWITTER_IMAGE_KEYS: tuple[str, ...] = ("twitter:image", "twitter:image:src")

# CSS selectors matching product-gallery markup across common platforms.
GALLERY_SELECTORS: tuple[str, ...] = (
    "img[class*='product-image']",
    "[class*='product-image'] img",
    "[class*='product__image'] img",
    "[class*='pdp-image'] img",
    "img[class*='pdp-image']",
    "[class*='product-media'] img",
    "[class*='product-gallery'] img",
    "[class*='gallery'] img",
    "[id*='gallery'] img",
    "[class*='carousel'] img",
    "[class*='slider'] img",
    "[class*='zoom'] img",
    "[data-zoom-image]",
    "picture source",
    "img[data-src]",
    "img[data-lazy-src]",
)

# Attributes checked per gallery element, highest resolution first.
# srcset-style attributes are handled separately (they hold several URLs).
GALLERY_URL_ATTRIBUTES: tuple[str, ...] = (
    "data-zoom-image",
    "data-large-image",
    "data-zoom-src",
    "data-full-src",
    "data-src",
    "data-lazy-src",
    "data-original",
)
SRCSET_ATTRIBUTES: tuple[str, ...] = ("srcset", "data-srcset")

# Site chrome that is never the product photo.
NON_PRODUCT_IMAGE_KEYWORDS: tuple[str, ...] = (
    "logo",
    "icon",
    "sprite",
    "pixel",
    "tracking",
    "analytics",
    "placeholder",
    "loading",
)

IMAGE_EXTENSION_RE = re.compile(r"\.(jpe?g|png|webp|avif|gif)(\?|#|$)", re.IGNORECASE)

# Image CDNs that only serve uploaded media; a hit here outranks the keyword blocklist.
IMAGE_CDN_HOSTS: tuple[str, ...] = ("cloudinary", "imgix", "shopify", "scene7")
IMAGE_PATH_HINTS: tuple[str, ...] = ("/images/", "/product/", "/products/", "/is/image/")

# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------

# (kind, key) pairs: "meta" looks up a <meta> by property/name/itemprop,
# "text" takes the first element matching a CSS selector (content attr or text).
TITLE_SOURCES: tuple[tuple[str, str], ...] = (
    ("meta", "og:title"),
    ("meta", "twitter:title"),
    ("text", "h1"),
    ("text", "title"),
)

DESCRIPTION_SOURCES: tuple[tuple[str, str], ...] = (
    ("meta", "og:description"),
    ("meta", "description"),
    ("text", "[class*='product-description']"),
    ("text", "[class*='product__description']"),
)

CURRENCY_SOURCES: tuple[tuple[str, str], ...] = (
    ("meta", "product:price:currency"),
    ("meta", "og:price:currency"),
    ("text", "[itemprop='priceCurrency']"),
)

BRAND_SOURCES: tuple[tuple[str, str], ...] = (
    ("meta", "og:brand"),
    ("meta", "product:brand"),
    ("text", "[itemprop='brand']"),
    ("meta", "og:site_name"),
)

_NOT_COMPARE_AT = ":not([class*='compare']):not([class*='was']):not([class*='original']):not([class*='strike'])"

PRICE_SELECTORS: tuple[str, ...] = (
    f"[class*='sale-price']{_NOT_COMPARE_AT}",
    f"[class*='product-price']{_NOT_COMPARE_AT}",
    f"[class*='price']{_NOT_COMPARE_AT}",
    "[data-testid*='price']",
    "[itemprop='price']",
    "meta[property='product:price:amount']",
    "meta[property='og:price:amount']",
)

PRICE_RE = re.compile(r"\d[\d,]*\.?\d*")

DEFAULT_CURRENCY = "USD"

# ---------------------------------------------------------------------------
# Ring attributes (matched against the lower-cased description)
# ---------------------------------------------------------------------------

# (pattern, value) pairs; patterns are whole-word regexes.
METAL_TYPES: tuple[tuple[str, str], ...] = (
    (r"platinum", "platinum"),
    (r"white gold", "white gold"),
    (r"yellow gold", "yellow gold"),
    (r"rose gold", "rose gold"),
    (r"18k|18 karat|18kt", "18k gold"),
    (r"14k|14 karat|14kt", "14k gold"),
    (r"palladium", "palladium"),
)

DIAMOND_SHAPES: tuple[tuple[str, str], ...] = (
    (r"round", "round cut diamond"),
    (r"princess", "princess cut diamond"),
    (r"cushion", "cushion cut diamond"),
    (r"oval", "oval cut diamond"),
    (r"emerald", "emerald cut diamond"),
    (r"pear", "pear cut diamond"),
    (r"marquise", "marquise cut diamond"),
    (r"radiant", "radiant cut diamond"),
    (r"asscher", "asscher cut diamond"),
    (r"heart", "heart cut diamond"),
)

SETTING_STYLES: tuple[tuple[str, str], ...] = (
    (r"halo", "halo"),
    (r"three[- ]stone", "three stone"),
    (r"pav[eé]", "pavé"),
    (r"bezel", "bezel"),
    (r"cathedral", "cathedral"),
    (r"tension", "tension"),
    (r"channel", "channel"),
    (r"vintage", "vintage"),
    (r"solitaire", "solitaire"),
    (r"prong", "prong"),
)

CARAT_RE = re.compile(r"(\d*\.?\d+)\s*(?:tcw|ctw|ct|carats?)\b")
