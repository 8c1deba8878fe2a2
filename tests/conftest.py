import json

import httpx
import pytest

from config import get_settings
from parser import parse_html

RING_PAGE_URL = "https://www.tiffany.com/engagement/rings/the-tiffany-setting-60000123/"

RING_JSON_LD = {
    "@context": "https://schema.org",
    "@type": "Product",
    "name": "The Tiffany Setting (JSON-LD)",
    "description": "JSON-LD description that should lose to the meta tag.",
    "sku": "60000123",
    "brand": {"@type": "Brand", "name": "Tiffany & Co."},
    "image": [
        "https://media.tiffany.com/is/image/Tiffany/EcomItemL2/setting-front",
        "/images/rings/setting-top.jpg",
    ],
    "offers": {
        "@type": "Offer",
        "price": "3499.00",
        "priceCurrency": "USD",
        "availability": "https://schema.org/InStock",
    },
}

RING_PAGE_HTML = f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>The Tiffany Setting | Tiffany &amp; Co.</title>
  <meta property="og:title" content="The Tiffany Setting Engagement Ring">
  <meta property="og:description" content="A platinum engagement ring with a round cut diamond, 1.5 ct total weight, held in the classic six-prong solitaire setting.">
  <meta property="og:site_name" content="Tiffany &amp; Co. Official Site">
  <meta property="og:image" content="https://media.tiffany.com/is/image/Tiffany/EcomItemL2/setting-front">
  <meta name="twitter:image" content="//media.tiffany.com/is/image/Tiffany/EcomItemL2/setting-side">
  <meta property="product:price:currency" content="USD">
  <script type="application/ld+json">{json.dumps(RING_JSON_LD)}</script>
</head>
<body>
  <header class="site-header">
    <img src="/assets/logo.svg" width="120" height="40" alt="Tiffany &amp; Co.">
  </header>
  <main>
    <h1>The Tiffany Setting</h1>
    <div class="product-gallery">
      <img src="/images/placeholder.gif" data-src="/images/rings/setting-hand.jpg" alt="On hand">
      <picture>
        <source srcset="/images/rings/setting-box-400.webp 400w, /images/rings/setting-box-1200.webp 1200w">
        <img src="/images/rings/setting-box-400.webp" alt="In the box">
      </picture>
    </div>
    <div class="product-info">
      <span class="price compare-at-price">$4,000.00</span>
      <span class="price sale-price">$3,499.00</span>
      <div class="product-description">
        <p>Since 1886 the Tiffany Setting has held a single diamond up to the light.
        Six platinum prongs lift the stone above the band so it can sparkle from
        every angle. Each ring is inspected by hand before it leaves the workshop,
        and every diamond is responsibly sourced with known provenance.</p>
      </div>
    </div>
    <section class="recommendations">
      <h2>You may also like</h2>
      <img src="https://www.tiffany.com/images/recs/earrings.jpg" width="300" height="300" alt="Earrings">
      <img src="https://www.tiffany.com/images/recs/tiny.jpg" width="50" height="50" alt="Bracelet">
    </section>
  </main>
  <footer>
    <p>Customer service, store locator, gift cards, corporate responsibility and careers.
    Complimentary shipping and returns on all orders. Engraving available on most rings.</p>
  </footer>
</body>
</html>
"""

EXPECTED_IMAGES = [
    "https://media.tiffany.com/is/image/Tiffany/EcomItemL2/setting-front",
    "https://media.tiffany.com/is/image/Tiffany/EcomItemL2/setting-side",
    "https://www.tiffany.com/images/rings/setting-top.jpg",
    "https://www.tiffany.com/images/rings/setting-hand.jpg",
    "https://www.tiffany.com/images/rings/setting-box-400.webp",
    "https://www.tiffany.com/images/rings/setting-box-1200.webp",
    "https://www.tiffany.com/images/recs/earrings.jpg",
]


def pad_html(body: str, head: str = "") -> str:
    """Wrap a snippet in a page long enough to pass the short-body bot check."""
    filler = "<p>" + ("Hand-finished in our workshop. " * 60) + "</p>"
    return f"<html><head>{head}</head><body>{body}{filler}</body></html>"


def make_client(handler) -> httpx.AsyncClient:
    """An AsyncClient whose requests are answered by handler instead of the network."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)


def html_handler(html: str = RING_PAGE_HTML, status_code: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, text=html, headers={"content-type": "text/html"})

    return handler


@pytest.fixture(autouse=True)
def fresh_settings():
    """Drop cached settings so monkeypatched env vars take effect per test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def ring_page():
    return parse_html(RING_PAGE_HTML, RING_PAGE_URL)
