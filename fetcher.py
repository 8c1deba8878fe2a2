"""
Product page fetching and bot-protection detection.

One GET per import with browser-like headers, redirects followed and a hard
wall-clock timeout. Every non-success outcome is mapped to a RingImportError
so the API can answer with a specific, user-readable reason.
"""

import asyncio
import logging
from dataclasses import dataclass

import httpx

from config import get_settings
from errors import (
    AccessBlocked,
    BotProtectionDetected,
    ConnectionFailed,
    FetchFailed,
    RateLimited,
    RequestTimeout,
)
from vendors import Vendor
from vocabulary import BOT_PROTECTION_MARKERS

logger = logging.getLogger(__name__)

# Mimic a current desktop Chrome so trivial user-agent blocks don't trip.
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    ),
    "Accept": (
        "text/html,application/xhtml+xml,application/xml;q=0.9,"
        "image/avif,image/webp,image/apng,*/*;q=0.8"
    ),
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "Sec-Ch-Ua": '"Chromium";v="124", "Google Chrome";v="124", "Not-A.Brand";v="99"',
    "Sec-Ch-Ua-Mobile": "?0",
    "Sec-Ch-Ua-Platform": '"Windows"',
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}


@dataclass
class FetchedPage:
    html: str
    status_code: int
    url: str  # effective URL after redirects


async def fetch_page(
    url: str,
    client: httpx.AsyncClient | None = None,
    vendor: Vendor | None = None,
    timeout: float | None = None,
) -> FetchedPage:
    """GET a product page and classify failures.

    When no client is given, a private one is opened and closed around the
    request. A request still running after `timeout` seconds is cancelled
    and reported as RequestTimeout.
    """
    if timeout is None:
        timeout = get_settings().fetch_timeout_seconds

    if client is None:
        async with httpx.AsyncClient(follow_redirects=True, timeout=timeout) as own_client:
            return await _fetch(own_client, url, vendor, timeout)
    return await _fetch(client, url, vendor, timeout)


async def _fetch(client: httpx.AsyncClient, url: str, vendor: Vendor | None, timeout: float) -> FetchedPage:
    vendor_name = vendor.name if vendor else "This retailer"

    try:
        response = await asyncio.wait_for(
            client.get(url, headers=BROWSER_HEADERS, follow_redirects=True),
            timeout=timeout,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        logger.warning(f"Fetch timed out after {timeout:.1f}s: {url}")
        raise RequestTimeout(
            f"{vendor_name} took too long to respond. Please try again in a moment."
        ) from None
    except httpx.TooManyRedirects:
        logger.warning(f"Redirect loop fetching {url}")
        raise FetchFailed("That link redirects too many times. Please copy the product URL again.") from None
    except httpx.TransportError as e:
        logger.warning(f"Connection failed for {url}: {e}")
        raise ConnectionFailed() from None

    status = response.status_code
    final_url = str(response.url)
    if final_url != url:
        logger.info(f"Followed redirect {url} -> {final_url}")

    if status == 403:
        logger.warning(f"Origin returned 403 for {url}")
        raise AccessBlocked(
            f"{vendor_name} is blocking automated access to this page. "
            "Try saving the product image and uploading it instead."
        )
    if status == 429:
        logger.warning(f"Origin returned 429 for {url}")
        raise RateLimited(f"{vendor_name} is limiting requests right now. Please wait a minute and try again.")
    if not response.is_success:
        logger.warning(f"Origin returned {status} for {url}")
        raise FetchFailed(
            f"{vendor_name} returned an error (HTTP {status}). Please check the link and try again.",
            status_code=status if status >= 400 else 502,
        )

    return FetchedPage(html=response.text, status_code=status, url=final_url)


def detect_bot_protection(html: str, min_length: int | None = None) -> None:
    """Raise BotProtectionDetected if the page looks like a challenge wall.

    Heuristic: a known challenge/CAPTCHA marker anywhere in the body, or a
    body too short to be a real product page. Expect false positives on
    pages that embed a CAPTCHA widget in, say, a newsletter form.
    """
    if min_length is None:
        min_length = get_settings().min_body_length

    if len(html) < min_length:
        logger.warning(f"Body only {len(html)} chars (< {min_length}); treating as bot wall")
        raise BotProtectionDetected()

    body = html.lower()
    for marker in BOT_PROTECTION_MARKERS:
        if marker in body:
            logger.warning(f"Bot protection marker found: {marker!r}")
            raise BotProtectionDetected()
