import asyncio

import httpx
import pytest

from conftest import RING_PAGE_HTML, RING_PAGE_URL, html_handler, make_client, pad_html
from errors import (
    AccessBlocked,
    BotProtectionDetected,
    ConnectionFailed,
    FetchFailed,
    RateLimited,
    RequestTimeout,
)
from fetcher import BROWSER_HEADERS, detect_bot_protection, fetch_page
from vendors import resolve_vendor


@pytest.mark.asyncio
async def test_fetch_page_success_sends_browser_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.headers)
        return httpx.Response(200, text=RING_PAGE_HTML)

    async with make_client(handler) as client:
        page = await fetch_page(RING_PAGE_URL, client=client)

    assert page.status_code == 200
    assert page.html == RING_PAGE_HTML
    assert page.url == RING_PAGE_URL
    assert seen["user-agent"] == BROWSER_HEADERS["User-Agent"]
    assert seen["sec-fetch-mode"] == "navigate"


@pytest.mark.asyncio
async def test_fetch_page_follows_redirects():
    final_url = "https://uk.tiffany.com/engagement/rings/setting/"

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == RING_PAGE_URL:
            return httpx.Response(301, headers={"location": final_url})
        return httpx.Response(200, text=RING_PAGE_HTML)

    async with make_client(handler) as client:
        page = await fetch_page(RING_PAGE_URL, client=client)

    assert page.url == final_url
    assert page.status_code == 200


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, error, expected_status",
    [
        (403, AccessBlocked, 403),
        (429, RateLimited, 429),
        (404, FetchFailed, 404),
        (500, FetchFailed, 500),
        (503, FetchFailed, 503),
    ],
)
async def test_fetch_page_classifies_error_statuses(status, error, expected_status):
    async with make_client(html_handler("<html>nope</html>", status)) as client:
        with pytest.raises(error) as exc:
            await fetch_page(RING_PAGE_URL, client=client)
    assert exc.value.status_code == expected_status


@pytest.mark.asyncio
async def test_access_blocked_message_names_vendor():
    vendor = resolve_vendor(RING_PAGE_URL)
    async with make_client(html_handler("", 403)) as client:
        with pytest.raises(AccessBlocked) as exc:
            await fetch_page(RING_PAGE_URL, client=client, vendor=vendor)
    assert "Tiffany & Co." in exc.value.message


@pytest.mark.asyncio
async def test_upstream_error_body_not_in_message():
    async with make_client(html_handler("<pre>Traceback: secret upstream detail</pre>", 500)) as client:
        with pytest.raises(FetchFailed) as exc:
            await fetch_page(RING_PAGE_URL, client=client)
    assert "secret" not in exc.value.message


@pytest.mark.asyncio
async def test_fetch_page_timeout_cancels_request():
    cancelled = asyncio.Event()

    async def slow_handler(request: httpx.Request) -> httpx.Response:
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return httpx.Response(200, text=RING_PAGE_HTML)

    async with make_client(slow_handler) as client:
        with pytest.raises(RequestTimeout) as exc:
            await fetch_page(RING_PAGE_URL, client=client, timeout=0.05)

    assert exc.value.status_code == 504
    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_fetch_page_uses_configured_timeout(monkeypatch):
    monkeypatch.setenv("FETCH_TIMEOUT_SECONDS", "0.05")

    async def slow_handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, text=RING_PAGE_HTML)

    async with make_client(slow_handler) as client:
        with pytest.raises(RequestTimeout):
            await fetch_page(RING_PAGE_URL, client=client)


@pytest.mark.asyncio
async def test_fetch_page_httpx_timeout_is_request_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    async with make_client(handler) as client:
        with pytest.raises(RequestTimeout):
            await fetch_page(RING_PAGE_URL, client=client)


@pytest.mark.asyncio
async def test_fetch_page_connection_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    async with make_client(handler) as client:
        with pytest.raises(ConnectionFailed) as exc:
            await fetch_page(RING_PAGE_URL, client=client)
    assert exc.value.status_code == 502


@pytest.mark.asyncio
async def test_fetch_page_redirect_loop():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"location": RING_PAGE_URL})

    async with make_client(handler) as client:
        with pytest.raises(FetchFailed):
            await fetch_page(RING_PAGE_URL, client=client)


def test_detect_bot_protection_passes_real_page():
    detect_bot_protection(RING_PAGE_HTML)


def test_detect_bot_protection_short_body():
    with pytest.raises(BotProtectionDetected) as exc:
        detect_bot_protection("<html><body>Loading…</body></html>")
    assert exc.value.status_code == 403


@pytest.mark.parametrize(
    "marker",
    [
        '<div id="cf-browser-verification"></div>',
        '<script src="/cdn-cgi/challenge-platform/h/b/orchestrate/jsch/v1"></script>',
        '<div class="g-recaptcha" data-sitekey="abc"></div>',
        "<h1>Access Denied</h1>",
        '<script src="https://geo.captcha-delivery.com/captcha/"></script>',
    ],
)
def test_detect_bot_protection_markers(marker):
    with pytest.raises(BotProtectionDetected):
        detect_bot_protection(pad_html(marker))


def test_detect_bot_protection_threshold_is_configurable(monkeypatch):
    detect_bot_protection("<html>tiny</html>", min_length=10)
    monkeypatch.setenv("MIN_BODY_LENGTH", "5")
    detect_bot_protection("<html>tiny</html>")
