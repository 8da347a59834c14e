"""Playwright-based fetcher for JavaScript-rendered and lazy-loading pages."""

import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Route, async_playwright

from app.services.fetcher import DEFAULT_HEADERS, MAX_CONTENT_SIZE, validate_url

logger = logging.getLogger(__name__)

TIMEOUT_MS = 30_000  # 30 s in milliseconds
SETTLE_MS = 2_000  # pause after load for late client-side rendering
SCROLL_STEP_PX = 100
SCROLL_INTERVAL_MS = 100
MAX_SCROLL_PX = 20_000  # infinite-scroll pages never reach the bottom
EXPAND_WAIT_MS = 500

# Resource types that never contribute text to the page
BLOCKED_RESOURCE_TYPES = {"image", "stylesheet", "font", "media"}

# "Show more" / "Read more" expanders clicked before capturing the HTML
EXPANDER_SELECTORS = (
    'button[aria-label*="show more" i]',
    'button[aria-label*="expand" i]',
    'button:has-text("Show More")',
    'button:has-text("Read More")',
    'a:has-text("Show More")',
    'a:has-text("Read More")',
    '[class*="show-more"]',
    '[class*="read-more"]',
)

_AUTO_SCROLL_JS = """
async ([step, interval, limit]) => {
    await new Promise((resolve) => {
        let scrolled = 0;
        const timer = setInterval(() => {
            window.scrollBy(0, step);
            scrolled += step;
            if (scrolled >= document.documentElement.scrollHeight || scrolled >= limit) {
                clearInterval(timer);
                resolve();
            }
        }, interval);
    });
}
"""


async def _block_heavy_resources(route: Route) -> None:
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


async def _expand_hidden_content(page: Page) -> None:
    """Click every expander button found on the page; failures are per-selector."""
    for selector in EXPANDER_SELECTORS:
        try:
            for handle in await page.query_selector_all(selector):
                await handle.click(timeout=EXPAND_WAIT_MS)
            await page.wait_for_timeout(EXPAND_WAIT_MS)
        except PlaywrightError as exc:
            logger.debug("Expander %s could not be clicked: %s", selector, exc)


async def fetch_url_with_browser(url: str) -> str:
    """Render *url* with a headless Chromium browser and return the full HTML.

    Images, stylesheets, fonts and media are not downloaded.  After the
    network settles the page is scrolled to the bottom to trigger lazy
    loading and "show more" expanders are clicked.

    Raises:
        ValueError: if the URL fails SSRF / scheme validation.
        RuntimeError: if the rendered HTML exceeds MAX_CONTENT_SIZE.
        playwright.async_api.Error: on browser/network errors.
    """
    validate_url(url)

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(
            headless=True,
            args=[
                # --no-sandbox is required when running as root inside a container
                "--no-sandbox",
                "--disable-dev-shm-usage",
                "--disable-gpu",
            ],
        )
        context = await browser.new_context(
            user_agent=DEFAULT_HEADERS["User-Agent"],
            extra_http_headers={
                k: v for k, v in DEFAULT_HEADERS.items() if k != "User-Agent"
            },
        )
        page = await context.new_page()
        try:
            await page.route("**/*", _block_heavy_resources)
            await page.goto(url, wait_until="networkidle", timeout=TIMEOUT_MS)
            await page.wait_for_timeout(SETTLE_MS)
            await page.evaluate(_AUTO_SCROLL_JS, [SCROLL_STEP_PX, SCROLL_INTERVAL_MS, MAX_SCROLL_PX])
            await _expand_hidden_content(page)
            html = await page.content()
        finally:
            await context.close()
            await browser.close()

    if len(html.encode()) > MAX_CONTENT_SIZE:
        raise RuntimeError("Rendered HTML exceeds the maximum allowed size.")

    return html
