import logging

import httpx
from fastapi import APIRouter, HTTPException, Query
from playwright.async_api import Error as PlaywrightError

from app.models.request import NormalizeRequest, RenderMode
from app.models.response import ContentResponse
from app.services.browser_fetcher import fetch_url_with_browser
from app.services.fetcher import fetch_url
from app.services.normalizer import normalize

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Content"])


@router.get(
    "/fetch-content",
    response_model=ContentResponse,
    summary="Fetch a page and return its main content as Markdown",
)
async def fetch_content(
    url: str = Query(..., min_length=1, description="Absolute http(s) URL of the page."),
    render_mode: RenderMode = Query(
        "http", description="``http`` for a plain request, ``browser`` for headless Chromium."
    ),
) -> ContentResponse:
    """Fetch *url* and normalise the returned HTML.

    A failed fetch is reported as an HTTP error; the normalizer only ever
    sees HTML that was actually retrieved.  An empty ``content`` means the
    page had no extractable main content.
    """
    logger.info("Fetch-content request received", extra={"url": url, "render_mode": render_mode})

    if render_mode == "browser":
        html = await _fetch_with_browser(url)
    else:
        html = await _fetch_with_http(url)

    content = normalize(html, base_url=url)
    if not content:
        logger.info("No extractable content found at %s", url)

    return ContentResponse(url=url, content=content, word_count=len(content.split()))


@router.post(
    "/normalize",
    response_model=ContentResponse,
    summary="Normalise caller-supplied HTML into Markdown",
)
async def normalize_html(body: NormalizeRequest) -> ContentResponse:
    base_url = str(body.base_url) if body.base_url else None
    content = normalize(body.html, config=body.config, base_url=base_url)
    return ContentResponse(url=base_url, content=content, word_count=len(content.split()))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _fetch_with_http(url: str) -> str:
    """Fetch *url* via plain HTTP and propagate errors as HTTP exceptions."""
    try:
        return await fetch_url(url)
    except ValueError as exc:
        logger.warning("Invalid or blocked URL: %s – %s", url, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except httpx.TimeoutException:
        logger.error("Timeout fetching URL: %s", url)
        raise HTTPException(status_code=504, detail="The target URL timed out.")
    except httpx.HTTPStatusError as exc:
        logger.error("HTTP error fetching URL %s: %s", url, exc)
        raise HTTPException(
            status_code=502, detail=f"Target URL returned HTTP {exc.response.status_code}."
        )
    except (httpx.RequestError, RuntimeError) as exc:
        logger.error("Error fetching URL %s: %s", url, exc)
        raise HTTPException(status_code=502, detail=str(exc))


async def _fetch_with_browser(url: str) -> str:
    """Render *url* with a headless browser and propagate errors as HTTP exceptions."""
    try:
        return await fetch_url_with_browser(url)
    except ValueError as exc:
        logger.warning("Invalid or blocked URL (browser): %s – %s", url, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except RuntimeError as exc:
        logger.error("Browser rendering error for %s: %s", url, exc)
        raise HTTPException(status_code=502, detail=str(exc))
    except PlaywrightError as exc:
        logger.error("Browser error for %s: %s", url, exc)
        raise HTTPException(status_code=502, detail=f"Browser error: {exc}")
