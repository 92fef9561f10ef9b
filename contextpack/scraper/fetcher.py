"""HTTP fetcher for the fixed set of company pages scanned per request.

Pages are fetched **in parallel** with a ``ThreadPoolExecutor``.  Each
candidate URL owns one slot in the result list, so the returned pages keep
candidate order no matter which request finishes first.  A failing page is
recorded as data and never stops the others.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import httpx

from contextpack.config import settings
from contextpack.errors import partial_scrape_warning
from contextpack.logging_utils import log_event
from contextpack.scraper.models import ScrapedPage, ScrapeResult
from contextpack.scraper.normalizer import normalize_html

logger = logging.getLogger(__name__)

# Conventional paths that tend to hold vision, ICP, hiring and pricing copy.
CANDIDATE_PATHS = (
    "",
    "/about",
    "/about-us",
    "/careers",
    "/jobs",
    "/blog",
    "/news",
    "/company",
    "/team",
    "/mission",
)

# ---------------------------------------------------------------------------
# SPA / JS-rendered page detection heuristics
# ---------------------------------------------------------------------------
_SPA_PATTERNS = [
    re.compile(r'<div[^>]+id=["\'](?:root|app|__next)["\']', re.IGNORECASE),
    re.compile(r"window\.__NEXT_DATA__", re.IGNORECASE),
    re.compile(r"ng-version=", re.IGNORECASE),
    re.compile(r"data-reactroot", re.IGNORECASE),
]


def _is_spa(html: str) -> bool:
    """Return ``True`` if *html* looks like a JavaScript SPA that needs rendering."""
    for pattern in _SPA_PATTERNS:
        if pattern.search(html):
            return True
    # Very little visible text relative to total HTML size.  Script and style
    # bodies are removed first so their source doesn't count as visible text.
    no_scripts = re.sub(
        r"<(script|style)[^>]*>.*?</(script|style)>", "", html,
        flags=re.IGNORECASE | re.DOTALL,
    )
    stripped = re.sub(r"<[^>]+>", "", no_scripts).strip()
    if len(html) > 2000 and len(stripped) < 200:
        return True
    return False


def _is_textual(content_type: str) -> bool:
    return content_type.startswith("text/") or "xhtml" in content_type


# ---------------------------------------------------------------------------
# URL helpers
# ---------------------------------------------------------------------------

def normalize_base_url(url: str) -> str:
    """Ensure *url* has a scheme and no trailing slash."""
    normalized = url.strip()
    if not normalized.lower().startswith(("http://", "https://")):
        normalized = f"https://{normalized}"
    return normalized.rstrip("/")


def candidate_urls(base_url: str, max_pages: Optional[int] = None) -> list[str]:
    """Return the bounded, ordered list of page URLs scanned for *base_url*."""
    limit = settings.scan_max_pages if max_pages is None else max_pages
    base = normalize_base_url(base_url)
    return [f"{base}{path}" for path in CANDIDATE_PATHS][:limit]


# ---------------------------------------------------------------------------
# Single page
# ---------------------------------------------------------------------------

def fetch_page(url: str, client: httpx.Client) -> ScrapedPage:
    """Fetch and normalise one page.  Every failure becomes a failed page."""
    try:
        response = client.get(url)
    except httpx.TimeoutException:
        return ScrapedPage.failed(url, f"Timeout after {settings.request_timeout:g}s")
    except httpx.HTTPError as exc:
        return ScrapedPage.failed(url, str(exc) or exc.__class__.__name__)

    if not response.is_success:
        reason = response.reason_phrase or "error"
        return ScrapedPage.failed(url, f"HTTP {response.status_code}: {reason}")

    content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
    if content_type and not _is_textual(content_type):
        return ScrapedPage.failed(url, f"Unsupported content type {content_type}")

    html = response.text
    page = normalize_html(html, url)
    if not page.text:
        reason = "No readable content"
        if _is_spa(html):
            reason += " (page appears to be rendered with JavaScript)"
        return ScrapedPage.failed(url, reason)

    return ScrapedPage(url=url, success=True, content=page.text, title=page.title)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def scrape_company(company_url: str) -> ScrapeResult:
    """Fetch every candidate page for *company_url* and return a :class:`ScrapeResult`.

    Never raises for page-level problems: network errors, non-2xx responses,
    timeouts and empty pages all end up as failed :class:`ScrapedPage`
    entries plus one line in ``errors``.
    """
    urls = candidate_urls(company_url)
    slots: list[Optional[ScrapedPage]] = [None] * len(urls)

    with httpx.Client(
        headers={"User-Agent": settings.user_agent},
        timeout=settings.request_timeout,
        follow_redirects=True,
    ) as client:
        workers = max(1, min(settings.scan_max_concurrent_fetches, len(urls)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fetch") as pool:
            futures = {
                pool.submit(fetch_page, url, client): index
                for index, url in enumerate(urls)
            }
            for future, index in futures.items():
                slots[index] = future.result()

    pages = [page for page in slots if page is not None]
    errors = [
        partial_scrape_warning(page.url, page.error_message)
        for page in pages
        if not page.success
    ]

    log_event(
        logger, logging.INFO, "scrape.finished",
        company_url=company_url,
        attempted=len(pages),
        succeeded=len(pages) - len(errors),
    )
    return ScrapeResult(pages=pages, errors=errors)
