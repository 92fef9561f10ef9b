"""Content normalisation: turns fetched HTML into prompt-ready plain text."""

from __future__ import annotations

import re
from typing import Optional

import trafilatura

from contextpack.config import settings
from contextpack.scraper.models import CleanPage

_WHITESPACE_RE = re.compile(r"\s+")
_ELLIPSIS = "..."

# Elements and CSS classes that never hold company copy.
_BOILERPLATE_TAGS = ["script", "style", "nav", "header", "footer", "iframe", "noscript"]
_BOILERPLATE_SELECTORS = [
    ".navigation", ".nav", ".menu", ".sidebar",
    ".advertisement", ".ad", ".cookie-banner", ".cookie-notice",
]
_CONTENT_SELECTORS = ["main", "article", ".content", "#content"]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _extract_title(html: str) -> str:
    """Return the text of the first ``<title>`` tag, falling back to ``<h1>``."""
    match = re.search(r"<title[^>]*>([^<]+)</title>", html, re.IGNORECASE)
    if match:
        return collapse_whitespace(match.group(1))
    match = re.search(r"<h1[^>]*>(.*?)</h1>", html, re.IGNORECASE | re.DOTALL)
    if match:
        return collapse_whitespace(re.sub(r"<[^>]+>", " ", match.group(1)))
    return ""


def _bs4_fallback(html: str) -> str:
    """Extract readable text using BeautifulSoup content-container heuristics."""
    from bs4 import BeautifulSoup  # noqa: PLC0415

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_BOILERPLATE_TAGS):
        tag.decompose()
    for selector in _BOILERPLATE_SELECTORS:
        for tag in soup.select(selector):
            tag.decompose()

    container = None
    for selector in _CONTENT_SELECTORS:
        container = soup.select_one(selector)
        if container is not None:
            break
    if container is None:
        container = soup.body
    if container is None:
        return soup.get_text(separator=" ", strip=True)
    return container.get_text(separator=" ", strip=True)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def truncate(text: str, max_chars: int) -> str:
    """Cut *text* to at most *max_chars* characters, marking the cut."""
    if max_chars <= 0 or len(text) <= max_chars:
        return text
    cut = max(max_chars - len(_ELLIPSIS), 0)
    return text[:cut].rstrip() + _ELLIPSIS


def normalize_text(text: str, max_chars: Optional[int] = None) -> str:
    """Collapse whitespace and bound the length of already-plain *text*."""
    limit = settings.page_char_limit if max_chars is None else max_chars
    return truncate(collapse_whitespace(text), limit)


def normalize_html(
    html: str,
    url: str,
    max_chars: Optional[int] = None,
) -> CleanPage:
    """Strip markup and boilerplate from *html* and return a :class:`CleanPage`.

    Tries ``trafilatura`` first for readability extraction and falls back to a
    BeautifulSoup heuristic when it returns nothing (minimal or unusual
    pages).  Never raises; an unparseable page simply yields empty text.
    """
    text: str | None = trafilatura.extract(
        html,
        include_links=False,
        include_images=False,
        include_tables=True,
        no_fallback=False,
        url=url,
    )

    if not text:
        text = _bs4_fallback(html)

    return CleanPage(
        url=url,
        title=_extract_title(html),
        text=normalize_text(text or "", max_chars),
    )
