"""Canned companies for demo mode.

Each company is a JSON fixture next to this module holding the pages a scan
would have fetched and the finished (v1) Context Pack a founder interview
would eventually produce.  Unknown inputs fall back to the first company.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any

from contextpack.config import settings
from contextpack.models import ContextPack
from contextpack.pack.assembler import slugify
from contextpack.scraper.models import ScrapedPage, ScrapeResult
from contextpack.scraper.normalizer import normalize_text

_DATA_DIR = Path(__file__).parent
_FIXTURES = ("acme_saas.json", "techstart.json")

# Demo packs are stamped with fixed dates so repeated loads compare equal.
_DEMO_CREATED_AT = datetime(2024, 1, 15, tzinfo=timezone.utc)
_DEMO_UPDATED_AT = datetime(2024, 2, 1, tzinfo=timezone.utc)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


@dataclass(frozen=True)
class DemoCompany:
    name: str
    url: str
    aliases: tuple[str, ...]


@lru_cache(maxsize=None)
def _load_fixtures() -> tuple[dict[str, Any], ...]:
    return tuple(
        json.loads((_DATA_DIR / filename).read_text(encoding="utf-8"))
        for filename in _FIXTURES
    )


def _compact(value: str) -> str:
    return _NON_ALNUM_RE.sub("", value.lower())


def _fixture_for_url(url: str) -> dict[str, Any]:
    lowered = (url or "").lower()
    for fixture in _load_fixtures():
        if any(alias in lowered for alias in fixture["aliases"]):
            return fixture
    return _load_fixtures()[0]


def _to_company(fixture: dict[str, Any]) -> DemoCompany:
    return DemoCompany(
        name=fixture["companyName"],
        url=fixture["companyUrl"],
        aliases=tuple(fixture["aliases"]),
    )


def _fixture_for_name(name: str) -> dict[str, Any]:
    key = _compact(name or "")
    if key:
        for fixture in _load_fixtures():
            if _compact(fixture["companyName"]) == key or key in fixture["aliases"]:
                return fixture
    return _load_fixtures()[0]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def demo_companies() -> list[DemoCompany]:
    """Return the companies available in demo mode, default first."""
    return [_to_company(fixture) for fixture in _load_fixtures()]


def demo_company_for_url(url: str) -> DemoCompany:
    """Return the demo company whose aliases appear in *url* (default first)."""
    return _to_company(_fixture_for_url(url))


def mock_scrape_result(url: str) -> ScrapeResult:
    """Return the canned pages for the demo company matching *url*."""
    fixture = _fixture_for_url(url)
    pages = [
        ScrapedPage(
            url=page["url"],
            success=True,
            title=page["title"],
            content=normalize_text(page["content"], settings.page_char_limit),
        )
        for page in fixture["pages"]
    ]
    return ScrapeResult(pages=pages)


def mock_context_pack(company_name: str) -> ContextPack:
    """Return the finished demo pack for the company matching *company_name*.

    Matching ignores case, spaces and punctuation (``"acme-saas"`` and
    ``"Acme SaaS"`` both hit the same fixture).
    """
    fixture = _fixture_for_name(company_name)
    payload = dict(fixture["pack"])
    payload.update(
        id=f"demo-{slugify(fixture['companyName'])}",
        companyName=fixture["companyName"],
        companyUrl=fixture["companyUrl"],
        version="v1",
        createdAt=_DEMO_CREATED_AT,
        updatedAt=_DEMO_UPDATED_AT,
    )
    return ContextPack.model_validate(payload)
