"""Shared fixtures: a scripted LLM backend and a small scraped-page corpus.

No test in this suite talks to a real model provider or the network.
"""

from __future__ import annotations

import threading
from typing import Any, Optional, Sequence, Union

import pytest

from contextpack.extraction.llm import LLMBackend, Prompt
from contextpack.extraction.prompts import (
    FIELD_SPECS,
    ExtractedClaim,
    ExtractedPainPoint,
    FieldAnswer,
)
from contextpack.scraper.models import ScrapedPage, ScrapeResult

ACME_URL = "https://acme.test"

Scripted = Union[FieldAnswer, Exception, None]


def field_key(prompt: Prompt) -> str:
    """Return the field key a per-field extraction prompt is asking about."""
    for field_spec in FIELD_SPECS:
        if f"Extract the {field_spec.label.lower()} from" in prompt.user:
            return field_spec.key
    raise AssertionError(f"unrecognised prompt: {prompt.user[:80]!r}")


class ScriptedBackend(LLMBackend):
    """Answers each field from a ``{field_key: FieldAnswer | Exception}`` script.

    Fields missing from the script answer ``found=False``.
    """

    def __init__(self, script: Optional[dict[str, Scripted]] = None) -> None:
        self.script = dict(script or {})
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def complete(self, prompt: Prompt, schema: Any) -> Any:
        key = field_key(prompt)
        with self._lock:
            self.calls.append(key)
        answer = self.script.get(key)
        if isinstance(answer, Exception):
            raise answer
        if answer is None:
            return schema(found=False)
        return answer


def claim(
    content: str,
    url: str = ACME_URL,
    confidence: float = 0.9,
    name: str = "",
    pain_points: Sequence[ExtractedPainPoint] = (),
) -> ExtractedClaim:
    return ExtractedClaim(
        content=content,
        name=name,
        confidence=confidence,
        reason="Stated on the page",
        source_urls=[url],
        excerpt=content[:40],
        pain_points=list(pain_points),
    )


def pain(content: str, url: str = ACME_URL, confidence: float = 0.8) -> ExtractedPainPoint:
    return ExtractedPainPoint(
        content=content,
        confidence=confidence,
        reason="Stated on the page",
        source_urls=[url],
    )


def answer(*claims: ExtractedClaim) -> FieldAnswer:
    return FieldAnswer(found=bool(claims), claims=list(claims))


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def acme_pages() -> list[ScrapedPage]:
    return [
        ScrapedPage(
            url=ACME_URL,
            success=True,
            title="Acme",
            content="Acme helps teams ship faster. Our mission is to keep teams aligned.",
        ),
        ScrapedPage(
            url=f"{ACME_URL}/about",
            success=True,
            title="About Acme",
            content="Our vision is a world where every engineer knows why. We serve startups.",
        ),
        ScrapedPage.failed(f"{ACME_URL}/careers", "HTTP 404: Not Found"),
    ]


@pytest.fixture()
def acme_scrape(acme_pages) -> ScrapeResult:
    return ScrapeResult(
        pages=acme_pages,
        errors=[f"Failed to scrape {ACME_URL}/careers: HTTP 404: Not Found"],
    )


@pytest.fixture()
def full_script() -> dict[str, Scripted]:
    """A script that answers every field with one cited claim."""
    about = f"{ACME_URL}/about"
    return {
        "vision": answer(claim("A world where every engineer knows why", about)),
        "mission": answer(claim("Keep teams aligned")),
        "values": answer(
            claim("Customer obsession", about),
            claim("Bias for action", about, confidence=0.7),
        ),
        "icp_segments": answer(claim("Startups with 10-100 employees", about, name="Startups")),
        "revenue_drivers": answer(claim("Seat expansion")),
        "pricing_model": answer(claim("Per-seat subscription", confidence=0.6)),
        "jobs_to_be_done": answer(claim("Ship faster")),
        "key_features": answer(claim("Outcome-linked tasks")),
    }
