"""LLM-backed extraction of company facts from scraped pages.

Each schema field (vision, mission, values, ICP segments, revenue drivers,
pricing model, jobs-to-be-done, key features) is extracted by its own
backend call, **in parallel**, against the pages selected for that field.
Fields are independent: no call sees another field's answer.

Failure semantics
-----------------
* No usable pages → the all-empty result, without calling the backend.
* ``ProviderError`` on one field → that field degrades to zero confidence
  with an "Extraction failed" reason; the others carry on.
* ``CredentialError`` / ``RateLimitError`` → systemic; pending calls are
  cancelled and the error propagates.
* Every field failing with ``ProviderError`` is also treated as systemic.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import NamedTuple, Optional, Sequence, Union

from contextpack.config import settings
from contextpack.errors import CredentialError, ProviderError, RateLimitError
from contextpack.extraction.llm import LLMBackend
from contextpack.extraction.prompts import (
    FIELD_SPECS,
    ExtractedClaim,
    ExtractedPainPoint,
    FieldAnswer,
    FieldSpec,
    build_field_prompt,
    select_pages,
)
from contextpack.logging_utils import log_event
from contextpack.models import (
    Citation,
    Confidence,
    ConfidentField,
    ExtractedBusinessModel,
    ExtractedICP,
    ExtractionResult,
    ICPSegment,
    ProductSection,
    TextField,
)
from contextpack.scraper.models import ScrapedPage

logger = logging.getLogger(__name__)

NO_PAGES_REASON = "No pages were successfully scraped"
NOT_FOUND_REASON = "Not found in scanned pages"


class FieldItem(NamedTuple):
    field: TextField
    # Segment name and pain points are only filled for ICP segments.
    name: str = ""
    pain_points: tuple[TextField, ...] = ()


FieldItems = list[FieldItem]


# ---------------------------------------------------------------------------
# Claim conversion
# ---------------------------------------------------------------------------

def _url_key(url: str) -> str:
    return url.strip().rstrip("/").lower()


def _clamp(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return min(max(value, 0.0), 1.0)


def claim_to_field(
    claim: Union[ExtractedClaim, ExtractedPainPoint],
    allowed_urls: dict[str, str],
) -> Optional[TextField]:
    """Turn one model claim into a :class:`ConfidentField`, or drop it.

    Claims with no content, zero confidence, or no citation pointing at one of
    the pages the model was shown are discarded.
    """
    content = claim.content.strip()
    value = _clamp(float(claim.confidence))
    if not content or value == 0:
        return None

    excerpt = claim.excerpt.strip() or None
    citations: list[Citation] = []
    seen: set[str] = set()
    for raw in claim.source_urls:
        url = allowed_urls.get(_url_key(raw))
        if url and url not in seen:
            seen.add(url)
            citations.append(Citation(type="url", reference=url, text=excerpt))
    if not citations:
        return None

    return TextField(
        content=content,
        confidence=Confidence(value=value, reason=claim.reason.strip()),
        citations=citations,
    )


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class Extractor:
    """Populates an :class:`ExtractionResult` from scraped pages."""

    def __init__(
        self,
        backend: LLMBackend,
        max_workers: Optional[int] = None,
        pages_per_field: Optional[int] = None,
    ) -> None:
        self._backend = backend
        self._max_workers = max_workers or settings.extraction_concurrency
        self._pages_per_field = pages_per_field or settings.extraction_pages_per_field

    def extract(self, pages: Sequence[ScrapedPage]) -> ExtractionResult:
        result, _ = self.extract_with_warnings(pages)
        return result

    def extract_with_warnings(
        self,
        pages: Sequence[ScrapedPage],
    ) -> tuple[ExtractionResult, list[str]]:
        """Extract every field and return the result plus per-field warnings."""
        usable = [p for p in pages if p.success and p.content]
        if not usable:
            log_event(logger, logging.INFO, "extract.skipped", reason="no usable pages")
            return ExtractionResult.empty(NO_PAGES_REASON), []

        items: dict[str, FieldItems] = {}
        failures: dict[str, ProviderError] = {}

        with ThreadPoolExecutor(
            max_workers=max(1, min(self._max_workers, len(FIELD_SPECS))),
            thread_name_prefix="extract",
        ) as pool:
            futures = {
                pool.submit(self._extract_field, field_spec, usable): field_spec
                for field_spec in FIELD_SPECS
            }
            try:
                for future in as_completed(futures):
                    field_spec = futures[future]
                    try:
                        items[field_spec.key] = future.result()
                    except ProviderError as exc:
                        logger.warning("Extraction of %s failed: %s", field_spec.key, exc)
                        failures[field_spec.key] = exc
            except (CredentialError, RateLimitError):
                pool.shutdown(wait=False, cancel_futures=True)
                raise

        if len(failures) == len(FIELD_SPECS):
            raise next(reversed(failures.values()))

        warnings = [
            f"Could not extract {field_spec.label.lower()}: {failures[field_spec.key].message}"
            for field_spec in FIELD_SPECS
            if field_spec.key in failures
        ]
        result = self._build_result(items, failures)
        log_event(
            logger, logging.INFO, "extract.finished",
            pages=len(usable),
            failed_fields=sorted(failures),
            has_content=result.has_content(),
        )
        return result, warnings

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _extract_field(self, field_spec: FieldSpec, pages: list[ScrapedPage]) -> FieldItems:
        selected = select_pages(field_spec, pages, self._pages_per_field)
        prompt = build_field_prompt(field_spec, selected, settings.page_char_limit)
        answer = self._backend.complete(prompt, FieldAnswer)

        if not answer.found:
            return []
        allowed = {_url_key(p.url): p.url for p in selected}
        converted: FieldItems = []
        for claim in answer.claims:
            field = claim_to_field(claim, allowed)
            if field is None:
                continue
            pain_points = tuple(
                pain for pain in (claim_to_field(p, allowed) for p in claim.pain_points)
                if pain is not None
            )
            converted.append(FieldItem(field, claim.name.strip(), pain_points))
        if not field_spec.multiple:
            converted.sort(key=lambda item: item.field.confidence.value, reverse=True)
            converted = converted[:1]
        return converted

    @staticmethod
    def _build_result(
        items: dict[str, FieldItems],
        failures: dict[str, ProviderError],
    ) -> ExtractionResult:
        def single(key: str) -> TextField:
            if key in failures:
                return ConfidentField.empty(f"Extraction failed: {failures[key].message}")
            found = items.get(key) or []
            return found[0].field if found else ConfidentField.empty(NOT_FOUND_REASON)

        def many(key: str) -> list[TextField]:
            return [item.field for item in items.get(key, [])]

        segments = [
            ICPSegment(
                name=item.name or f"Segment {index}",
                description=item.field,
                pain_points=list(item.pain_points),
            )
            for index, item in enumerate(items.get("icp_segments", []), start=1)
        ]

        return ExtractionResult(
            vision=single("vision"),
            mission=single("mission"),
            values=many("values"),
            icp=ExtractedICP(segments=segments),
            business_model=ExtractedBusinessModel(
                revenue_drivers=many("revenue_drivers"),
                pricing_model=single("pricing_model"),
            ),
            product=ProductSection(
                jobs_to_be_done=many("jobs_to_be_done"),
                key_features=many("key_features"),
            ),
        )
