"""Assembles an :class:`ExtractionResult` into a complete draft Context Pack.

Fields that public pages can answer are copied verbatim from the extraction.
Sections only the founder can provide (ICP evolution, key metrics, decision
rules, engineering KPIs) are always left empty in a draft, using the
canonical ``NOT_EXTRACTED_REASON`` field for single-valued sections.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlsplit

from contextpack.models import (
    NOT_EXTRACTED_REASON,
    BusinessModelSection,
    ConfidentField,
    ContextPack,
    DecisionRules,
    ExtractedBusinessModel,
    ExtractedICP,
    ExtractionResult,
    ICPSection,
    ProductSection,
)

UNKNOWN_COMPANY = "Unknown Company"
DRAFT_VERSION = "v0"

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


# ---------------------------------------------------------------------------
# Identity helpers
# ---------------------------------------------------------------------------

def slugify(name: str) -> str:
    """Lower-case *name* and collapse every non-alphanumeric run into ``-``."""
    return _NON_ALNUM_RE.sub("-", name.lower()).strip("-")


def generate_pack_id(company_name: str, now: Optional[datetime] = None) -> str:
    """Return a URL-safe pack id: ``<slug>-<epoch ms>-<6 hex>``.

    The random tail keeps two scans of the same company started in the same
    millisecond apart.
    """
    moment = now or datetime.now(timezone.utc)
    slug = slugify(company_name) or "company"
    millis = int(moment.timestamp() * 1000)
    return f"{slug}-{millis}-{uuid.uuid4().hex[:6]}"


def company_name_from_url(url: str) -> str:
    """Derive a display name from *url*'s host (``www.acme.io`` → ``Acme``).

    Never raises: anything that cannot be parsed yields ``"Unknown Company"``.
    """
    try:
        candidate = url.strip()
        if not candidate.lower().startswith(("http://", "https://")):
            candidate = f"https://{candidate}"
        hostname = urlsplit(candidate).hostname or ""
    except (AttributeError, ValueError):
        return UNKNOWN_COMPANY

    if hostname.startswith("www."):
        hostname = hostname[len("www."):]
    label = hostname.split(".")[0]
    if not label:
        return UNKNOWN_COMPANY
    return label[0].upper() + label[1:]


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------

def build_summary(company_name: str, version: str, extraction: ExtractionResult) -> str:
    """Deterministic plain-text rollup of a draft pack; empty sections are omitted."""
    lines = [f"{company_name} - Draft Context Pack {version}", ""]

    if not extraction.mission.is_empty:
        lines.append(f"Mission: {extraction.mission.content}")
    if not extraction.vision.is_empty:
        lines.append(f"Vision: {extraction.vision.content}")

    if extraction.icp.segments:
        lines += ["", "Target Customers:"]
        lines += [
            f"- {segment.name}: {segment.description.content}"
            for segment in extraction.icp.segments
        ]

    jobs = [job for job in extraction.product.jobs_to_be_done if not job.is_empty]
    if jobs:
        lines += ["", "Jobs to be Done:"]
        lines += [f"- {job.content}" for job in jobs]

    lines += [
        "",
        f"Note: This is a draft pack ({version}) based on public information. "
        "Complete the interview to create the final pack (v1) with founder insights.",
    ]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

def assemble_pack(
    company_url: str,
    company_name: str,
    extraction: ExtractionResult,
    version: str = DRAFT_VERSION,
    now: Optional[datetime] = None,
) -> ContextPack:
    """Build a complete, schema-valid draft :class:`ContextPack`.

    Raises:
        pydantic.ValidationError: If the result would break a pack invariant.
    """
    timestamp = now or datetime.now(timezone.utc)

    return ContextPack(
        id=generate_pack_id(company_name, timestamp),
        company_name=company_name,
        company_url=company_url,
        version=version,
        created_at=timestamp,
        updated_at=timestamp,
        vision=extraction.vision,
        mission=extraction.mission,
        values=list(extraction.values),
        icp=ICPSection(
            segments=list(extraction.icp.segments),
            evolution=ConfidentField.empty(NOT_EXTRACTED_REASON),
        ),
        business_model=BusinessModelSection(
            revenue_drivers=list(extraction.business_model.revenue_drivers),
            pricing_model=extraction.business_model.pricing_model,
            key_metrics=[],
        ),
        product=ProductSection(
            jobs_to_be_done=list(extraction.product.jobs_to_be_done),
            key_features=list(extraction.product.key_features),
        ),
        decision_rules=DecisionRules(),
        engineering_kpis=[],
        summary=build_summary(company_name, version, extraction),
    )


def extraction_from_pack(pack: ContextPack) -> ExtractionResult:
    """Project the publicly-extractable sections of *pack* back into an extraction."""
    return ExtractionResult(
        vision=pack.vision,
        mission=pack.mission,
        values=list(pack.values),
        icp=ExtractedICP(segments=list(pack.icp.segments)),
        business_model=ExtractedBusinessModel(
            revenue_drivers=list(pack.business_model.revenue_drivers),
            pricing_model=pack.business_model.pricing_model,
        ),
        product=ProductSection(
            jobs_to_be_done=list(pack.product.jobs_to_be_done),
            key_features=list(pack.product.key_features),
        ),
    )
