"""Pydantic models for extracted knowledge and the Context Pack artifact.

These are the shapes that cross process boundaries (HTTP responses, the
storage layer, demo fixtures), so they serialise with camelCase aliases::

    pack.model_dump(by_alias=True, mode="json")

Python code always uses the snake_case attribute names.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Generic, Iterator, Literal, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    StrictBool,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# Reason attached to every section that can only come from the founder.
NOT_EXTRACTED_REASON = "not extracted from public pages"

_VERSION_RE = re.compile(r"^v\d+$")
_HTTP_URL = TypeAdapter(HttpUrl)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Confident fields
# ---------------------------------------------------------------------------

class Confidence(CamelModel):
    value: float = Field(ge=0.0, le=1.0)
    reason: str = ""


class Citation(CamelModel):
    """Where a piece of information came from: a page URL, interview or section."""

    type: Literal["url", "interview", "section"] = "url"
    reference: str
    text: Optional[str] = None


class ConfidentField(CamelModel, Generic[T]):
    """A value paired with a confidence score and the sources backing it.

    ``confidence.value == 0`` means "not extracted" and such a field never
    carries citations.
    """

    content: T
    confidence: Confidence
    citations: list[Citation] = Field(default_factory=list)

    @model_validator(mode="after")
    def _zero_confidence_has_no_citations(self) -> "ConfidentField[T]":
        if self.confidence.value == 0 and self.citations:
            raise ValueError("a zero-confidence field cannot carry citations")
        return self

    @property
    def is_empty(self) -> bool:
        return self.confidence.value == 0 or not self.content

    @staticmethod
    def empty(reason: str) -> "ConfidentField[str]":
        """The canonical "not extracted" text field."""
        return ConfidentField[str](
            content="",
            confidence=Confidence(value=0.0, reason=reason),
            citations=[],
        )


TextField = ConfidentField[str]


class ICPSegment(CamelModel):
    name: str
    description: TextField
    pain_points: list[TextField] = Field(default_factory=list)


class ProductSection(CamelModel):
    jobs_to_be_done: list[TextField] = Field(default_factory=list)
    key_features: list[TextField] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Extraction result
# ---------------------------------------------------------------------------

class ExtractedICP(CamelModel):
    segments: list[ICPSegment] = Field(default_factory=list)


class ExtractedBusinessModel(CamelModel):
    revenue_drivers: list[TextField] = Field(default_factory=list)
    pricing_model: TextField


class ExtractionResult(CamelModel):
    """Everything the extractor could learn about a company from its pages.

    Every field is always present; missing evidence is a zero-confidence
    field or an empty list, never an omitted key.
    """

    vision: TextField
    mission: TextField
    values: list[TextField] = Field(default_factory=list)
    icp: ExtractedICP = Field(default_factory=ExtractedICP)
    business_model: ExtractedBusinessModel
    product: ProductSection = Field(default_factory=ProductSection)

    @classmethod
    def empty(cls, reason: str) -> "ExtractionResult":
        return cls(
            vision=ConfidentField.empty(reason),
            mission=ConfidentField.empty(reason),
            business_model=ExtractedBusinessModel(
                pricing_model=ConfidentField.empty(reason),
            ),
        )

    def has_content(self) -> bool:
        """True when at least one field carries extracted information."""
        return any(not f.is_empty for f in self.confident_fields())

    def confident_fields(self) -> Iterator[TextField]:
        yield self.vision
        yield self.mission
        yield from self.values
        for segment in self.icp.segments:
            yield segment.description
            yield from segment.pain_points
        yield from self.business_model.revenue_drivers
        yield self.business_model.pricing_model
        yield from self.product.jobs_to_be_done
        yield from self.product.key_features


# ---------------------------------------------------------------------------
# Context Pack
# ---------------------------------------------------------------------------

class ICPSection(CamelModel):
    segments: list[ICPSegment] = Field(default_factory=list)
    evolution: TextField


class BusinessModelSection(CamelModel):
    revenue_drivers: list[TextField] = Field(default_factory=list)
    pricing_model: TextField
    key_metrics: list[TextField] = Field(default_factory=list)


class DecisionRules(CamelModel):
    priorities: list[TextField] = Field(default_factory=list)
    anti_patterns: list[TextField] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.priorities and not self.anti_patterns


class ContextPack(CamelModel):
    """The versioned knowledge artifact about one company."""

    id: str
    company_name: str
    company_url: str
    version: str = "v0"
    created_at: datetime
    updated_at: datetime

    vision: TextField
    mission: TextField
    values: list[TextField] = Field(default_factory=list)
    icp: ICPSection
    business_model: BusinessModelSection
    product: ProductSection = Field(default_factory=ProductSection)
    decision_rules: DecisionRules = Field(default_factory=DecisionRules)
    engineering_kpis: list[TextField] = Field(
        default_factory=list, alias="engineeringKPIs"
    )
    summary: str = ""

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        if not _VERSION_RE.match(value):
            raise ValueError(f"version must look like 'v0', 'v1', ... (got {value!r})")
        return value

    @model_validator(mode="after")
    def _check_invariants(self) -> "ContextPack":
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt must not precede createdAt")
        if self.version == "v0" and (
            not self.decision_rules.is_empty() or self.engineering_kpis
        ):
            raise ValueError(
                "a v0 pack cannot contain decision rules or engineering KPIs"
            )
        return self

    def confident_fields(self) -> Iterator[TextField]:
        yield self.vision
        yield self.mission
        yield from self.values
        for segment in self.icp.segments:
            yield segment.description
            yield from segment.pain_points
        yield self.icp.evolution
        yield from self.business_model.revenue_drivers
        yield self.business_model.pricing_model
        yield from self.business_model.key_metrics
        yield from self.product.jobs_to_be_done
        yield from self.product.key_features
        yield from self.decision_rules.priorities
        yield from self.decision_rules.anti_patterns
        yield from self.engineering_kpis


# ---------------------------------------------------------------------------
# Scan request
# ---------------------------------------------------------------------------

class ScanRequest(CamelModel):
    """Inbound scan request: ``{companyUrl, companyName?, demoMode?}``."""

    company_url: str
    company_name: Optional[str] = None
    demo_mode: StrictBool = False

    @field_validator("company_url")
    @classmethod
    def _check_company_url(cls, value: str) -> str:
        value = value.strip()
        try:
            _HTTP_URL.validate_python(value)
        except ValidationError as exc:
            raise ValueError("companyUrl must be an absolute http(s) URL") from exc
        return value

    @field_validator("company_name")
    @classmethod
    def _blank_name_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None
