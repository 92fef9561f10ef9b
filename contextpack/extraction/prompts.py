"""Prompt construction for per-field extraction.

Each schema field gets its own prompt: the shared anti-hallucination system
prompt plus a user prompt carrying the field instructions and the page
corpus selected for that field.  The model answers with :class:`FieldAnswer`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence
from urllib.parse import urlsplit

from pydantic import BaseModel, Field

from contextpack.extraction.llm import Prompt
from contextpack.scraper.models import ScrapedPage
from contextpack.scraper.normalizer import truncate


# ---------------------------------------------------------------------------
# Structured answer schema
# ---------------------------------------------------------------------------

class ExtractedPainPoint(BaseModel):
    content: str = Field(description="A problem or challenge the segment faces, as stated on the pages.")
    confidence: float = Field(description="How clearly the pages state this, from 0.0 to 1.0.")
    reason: str = Field(default="", description="One sentence justifying the confidence.")
    source_urls: list[str] = Field(
        default_factory=list,
        description="URLs (copied exactly from the provided pages) that state this problem.",
    )
    excerpt: str = Field(default="", description="Short supporting excerpt from the page.")


class ExtractedClaim(BaseModel):
    content: str = Field(
        description="The fact as stated on the pages; quote directly where possible."
    )
    name: str = Field(
        default="",
        description="Short segment name. Only used for customer segments.",
    )
    confidence: float = Field(
        description="How clearly the pages state this fact, from 0.0 to 1.0."
    )
    reason: str = Field(default="", description="One sentence justifying the confidence.")
    source_urls: list[str] = Field(
        default_factory=list,
        description="URLs (copied exactly from the provided pages) that state this fact.",
    )
    excerpt: str = Field(default="", description="Short supporting excerpt from the page.")
    pain_points: list[ExtractedPainPoint] = Field(
        default_factory=list,
        description="Problems this segment faces. Only used for customer segments.",
    )


class FieldAnswer(BaseModel):
    found: bool = Field(description="False when the pages do not state this information.")
    claims: list[ExtractedClaim] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Field specs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldSpec:
    key: str
    label: str
    guidance: str
    multiple: bool
    path_hints: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()


FIELD_SPECS: tuple[FieldSpec, ...] = (
    FieldSpec(
        key="vision",
        label="Vision statement",
        guidance="The company's long-term aspirational goal or the future state it wants to create.",
        multiple=False,
        path_hints=("about", "about-us", "mission", "company", ""),
        keywords=("vision", "future", "become", "world where"),
    ),
    FieldSpec(
        key="mission",
        label="Mission statement",
        guidance="The company's purpose or reason for existing today.",
        multiple=False,
        path_hints=("about", "about-us", "mission", "company", ""),
        keywords=("mission", "purpose", "we exist", "help"),
    ),
    FieldSpec(
        key="values",
        label="Company values",
        guidance="Core principles or beliefs that guide the company. One claim per value.",
        multiple=True,
        path_hints=("about", "about-us", "careers", "jobs", "team", "company"),
        keywords=("values", "believe", "principle", "culture"),
    ),
    FieldSpec(
        key="icp_segments",
        label="Ideal customer profile segments",
        guidance=(
            "Target customer groups. One claim per segment: a short segment label in "
            "`name`, the segment's characteristics in `content`, and any problems or "
            "challenges the pages say these customers face in `pain_points`."
        ),
        multiple=True,
        path_hints=("about", "about-us", "", "company"),
        keywords=("customers", "serve", "built for", "trusted by", "teams", "companies"),
    ),
    FieldSpec(
        key="revenue_drivers",
        label="Revenue drivers",
        guidance="How the company makes money and what grows its revenue.",
        multiple=True,
        path_hints=("blog", "news", "about", ""),
        keywords=("revenue", "subscription", "expansion", "growth", "upgrade"),
    ),
    FieldSpec(
        key="pricing_model",
        label="Pricing model",
        guidance="How the company charges customers: tiers, plans, usage-based pricing.",
        multiple=False,
        path_hints=("blog", "", "news"),
        keywords=("pricing", "price", "$", "per month", "tier", "plan", "free"),
    ),
    FieldSpec(
        key="jobs_to_be_done",
        label="Jobs to be done",
        guidance="What customers are trying to accomplish by using the product. One claim per job.",
        multiple=True,
        path_hints=("", "blog", "about"),
        keywords=("help", "so you can", "ship", "manage", "jobs to be done"),
    ),
    FieldSpec(
        key="key_features",
        label="Key product features",
        guidance="Main product capabilities or offerings. One claim per feature.",
        multiple=True,
        path_hints=("", "blog"),
        keywords=("feature", "platform", "tool", "integrat", "dashboard"),
    ),
)


# ---------------------------------------------------------------------------
# Page selection
# ---------------------------------------------------------------------------

def _first_path_segment(url: str) -> str:
    return urlsplit(url).path.strip("/").split("/")[0].lower()


def _relevance(field_spec: FieldSpec, page: ScrapedPage) -> int:
    score = 3 if _first_path_segment(page.url) in field_spec.path_hints else 0
    text = page.content.lower()
    score += sum(min(text.count(keyword), 3) for keyword in field_spec.keywords)
    return score


def select_pages(
    field_spec: FieldSpec,
    pages: Sequence[ScrapedPage],
    limit: int,
) -> list[ScrapedPage]:
    """Pick the pages most likely to support *field_spec*, keeping scan order on ties."""
    scored = [(_relevance(field_spec, page), index, page) for index, page in enumerate(pages)]
    relevant = [item for item in scored if item[0] > 0] or scored
    relevant.sort(key=lambda item: (-item[0], item[1]))
    return [page for _, _, page in relevant[: max(limit, 1)]]


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

SYSTEM_PROMPT = """You are an expert business analyst extracting company information from web pages.

CRITICAL RULES TO PREVENT HALLUCINATION:
1. Only extract information EXPLICITLY STATED in the provided pages
2. Do NOT infer, assume, or generate information not present in the text
3. Do NOT use external knowledge about the company
4. If the information is not found, set found to false and return no claims
5. Use direct quotes from the source when possible

CONFIDENCE SCORING GUIDELINES:
- 0.9-1.0: Information is explicitly and clearly stated with specific details
- 0.7-0.8: Information is stated but somewhat vague or general
- 0.5-0.6: Information is implied or partially stated
- 0.3-0.4: Information is weakly suggested
- 0.0-0.2: Information is not found or highly uncertain

CITATION REQUIREMENTS:
- Every claim MUST list the URL of at least one provided page that states it
- Copy URLs exactly as given; never cite a page that was not provided

Evidence-backed claims only. No hallucination. Always cite sources."""


def format_pages(pages: Sequence[ScrapedPage], max_chars: int) -> str:
    blocks = []
    for page in pages:
        blocks.append(
            f"URL: {page.url}\n"
            f"Title: {page.title}\n"
            f"Content: {truncate(page.content, max_chars)}\n"
            "---"
        )
    return "\n\n".join(blocks)


def build_field_prompt(
    field_spec: FieldSpec,
    pages: Sequence[ScrapedPage],
    max_chars: int,
) -> Prompt:
    cardinality = (
        "Return every distinct item you find, one claim each."
        if field_spec.multiple
        else "Return at most one claim: the single best statement."
    )
    user = (
        f"Extract the {field_spec.label.lower()} from these pages.\n"
        f"Definition: {field_spec.guidance}\n"
        f"{cardinality}\n\n"
        f"{format_pages(pages, max_chars)}\n\n"
        "For each claim provide the content, a confidence score (0-1) based on how "
        "clearly it is stated, a short reason, the source URLs and a supporting excerpt. "
        "If the pages do not state this information, set found to false."
    )
    return Prompt(system=SYSTEM_PROMPT, user=user)
