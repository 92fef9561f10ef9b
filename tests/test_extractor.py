"""Tests for per-field extraction.

A scripted :class:`LLMBackend` answers each field prompt, so the tests cover
citation filtering, confidence handling and the failure policy without a
model provider.
"""

from __future__ import annotations

import math

import pytest

from conftest import ACME_URL, ScriptedBackend, answer, claim, pain
from contextpack.demo import mock_context_pack
from contextpack.errors import CredentialError, ProviderError, RateLimitError
from contextpack.extraction.extractor import (
    NO_PAGES_REASON,
    NOT_FOUND_REASON,
    Extractor,
    claim_to_field,
)
from contextpack.extraction.prompts import (
    FIELD_SPECS,
    ExtractedClaim,
    build_field_prompt,
    select_pages,
)
from contextpack.scraper.models import ScrapedPage

ALLOWED = {ACME_URL: ACME_URL, f"{ACME_URL}/about": f"{ACME_URL}/about"}


# ---------------------------------------------------------------------------
# claim_to_field
# ---------------------------------------------------------------------------

class TestClaimToField:
    def test_cited_claim_kept(self) -> None:
        field = claim_to_field(claim("Keep teams aligned"), ALLOWED)
        assert field is not None
        assert field.content == "Keep teams aligned"
        assert field.confidence.value == pytest.approx(0.9)
        assert [c.reference for c in field.citations] == [ACME_URL]
        assert field.citations[0].type == "url"

    def test_citation_match_ignores_case_and_trailing_slash(self) -> None:
        field = claim_to_field(claim("x", url="HTTPS://ACME.TEST/About/"), ALLOWED)
        assert field is not None
        assert field.citations[0].reference == f"{ACME_URL}/about"

    def test_uncited_claim_dropped(self) -> None:
        assert claim_to_field(claim("x", url="https://elsewhere.test"), ALLOWED) is None

    def test_zero_confidence_dropped(self) -> None:
        assert claim_to_field(claim("x", confidence=0.0), ALLOWED) is None

    def test_blank_content_dropped(self) -> None:
        assert claim_to_field(claim("   "), ALLOWED) is None

    def test_confidence_clamped(self) -> None:
        field = claim_to_field(claim("x", confidence=1.7), ALLOWED)
        assert field is not None
        assert field.confidence.value == 1.0

    def test_nan_confidence_dropped(self) -> None:
        assert claim_to_field(claim("x", confidence=math.nan), ALLOWED) is None

    def test_duplicate_sources_collapsed(self) -> None:
        raw = ExtractedClaim(
            content="x", confidence=0.8, source_urls=[ACME_URL, f"{ACME_URL}/"]
        )
        field = claim_to_field(raw, ALLOWED)
        assert field is not None
        assert len(field.citations) == 1


# ---------------------------------------------------------------------------
# Prompts / page selection
# ---------------------------------------------------------------------------

class TestPrompts:
    def test_prompt_names_field_and_pages(self, acme_pages) -> None:
        usable = [p for p in acme_pages if p.success]
        prompt = build_field_prompt(FIELD_SPECS[0], usable, 2000)
        assert "Extract the vision statement from" in prompt.user
        assert f"URL: {ACME_URL}/about" in prompt.user
        assert "No hallucination" in prompt.system

    def test_select_pages_prefers_path_hints(self, acme_pages) -> None:
        usable = [p for p in acme_pages if p.success]
        vision = next(field_spec for field_spec in FIELD_SPECS if field_spec.key == "vision")
        selected = select_pages(vision, usable, limit=1)
        assert selected[0].url == f"{ACME_URL}/about"

    def test_select_pages_never_empty(self) -> None:
        page = ScrapedPage(url="https://acme.test/x", success=True, content="zzz")
        field_spec = FIELD_SPECS[0]
        assert select_pages(field_spec, [page], limit=4) == [page]


# ---------------------------------------------------------------------------
# Extractor
# ---------------------------------------------------------------------------

class TestExtractor:
    def test_no_pages_skips_backend(self) -> None:
        backend = ScriptedBackend()
        failed = [ScrapedPage.failed(ACME_URL, "HTTP 500: Internal Server Error")]

        result, warnings = Extractor(backend).extract_with_warnings(failed)

        assert backend.calls == []
        assert warnings == []
        assert result.has_content() is False
        assert result.vision.confidence.reason == NO_PAGES_REASON
        assert result.values == []

    def test_one_call_per_field(self, acme_pages, full_script) -> None:
        backend = ScriptedBackend(full_script)

        Extractor(backend).extract(acme_pages)

        assert sorted(backend.calls) == sorted(field_spec.key for field_spec in FIELD_SPECS)

    def test_full_extraction(self, acme_pages, full_script) -> None:
        result, warnings = Extractor(ScriptedBackend(full_script)).extract_with_warnings(acme_pages)

        assert warnings == []
        assert result.vision.content == "A world where every engineer knows why"
        assert result.mission.content == "Keep teams aligned"
        assert [v.content for v in result.values] == ["Customer obsession", "Bias for action"]
        assert result.icp.segments[0].name == "Startups"
        assert result.business_model.pricing_model.confidence.value == pytest.approx(0.6)
        assert result.product.key_features[0].citations[0].reference == ACME_URL

    def test_not_found_field_is_zero_confidence(self, acme_pages, full_script) -> None:
        del full_script["vision"]

        result = Extractor(ScriptedBackend(full_script)).extract(acme_pages)

        assert result.vision.content == ""
        assert result.vision.confidence.value == 0
        assert result.vision.confidence.reason == NOT_FOUND_REASON
        assert result.vision.citations == []

    def test_hallucinated_citation_dropped(self, acme_pages, full_script) -> None:
        full_script["mission"] = answer(claim("Invented", url="https://other.test"))

        result = Extractor(ScriptedBackend(full_script)).extract(acme_pages)

        assert result.mission.is_empty

    def test_single_field_keeps_best_claim(self, acme_pages, full_script) -> None:
        full_script["mission"] = answer(
            claim("Weak mission", confidence=0.4),
            claim("Strong mission", confidence=0.95),
        )

        result = Extractor(ScriptedBackend(full_script)).extract(acme_pages)

        assert result.mission.content == "Strong mission"

    def test_unnamed_segment_gets_default_name(self, acme_pages, full_script) -> None:
        full_script["icp_segments"] = answer(claim("Mid-market teams"))

        result = Extractor(ScriptedBackend(full_script)).extract(acme_pages)

        assert result.icp.segments[0].name == "Segment 1"

    def test_segment_pain_points_are_cited_fields(self, acme_pages, full_script) -> None:
        about = f"{ACME_URL}/about"
        full_script["icp_segments"] = answer(
            claim(
                "Startups with 10-100 employees",
                about,
                name="Startups",
                pain_points=[
                    pain("Priorities drift between teams", about),
                    pain("Invented pain", "https://elsewhere.test"),
                    pain("Unsure", about, confidence=0.0),
                ],
            )
        )

        segment = Extractor(ScriptedBackend(full_script)).extract(acme_pages).icp.segments[0]

        assert [p.content for p in segment.pain_points] == ["Priorities drift between teams"]
        point = segment.pain_points[0]
        assert point.confidence.value == 0.8
        assert point.citations[0].reference == about

    def test_live_segments_carry_pain_points_like_demo(self, acme_pages, full_script) -> None:
        about = f"{ACME_URL}/about"
        full_script["icp_segments"] = answer(
            claim("Startups", about, name="Startups", pain_points=[pain("Misaligned roadmaps", about)])
        )

        live = Extractor(ScriptedBackend(full_script)).extract(acme_pages)
        demo = mock_context_pack("Acme SaaS")

        assert all(s.pain_points for s in live.icp.segments)
        assert all(s.pain_points for s in demo.icp.segments)

    def test_icp_prompt_asks_for_pain_points(self) -> None:
        icp = next(s for s in FIELD_SPECS if s.key == "icp_segments")
        prompt = build_field_prompt(icp, [], 100)
        assert "pain_points" in prompt.user

    def test_provider_error_degrades_one_field(self, acme_pages, full_script) -> None:
        full_script["pricing_model"] = ProviderError("malformed output")

        result, warnings = Extractor(ScriptedBackend(full_script)).extract_with_warnings(acme_pages)

        pricing = result.business_model.pricing_model
        assert pricing.confidence.value == 0
        assert pricing.confidence.reason == "Extraction failed: malformed output"
        assert warnings == ["Could not extract pricing model: malformed output"]
        assert result.mission.content == "Keep teams aligned"

    def test_provider_error_on_list_field_empties_it(self, acme_pages, full_script) -> None:
        full_script["values"] = ProviderError("boom")

        result, warnings = Extractor(ScriptedBackend(full_script)).extract_with_warnings(acme_pages)

        assert result.values == []
        assert warnings == ["Could not extract company values: boom"]

    def test_credential_error_propagates(self, acme_pages, full_script) -> None:
        full_script["values"] = CredentialError("OpenAI API key rejected")

        with pytest.raises(CredentialError):
            Extractor(ScriptedBackend(full_script)).extract(acme_pages)

    def test_rate_limit_propagates(self, acme_pages, full_script) -> None:
        full_script["mission"] = RateLimitError("slow down")

        with pytest.raises(RateLimitError):
            Extractor(ScriptedBackend(full_script)).extract(acme_pages)

    def test_every_field_failing_is_systemic(self, acme_pages) -> None:
        script = {field_spec.key: ProviderError("provider down") for field_spec in FIELD_SPECS}

        with pytest.raises(ProviderError, match="provider down"):
            Extractor(ScriptedBackend(script)).extract(acme_pages)

    def test_confidences_in_range_and_zero_means_uncited(self, acme_pages, full_script) -> None:
        full_script["vision"] = None
        full_script["mission"] = answer(claim("Over-confident", confidence=3.0))

        result = Extractor(ScriptedBackend(full_script)).extract(acme_pages)

        for field in result.confident_fields():
            assert 0.0 <= field.confidence.value <= 1.0
            if field.confidence.value == 0:
                assert field.citations == []
