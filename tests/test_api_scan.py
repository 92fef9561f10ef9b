"""Tests for POST /scan and the error envelope.

All tests use an in-memory SQLite database via the FastAPI TestClient.
No network or OpenAI/Ollama calls are made: live scans patch the backend
factory and page fetcher looked up by ``contextpack.orchestrator``.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from conftest import ACME_URL, ScriptedBackend
from contextpack.api.app import create_app
from contextpack.errors import RateLimitError, StorageError
from contextpack.scraper.models import ScrapedPage, ScrapeResult


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def client():
    """Return a TestClient backed by an isolated in-memory DB."""
    app = create_app(db_path=":memory:")
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


@pytest.fixture()
def no_api_key(monkeypatch):
    monkeypatch.setattr("contextpack.extraction.llm.settings.llm_provider", "openai")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)


def _live(backend, scrape):
    """Patch the orchestrator's collaborators for one live scan."""
    return (
        patch("contextpack.orchestrator.get_backend", return_value=backend),
        patch("contextpack.orchestrator.scrape_company", return_value=scrape),
    )


def _walk_confident_fields(node):
    if isinstance(node, dict):
        if {"content", "confidence", "citations"} <= node.keys():
            yield node
        for value in node.values():
            yield from _walk_confident_fields(value)
    elif isinstance(node, list):
        for item in node:
            yield from _walk_confident_fields(item)


# ---------------------------------------------------------------------------
# Demo mode
# ---------------------------------------------------------------------------

class TestDemoScan:
    def test_acme_demo(self, client) -> None:
        resp = client.post(
            "/scan", json={"companyUrl": "https://acmesaas.example.com", "demoMode": True}
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["draftPack"]["companyName"] == "Acme SaaS"
        assert data["draftPack"]["version"] == "v0"
        assert data["scrapedPages"] > 0
        assert data["packId"] == data["draftPack"]["id"]
        assert data["errors"] == []

    def test_response_is_schema_complete(self, client) -> None:
        pack = client.post(
            "/scan", json={"companyUrl": "https://acmesaas.example.com", "demoMode": True}
        ).json()["draftPack"]

        for key in (
            "id", "companyName", "companyUrl", "version", "createdAt", "updatedAt",
            "vision", "mission", "values", "icp", "businessModel", "product",
            "decisionRules", "engineeringKPIs", "summary",
        ):
            assert key in pack
        assert pack["icp"]["evolution"]["confidence"]["reason"] == "not extracted from public pages"
        assert pack["engineeringKPIs"] == []
        assert pack["decisionRules"] == {"priorities": [], "antiPatterns": []}

    def test_demo_needs_no_api_key(self, client, no_api_key) -> None:
        resp = client.post(
            "/scan", json={"companyUrl": "https://techstart.example.com", "demoMode": True}
        )
        assert resp.status_code == 200
        assert resp.json()["draftPack"]["companyName"] == "TechStart"

    def test_demo_content_follows_url_not_name(self, client) -> None:
        resp = client.post(
            "/scan",
            json={
                "companyUrl": "https://acmesaas.example.com",
                "companyName": "TechStart",
                "demoMode": True,
            },
        )

        pack = resp.json()["draftPack"]
        assert pack["companyName"] == "TechStart"
        assert pack["mission"]["content"].startswith("Help teams ship faster")
        assert all(
            c["reference"].startswith("https://acmesaas.example.com")
            for f in _walk_confident_fields(pack)
            for c in f["citations"]
            if c["type"] == "url"
        )

    def test_pack_is_stored(self, client) -> None:
        pack_id = client.post(
            "/scan", json={"companyUrl": "https://acmesaas.example.com", "demoMode": True}
        ).json()["packId"]

        resp = client.get(f"/packs/{pack_id}")
        assert resp.status_code == 200
        assert resp.json()["id"] == pack_id

    def test_storage_failure_does_not_change_response(self, client) -> None:
        with patch(
            "contextpack.orchestrator.save_context_pack",
            side_effect=StorageError("disk full"),
        ):
            resp = client.post(
                "/scan", json={"companyUrl": "https://acmesaas.example.com", "demoMode": True}
            )

        assert resp.status_code == 200
        assert client.get(f"/packs/{resp.json()['packId']}").status_code == 404

    def test_confidence_invariant(self, client) -> None:
        pack = client.post(
            "/scan", json={"companyUrl": "https://acmesaas.example.com", "demoMode": True}
        ).json()["draftPack"]

        fields = list(_walk_confident_fields(pack))
        assert fields
        for field in fields:
            value = field["confidence"]["value"]
            assert 0.0 <= value <= 1.0
            if value == 0:
                assert field["citations"] == []


# ---------------------------------------------------------------------------
# Request validation
# ---------------------------------------------------------------------------

class TestValidation:
    def test_missing_company_url(self, client) -> None:
        resp = client.post("/scan", json={"demoMode": True})

        assert resp.status_code == 400
        data = resp.json()
        assert data["error"] == "Invalid request"
        assert data["details"][0]["field"] == "companyUrl"

    def test_malformed_url(self, client) -> None:
        resp = client.post("/scan", json={"companyUrl": "not-a-valid-url", "demoMode": True})

        assert resp.status_code == 400
        details = resp.json()["details"]
        assert details[0]["field"] == "companyUrl"
        assert "absolute http(s) URL" in details[0]["message"]

    def test_non_http_scheme_rejected(self, client) -> None:
        resp = client.post("/scan", json={"companyUrl": "ftp://acme.test", "demoMode": True})
        assert resp.status_code == 400

    def test_malformed_json(self, client) -> None:
        resp = client.post(
            "/scan", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid request"

    @pytest.mark.parametrize("flag", ["yes", "on", "true", 1, 0])
    def test_demo_mode_must_be_a_json_boolean(self, client, flag) -> None:
        resp = client.post("/scan", json={"companyUrl": ACME_URL, "demoMode": flag})

        assert resp.status_code == 400
        assert resp.json()["details"][0]["field"] == "demoMode"

    def test_wrong_type(self, client) -> None:
        resp = client.post("/scan", json={"companyUrl": ACME_URL, "demoMode": "sometimes"})
        assert resp.status_code == 400
        assert resp.json()["details"][0]["field"] == "demoMode"


# ---------------------------------------------------------------------------
# Live mode
# ---------------------------------------------------------------------------

class TestLiveScan:
    def test_missing_api_key_is_500(self, client, no_api_key) -> None:
        with patch("contextpack.orchestrator.scrape_company") as fetch:
            resp = client.post("/scan", json={"companyUrl": ACME_URL})

        assert resp.status_code == 500
        assert "API key" in resp.json()["error"]
        fetch.assert_not_called()

    def test_successful_live_scan(self, client, acme_scrape, full_script) -> None:
        backend_patch, fetch_patch = _live(ScriptedBackend(full_script), acme_scrape)
        with backend_patch, fetch_patch:
            resp = client.post("/scan", json={"companyUrl": ACME_URL, "companyName": "Acme"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["scrapedPages"] == 2
        assert data["draftPack"]["mission"]["content"] == "Keep teams aligned"
        assert data["draftPack"]["mission"]["citations"][0]["reference"] == ACME_URL
        assert data["errors"] == [f"Failed to scrape {ACME_URL}/careers: HTTP 404: Not Found"]

    def test_every_page_failing_is_still_200(self, client) -> None:
        scrape = ScrapeResult(
            pages=[ScrapedPage.failed(ACME_URL, "Timeout after 10s")],
            errors=[f"Failed to scrape {ACME_URL}: Timeout after 10s"],
        )
        backend = ScriptedBackend()
        backend_patch, fetch_patch = _live(backend, scrape)
        with backend_patch, fetch_patch:
            resp = client.post("/scan", json={"companyUrl": ACME_URL})

        assert resp.status_code == 200
        data = resp.json()
        assert data["errors"]
        assert data["scrapedPages"] == 0
        assert backend.calls == []
        assert all(f["confidence"]["value"] == 0 for f in _walk_confident_fields(data["draftPack"]))
        assert data["draftPack"]["companyName"] == "Acme"

    def test_rate_limit_is_429(self, client, acme_scrape, full_script) -> None:
        full_script["mission"] = RateLimitError("OpenAI API rate limit exceeded.")
        backend_patch, fetch_patch = _live(ScriptedBackend(full_script), acme_scrape)
        with backend_patch, fetch_patch:
            resp = client.post("/scan", json={"companyUrl": ACME_URL})

        assert resp.status_code == 429
        assert resp.json() == {"error": "OpenAI API rate limit exceeded."}

    def test_failed_scan_is_not_stored(self, client, no_api_key) -> None:
        with patch("contextpack.orchestrator.scrape_company", MagicMock()):
            client.post("/scan", json={"companyUrl": ACME_URL})
        assert client.get("/packs").json() == []


class TestHealth:
    def test_health(self, client) -> None:
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}
