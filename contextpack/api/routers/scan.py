"""Website scan endpoint.

Routes
------
POST /scan    Body: {"companyUrl": "https://...", "companyName"?: "...", "demoMode"?: false}
              → {"packId", "draftPack", "scrapedPages", "errors"}
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Request
from pydantic import Field

from contextpack.models import CamelModel, ContextPack, ScanRequest
from contextpack.orchestrator import ScanOrchestrator, persist_pack

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class ScanResponse(CamelModel):
    pack_id: str
    draft_pack: ContextPack
    scraped_pages: int
    errors: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post("", response_model=ScanResponse)
def scan_endpoint(
    body: ScanRequest,
    request: Request,
    background_tasks: BackgroundTasks,
) -> ScanResponse:
    """Scan the company website (or demo data) and return a v0 draft pack.

    Runs synchronously in FastAPI's threadpool.  The pack is saved after the
    response is produced; a storage failure is logged and never changes the
    response.
    """
    outcome = ScanOrchestrator().run(body)
    background_tasks.add_task(persist_pack, request.app.state.db, outcome.pack)
    return ScanResponse(
        pack_id=outcome.pack.id,
        draft_pack=outcome.pack,
        scraped_pages=outcome.scraped_pages,
        errors=outcome.errors,
    )
