"""Scan orchestration: request in, draft Context Pack out.

Live scans walk ``START → FETCHING → EXTRACTING → ASSEMBLING → DONE``; demo
scans jump straight from ``START`` to ``DONE`` on canned data.  Any systemic
failure moves the state to ``FAILED`` and the error propagates to the
caller.  Storage happens outside :meth:`ScanOrchestrator.run`; the
caller hands the finished pack to :func:`persist_pack`.
"""

from __future__ import annotations

import enum
import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Callable, Optional

from pydantic import ValidationError

from contextpack.db.packs import save_context_pack
from contextpack.demo import demo_company_for_url, mock_context_pack, mock_scrape_result
from contextpack.errors import (
    EMPTY_EXTRACTION_WARNING,
    TOTAL_SCRAPE_FAILURE_WARNING,
    PackAssemblyError,
    ScanError,
    StorageError,
)
from contextpack.extraction import Extractor, LLMBackend, get_backend
from contextpack.logging_utils import log_event
from contextpack.models import ContextPack, ExtractionResult, ScanRequest
from contextpack.pack import assemble_pack, company_name_from_url, extraction_from_pack
from contextpack.scraper import ScrapeResult, scrape_company

logger = logging.getLogger(__name__)


class ScanState(str, enum.Enum):
    START = "start"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ScanOutcome:
    """Result of one scan: the draft pack, pages fetched, and warnings."""

    pack: ContextPack
    scraped_pages: int
    errors: list[str] = field(default_factory=list)


class ScanOrchestrator:
    """Runs one scan request through fetch, extraction and assembly.

    Args:
        backend_factory: Builds the LLM backend; called before any page is
            fetched so a missing credential fails fast.
        fetch: Scrapes a company URL into a :class:`ScrapeResult`.
        on_state: Optional callback invoked on every state transition.
    """

    def __init__(
        self,
        backend_factory: Optional[Callable[[], LLMBackend]] = None,
        fetch: Optional[Callable[[str], ScrapeResult]] = None,
        on_state: Optional[Callable[[ScanState], None]] = None,
    ) -> None:
        self._backend_factory = backend_factory or get_backend
        self._fetch = fetch or scrape_company
        self._on_state = on_state
        self.state = ScanState.START

    def run(self, request: ScanRequest) -> ScanOutcome:
        self._transition(ScanState.START)
        try:
            if request.demo_mode:
                outcome = self._run_demo(request)
            else:
                outcome = self._run_live(request)
        except ScanError as exc:
            self._transition(ScanState.FAILED)
            log_event(
                logger, logging.WARNING, "scan.failed",
                company_url=request.company_url,
                error=type(exc).__name__,
                status=exc.status_code,
            )
            raise

        self._transition(ScanState.DONE)
        log_event(
            logger, logging.INFO, "scan.finished",
            pack_id=outcome.pack.id,
            demo=request.demo_mode,
            scraped_pages=outcome.scraped_pages,
            warnings=len(outcome.errors),
        )
        return outcome

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def _run_demo(self, request: ScanRequest) -> ScanOutcome:
        # Pages and pack always come from the same demo company, picked by URL.
        scrape = mock_scrape_result(request.company_url)
        mock = mock_context_pack(demo_company_for_url(request.company_url).name)
        company_name = request.company_name or mock.company_name

        pack = self._assemble(request.company_url, company_name, extraction_from_pack(mock))
        return ScanOutcome(pack=pack, scraped_pages=len(scrape.successful_pages))

    def _run_live(self, request: ScanRequest) -> ScanOutcome:
        self._transition(ScanState.FETCHING)
        backend = self._backend_factory()
        scrape = self._fetch(request.company_url)

        errors = list(scrape.errors)
        if scrape.all_pages_failed:
            errors.append(TOTAL_SCRAPE_FAILURE_WARNING)

        self._transition(ScanState.EXTRACTING)
        extraction, field_warnings = Extractor(backend).extract_with_warnings(scrape.pages)
        errors.extend(field_warnings)
        if scrape.successful_pages and not extraction.has_content():
            errors.append(EMPTY_EXTRACTION_WARNING)

        self._transition(ScanState.ASSEMBLING)
        company_name = request.company_name or company_name_from_url(request.company_url)
        pack = self._assemble(request.company_url, company_name, extraction)
        return ScanOutcome(
            pack=pack,
            scraped_pages=len(scrape.successful_pages),
            errors=errors,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _assemble(
        company_url: str,
        company_name: str,
        extraction: ExtractionResult,
    ) -> ContextPack:
        try:
            return assemble_pack(company_url, company_name, extraction)
        except ValidationError as exc:
            raise PackAssemblyError(f"Assembled pack failed validation: {exc}") from exc

    def _transition(self, state: ScanState) -> None:
        self.state = state
        logger.debug("Scan state -> %s", state.value)
        if self._on_state is not None:
            self._on_state(state)


def persist_pack(conn: sqlite3.Connection, pack: ContextPack) -> bool:
    """Save *pack*, logging rather than raising on storage failure.

    Returns True when the pack was written.
    """
    try:
        save_context_pack(conn, pack)
    except StorageError as exc:
        log_event(logger, logging.ERROR, "pack.save_failed", pack_id=pack.id, error=str(exc))
        return False
    log_event(logger, logging.INFO, "pack.saved", pack_id=pack.id)
    return True
