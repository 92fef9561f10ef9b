"""Context Pack CLI - entry-point for scans, stored packs and the API server.

Usage:
    python cli/main.py --help

Command groups:
    scan      → scan a company website (or demo data) into a draft pack
    packs     → list / show / delete stored packs
    serve     → run the HTTP API
    db        → database maintenance
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from contextpack.xxx import
# ...` works when the CLI is invoked as `python cli/main.py` from any
# working directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import json
from typing import Optional

import typer
from pydantic import ValidationError

from contextpack.config import settings
from contextpack.db import get_connection, init_db
from contextpack.errors import ScanError
from contextpack.logging_utils import configure_logging
from contextpack.models import ScanRequest
from contextpack.orchestrator import ScanOrchestrator, ScanState, persist_pack
from cli.commands.packs import packs_app
from cli.rendering import render_pack

app = typer.Typer(
    name="contextpack",
    help="Context Pack scanner CLI.",
    no_args_is_help=True,
)
app.add_typer(packs_app, name="packs")


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Override LOG_LEVEL."),
) -> None:
    """Context Pack scanner CLI."""
    configure_logging(log_level)


# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# Scan
# ---------------------------------------------------------------------------
@app.command("scan")
def scan(
    url: str = typer.Argument(..., help="Company website URL."),
    name: Optional[str] = typer.Option(None, "--name", help="Company name (derived from the URL if omitted)."),
    demo: bool = typer.Option(False, "--demo", help="Use bundled demo data instead of fetching."),
    as_json: bool = typer.Option(False, "--json", help="Print the scan response as JSON."),
    save: bool = typer.Option(True, "--save/--no-save", help="Store the draft pack."),
) -> None:
    """Scan a company website and print the draft Context Pack."""
    try:
        request = ScanRequest(company_url=url, company_name=name, demo_mode=demo)
    except ValidationError as exc:
        for error in exc.errors():
            typer.echo(f"[scan] Invalid input: {error['msg']}", err=True)
        raise typer.Exit(2)

    def _progress(state: ScanState) -> None:
        if not as_json and state not in (ScanState.START, ScanState.DONE):
            typer.echo(f"[scan] {state.value} …")

    try:
        outcome = ScanOrchestrator(on_state=_progress).run(request)
    except ScanError as exc:
        typer.echo(f"[scan] Failed: {exc.message}", err=True)
        raise typer.Exit(1)

    if save:
        conn = get_connection()
        try:
            init_db(conn)
            persist_pack(conn, outcome.pack)
        finally:
            conn.close()

    if as_json:
        payload = {
            "packId": outcome.pack.id,
            "draftPack": outcome.pack.model_dump(by_alias=True, mode="json"),
            "scrapedPages": outcome.scraped_pages,
            "errors": outcome.errors,
        }
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(render_pack(outcome.pack))
    typer.echo(f"[scan] Pages scraped: {outcome.scraped_pages}")
    for warning in outcome.errors:
        typer.echo(f"[scan] ⚠ {warning}")


# ---------------------------------------------------------------------------
# API server
# ---------------------------------------------------------------------------
@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, help="Auto-reload on code changes."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    typer.echo(f"[serve] Listening on http://{host}:{port}")
    uvicorn.run("contextpack.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
