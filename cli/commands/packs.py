"""Stored Context Pack commands."""

import json
from typing import Optional

import typer

from contextpack.db import get_connection, init_db
from contextpack.db.packs import delete_context_pack, get_context_pack, list_context_packs
from cli.rendering import render_pack

packs_app = typer.Typer(help="Browse and manage stored Context Packs.", no_args_is_help=True)


@packs_app.command("list")
def packs_list(
    company_url: Optional[str] = typer.Option(None, "--url", help="Only packs for this company URL."),
) -> None:
    """List stored packs, newest first."""
    conn = get_connection()
    init_db(conn)

    try:
        packs = list_context_packs(conn, company_url=company_url)
        if not packs:
            typer.echo("No packs found.")
            return

        for pack in packs:
            typer.echo(
                f"  {pack.id}  {pack.version}  {pack.company_name!r}  "
                f"{pack.created_at:%Y-%m-%d %H:%M}"
            )
    finally:
        conn.close()


@packs_app.command("show")
def packs_show(
    pack_id: str = typer.Argument(..., help="Pack id."),
    as_json: bool = typer.Option(False, "--json", help="Print the raw pack JSON."),
) -> None:
    """Show one stored pack."""
    conn = get_connection()
    init_db(conn)

    try:
        pack = get_context_pack(conn, pack_id)
    finally:
        conn.close()

    if pack is None:
        typer.echo(f"Pack not found: {pack_id}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(pack.model_dump(by_alias=True, mode="json"), indent=2))
    else:
        typer.echo(render_pack(pack))


@packs_app.command("delete")
def packs_delete(
    pack_id: str = typer.Argument(..., help="Pack id."),
) -> None:
    """Delete a stored pack."""
    conn = get_connection()
    init_db(conn)

    try:
        removed = delete_context_pack(conn, pack_id)
    finally:
        conn.close()

    if removed:
        typer.echo(f"🗑️  Deleted pack {pack_id}")
    else:
        typer.echo(f"Nothing to delete: {pack_id}")
