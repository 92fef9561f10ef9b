"""CRUD operations for the ``context_packs`` table.

A pack is stored as its full camelCase JSON payload plus a few indexed
columns used for listing.  Each scan produces a fresh id, so saves never
collide; saving the same id twice replaces the row.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from pydantic import ValidationError

from contextpack.errors import StorageError
from contextpack.models import ContextPack

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_pack(row: sqlite3.Row) -> Optional[ContextPack]:
    try:
        return ContextPack.model_validate_json(row["payload"])
    except ValidationError as exc:
        logger.warning("Ignoring unreadable pack %s: %s", row["id"], exc)
        return None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def save_context_pack(conn: sqlite3.Connection, pack: ContextPack) -> ContextPack:
    """Insert or replace *pack*.

    Raises:
        StorageError: If the database rejects the write.
    """
    payload = pack.model_dump_json(by_alias=True)
    try:
        with conn:
            conn.execute(
                """
                INSERT INTO context_packs
                    (id, company_name, company_url, version, payload, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    company_name = excluded.company_name,
                    company_url  = excluded.company_url,
                    version      = excluded.version,
                    payload      = excluded.payload,
                    updated_at   = excluded.updated_at
                """,
                (
                    pack.id,
                    pack.company_name,
                    pack.company_url,
                    pack.version,
                    payload,
                    pack.created_at.isoformat(),
                    pack.updated_at.isoformat(),
                ),
            )
    except sqlite3.Error as exc:
        raise StorageError(f"Could not save pack {pack.id}: {exc}") from exc
    return pack


def get_context_pack(conn: sqlite3.Connection, pack_id: str) -> Optional[ContextPack]:
    """Fetch one pack by id.  Returns ``None`` if absent or unreadable."""
    row = conn.execute(
        "SELECT id, payload FROM context_packs WHERE id = ?", (pack_id,)
    ).fetchone()
    return _row_to_pack(row) if row else None


def list_context_packs(
    conn: sqlite3.Connection,
    company_url: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[ContextPack]:
    """Return stored packs, newest first, optionally filtered by company URL."""
    query = "SELECT id, payload FROM context_packs"
    params: list[object] = []
    if company_url:
        query += " WHERE company_url = ?"
        params.append(company_url)
    query += " ORDER BY created_at DESC, rowid DESC"
    if limit is not None:
        query += " LIMIT ?"
        params.append(limit)

    rows = conn.execute(query, params).fetchall()
    return [pack for pack in map(_row_to_pack, rows) if pack is not None]


def delete_context_pack(conn: sqlite3.Connection, pack_id: str) -> bool:
    """Delete a pack.  Returns True if a row was removed; absent ids are a no-op.

    Raises:
        StorageError: If the database rejects the delete.
    """
    try:
        with conn:
            cursor = conn.execute("DELETE FROM context_packs WHERE id = ?", (pack_id,))
    except sqlite3.Error as exc:
        raise StorageError(f"Could not delete pack {pack_id}: {exc}") from exc
    return cursor.rowcount > 0
