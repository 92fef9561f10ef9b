"""Database initialisation.

``init_db(conn)`` is idempotent - safe to call on an existing database.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from contextpack.config import settings


def init_db(conn: sqlite3.Connection, schema_path: Optional[Path] = None) -> None:
    """Create the pack table and its indexes.

    Every DDL statement in ``schema.sql`` uses ``IF NOT EXISTS`` so calling
    this multiple times on the same database is safe.

    Args:
        conn: An open SQLite connection.
        schema_path: Override the bundled schema file (tests only).
    """
    sql = (schema_path or settings.schema_path).read_text(encoding="utf-8")
    # executescript() issues an implicit COMMIT first, which is fine for DDL.
    conn.executescript(sql)
