"""SQLite connection factory.

Usage::

    from contextpack.db.connection import get_connection

    conn = get_connection()
    try:
        init_db(conn)
    finally:
        conn.close()
"""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional, Union

from contextpack.config import settings


def get_connection(db_path: Optional[Union[Path, str]] = None) -> sqlite3.Connection:
    """Open and configure a SQLite connection.

    The connection is shared across FastAPI's worker threads, so it is opened
    with ``check_same_thread=False``.  File databases use WAL journalling so
    readers never block the background pack writer.

    Args:
        db_path: Override the DB path (``":memory:"`` is accepted).  Defaults
            to ``settings.db_path``.

    Returns:
        A :class:`sqlite3.Connection` with ``row_factory`` set to
        :class:`sqlite3.Row` so columns can be accessed by name.
    """
    path = str(db_path or settings.db_path)

    if path != ":memory:":
        settings.ensure_workspace()

    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row

    if path != ":memory:":
        conn.execute("PRAGMA journal_mode = WAL")

    return conn
