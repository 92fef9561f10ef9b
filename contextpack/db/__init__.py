"""Database layer package.

Public re-exports so callers can write::

    from contextpack.db import get_connection, init_db
    from contextpack.db import packs
"""

from contextpack.db.connection import get_connection
from contextpack.db.migrations import init_db
from contextpack.db import packs

__all__ = ["get_connection", "init_db", "packs"]
