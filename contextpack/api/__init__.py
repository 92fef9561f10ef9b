"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from contextpack.api import app

    uvicorn contextpack.api:app --reload
"""

from contextpack.api.app import app, create_app

__all__ = ["app", "create_app"]
