"""Stored Context Pack endpoints.

Routes
------
GET    /packs          All stored packs, newest first (``?companyUrl=`` filters)
GET    /packs/{id}     One pack, or 404 {"error": ...}
DELETE /packs/{id}     Remove a pack (204, also when already absent)
"""

from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Query, Request, Response
from fastapi.responses import JSONResponse

from contextpack.db.packs import delete_context_pack, get_context_pack, list_context_packs
from contextpack.models import ContextPack

router = APIRouter()


@router.get("", response_model=list[ContextPack])
def list_packs_endpoint(
    request: Request,
    company_url: Optional[str] = Query(default=None, alias="companyUrl"),
    limit: Optional[int] = Query(default=None, ge=1),
) -> list[ContextPack]:
    """Return stored packs, newest first."""
    conn = request.app.state.db
    return list_context_packs(conn, company_url=company_url, limit=limit)


@router.get("/{pack_id}", response_model=ContextPack)
def get_pack_endpoint(pack_id: str, request: Request) -> Union[ContextPack, JSONResponse]:
    """Return a single pack by id."""
    pack = get_context_pack(request.app.state.db, pack_id)
    if pack is None:
        return JSONResponse(status_code=404, content={"error": f"Pack not found: {pack_id!r}"})
    return pack


@router.delete("/{pack_id}", status_code=204, response_class=Response, response_model=None)
def delete_pack_endpoint(pack_id: str, request: Request) -> Response:
    """Delete a pack; deleting an unknown id is not an error."""
    delete_context_pack(request.app.state.db, pack_id)
    return Response(status_code=204)
