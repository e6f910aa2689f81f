# app/datatables/router.py
"""API router for server-side DataTables requests."""

from typing import Any, Dict, List

from fastapi import APIRouter, Request

from app.core.dependencies import DatatableManagerDep, SessionDep
from app.datatables.exceptions import InvalidRequest

router = APIRouter(prefix="/datatables", tags=["Datatables"])


async def _read_body(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        body = await request.json()
        if not isinstance(body, dict):
            raise InvalidRequest("JSON body must be an object")
        return body
    form = await request.form()
    return dict(form)


@router.get("", response_model=List[str])
def list_datatables(manager: DatatableManagerDep) -> List[str]:
    """Names of the entities available as datatables."""
    return manager.entity_names()


@router.get("/{entity}")
def get_datatable(entity: str, request: Request, db: SessionDep, manager: DatatableManagerDep) -> Dict[str, Any]:
    """Answer a DataTables request sent as query-string parameters."""
    datatable = manager.get_datatable(entity, dict(request.query_params), db)
    return datatable.get_output()


@router.post("/{entity}")
async def post_datatable(
    entity: str, request: Request, db: SessionDep, manager: DatatableManagerDep
) -> Dict[str, Any]:
    """Answer a DataTables request sent as a form or JSON body."""
    params: Dict[str, Any] = dict(request.query_params)
    params.update(await _read_body(request))
    datatable = manager.get_datatable(entity, params, db)
    return datatable.get_output()
