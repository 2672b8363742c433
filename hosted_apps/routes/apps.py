from __future__ import annotations

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..addressing import parse_id
from ..dependencies import get_provider
from ..errors import AddressError, ProjectionError, StorageConflictError, StorageError
from ..logs import LogContext
from ..services.apps_provider import HostedAppsProvider

router = APIRouter()


class AppInsert(BaseModel):
    uri: str
    values: dict[str, Any]


class AppUpdate(BaseModel):
    uri: str
    values: dict[str, Any]
    selection: Optional[str] = None
    selection_args: Optional[List[Any]] = None


class AppDelete(BaseModel):
    uri: str
    selection: Optional[str] = None
    selection_args: Optional[List[Any]] = None


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, (AddressError, ProjectionError)):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, StorageConflictError):
        return HTTPException(status_code=409, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


@router.get("/api/apps/type")
def api_apps_type(uri: str, provider: HostedAppsProvider = Depends(get_provider)):
    try:
        return {"type": provider.get_type(uri)}
    except AddressError as e:
        raise _http_error(e)


@router.get("/api/apps/query")
def api_apps_query(
    uri: str,
    projection: Optional[List[str]] = Query(None),
    selection: Optional[str] = None,
    selection_args: Optional[List[str]] = Query(None),
    sort_order: Optional[str] = None,
    provider: HostedAppsProvider = Depends(get_provider),
):
    try:
        with provider.query(uri, projection, selection, selection_args, sort_order) as rows:
            return {"columns": rows.columns, "items": rows.as_dicts(), "total": rows.count}
    except (AddressError, ProjectionError, StorageError) as e:
        raise _http_error(e)


def _matched_rows(provider: HostedAppsProvider, uri: str, selection, selection_args) -> list[dict[str, Any]]:
    with provider.query(uri, None, selection, selection_args) as rows:
        return rows.as_dicts()


@router.post("/api/apps/insert", status_code=201)
def api_apps_insert(body: AppInsert, provider: HostedAppsProvider = Depends(get_provider)):
    log = LogContext(provider.db, "APP_INSERT")
    log.set_payload(body.model_dump())
    try:
        new_uri = provider.insert(body.uri, body.values)
    except (AddressError, StorageError) as e:
        log.write("ERROR", str(e))
        raise _http_error(e)
    # 插入已提交：日志写入失败不应把结果改成错误
    log.set_entity("hosted_app", str(parse_id(new_uri, provider.authority)))
    log.set_after(body.values)
    log.write("OK")
    return {"message": "ok", "uri": new_uri}


@router.post("/api/apps/update")
def api_apps_update(body: AppUpdate, provider: HostedAppsProvider = Depends(get_provider)):
    log = LogContext(provider.db, "APP_UPDATE")
    log.set_payload(body.model_dump())
    log.set_entity("hosted_app", body.uri)
    try:
        log.set_before(_matched_rows(provider, body.uri, body.selection, body.selection_args))
        count = provider.update(body.uri, body.values, body.selection, body.selection_args)
    except (AddressError, ProjectionError, StorageError) as e:
        log.write("ERROR", str(e))
        raise _http_error(e)
    log.set_after({"count": count})
    log.write("OK")
    return {"message": "ok", "count": count}


@router.post("/api/apps/delete")
def api_apps_delete(body: AppDelete, provider: HostedAppsProvider = Depends(get_provider)):
    log = LogContext(provider.db, "APP_DELETE")
    log.set_payload(body.model_dump())
    log.set_entity("hosted_app", body.uri)
    try:
        log.set_before(_matched_rows(provider, body.uri, body.selection, body.selection_args))
        count = provider.delete(body.uri, body.selection, body.selection_args)
    except (AddressError, ProjectionError, StorageError) as e:
        log.write("ERROR", str(e))
        raise _http_error(e)
    log.set_after({"count": count})
    log.write("OK")
    return {"message": "ok", "count": count}
