from __future__ import annotations

from fastapi import APIRouter, Depends

from ..dependencies import get_provider
from ..logs import search_operation_logs
from ..services.apps_provider import HostedAppsProvider

router = APIRouter()


@router.get("/api/logs/search")
def api_logs_search(
    page: int = 1,
    size: int = 20,
    action: str | None = None,
    query: str | None = None,
    ts_from: str | None = None,
    ts_to: str | None = None,
    provider: HostedAppsProvider = Depends(get_provider),
):
    total, items = search_operation_logs(provider.db, query, action, ts_from, ts_to, page, size)
    return {"total": total, "items": items}
