"""
FastAPI app entry point aggregating the routers under hosted_apps/routes.
Keep as `uvicorn hosted_apps.api:app`.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI

from . import __version__
from .dependencies import get_provider
from .logs import ensure_log_schema

logger = logging.getLogger(__name__)

app = FastAPI(title="hosted-apps-api", version=__version__)


@app.on_event("startup")
def on_startup():
    provider = app.dependency_overrides.get(get_provider, get_provider)()
    # 打开数据库（必要时建表/升级），并确保操作日志表存在
    provider.db.get_connection()
    ensure_log_schema(provider.db)
    logger.info("hosted apps database ready at %s", provider.db.path)


from .routes import base as base_routes
from .routes import apps as apps_routes
from .routes import logs as logs_routes

app.include_router(base_routes.router)
app.include_router(apps_routes.router)
app.include_router(logs_routes.router)
