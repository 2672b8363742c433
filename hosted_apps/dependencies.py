"""FastAPI dependencies.

The provider (and its database handle) is created once per process; tests
swap it through ``app.dependency_overrides[get_provider]``.
"""
from __future__ import annotations

from functools import lru_cache

from .services.apps_provider import HostedAppsProvider, create_provider


@lru_cache(maxsize=1)
def get_provider() -> HostedAppsProvider:
    return create_provider()
