import sys
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from hosted_apps.addressing import CONTENT_URI
from hosted_apps.db import AppsDatabase
from hosted_apps.notify import ChangeNotifier
from hosted_apps.services.apps_provider import HostedAppsProvider


# (name, package, description, vendor)
TEST_APPS = [
    (f"App{i}", f"com.hisense.app.{i}", f"This is app {i}", "hisense") for i in range(10)
]


def app_values(name, pkg, desc, vendor):
    return {"name": name, "package": pkg, "vendor": vendor, "description": desc}


@pytest.fixture()
def db_path(tmp_path):
    return str(tmp_path / "apps_test.db")


@pytest.fixture()
def db(db_path):
    d = AppsDatabase(db_path, version=1)
    yield d
    d.close()


@pytest.fixture()
def provider(db):
    return HostedAppsProvider(db, ChangeNotifier())


@pytest.fixture()
def insert_data(db):
    """直接写入底层数据库（绕过 provider，不触发通知）"""
    def _insert():
        conn = db.get_connection()
        for app in TEST_APPS:
            conn.execute(
                "INSERT INTO apps(name, package, vendor, description) VALUES(?,?,?,?)",
                (app[0], app[1], app[3], app[2]),
            )
        return len(TEST_APPS)
    return _insert


@pytest.fixture()
def client(provider):
    from fastapi.testclient import TestClient
    from hosted_apps.api import app
    from hosted_apps.dependencies import get_provider

    app.dependency_overrides[get_provider] = lambda: provider
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def collection_uri():
    return CONTENT_URI
