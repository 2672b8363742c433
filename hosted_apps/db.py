from __future__ import annotations

# hosted_apps/db.py
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import Iterator

import yaml

from .errors import StorageConflictError, StorageError
from .repository import apps_table

logger = logging.getLogger(__name__)

DATABASE_NAME = "apps.db"
DATABASE_VERSION = 1

# DB 路径解析顺序：
# 1) 环境变量 HOSTED_APPS_DB_PATH（最高优先级）
# 2) config.yaml 的 test_db_path（当检测到测试环境时）
# 3) config.yaml 的 db_path（生产默认）
# 4) 兜底：项目根 apps.db
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_ROOT_DB = os.path.join(_PROJECT_ROOT, DATABASE_NAME)


def read_config(cfg_path: str | None = None) -> dict:
    cfg_path = cfg_path or os.environ.get("HOSTED_APPS_CONFIG") or os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning("ignoring unreadable config %s: %s", cfg_path, e)
        return {}
    out = {}
    for k in ("db_path", "test_db_path", "authority"):
        v = cfg.get(k)
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
    v = cfg.get("db_version")
    if isinstance(v, int) and v > 0:
        out["db_version"] = v
    return out


def get_db_path(_: str | None = None) -> str:
    env_path = os.environ.get("HOSTED_APPS_DB_PATH")
    cfg = read_config()
    cfg_db = cfg.get("db_path")
    cfg_test = cfg.get("test_db_path")
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        path = env_path
    elif is_test and cfg_test:
        path = cfg_test
    elif cfg_db:
        path = cfg_db
    else:
        path = _ROOT_DB

    # 确保目录存在
    dirn = os.path.dirname(path) or "."
    os.makedirs(dirn, exist_ok=True)
    return path


def get_db_version() -> int:
    return read_config().get("db_version", DATABASE_VERSION)


def _connect(path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(
        path,
        detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        check_same_thread=False,
        isolation_level=None,
    )
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    获取一次性 SQLite 连接（脚本/测试用）。优先使用显式传入的 db_path，否则走 get_db_path()。
    """
    conn = _connect(db_path or get_db_path())
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def translate_errors() -> Iterator[None]:
    """Map sqlite3 exceptions onto the provider's storage errors."""
    try:
        yield
    except sqlite3.IntegrityError as e:
        raise StorageConflictError(str(e)) from e
    except (sqlite3.Error, OverflowError) as e:
        raise StorageError(str(e)) from e


class AppsDatabase:
    """
    Long-lived handle to the apps database.

    The connection is opened on first use. A fresh file gets the apps table
    created; an older ``user_version`` triggers the destructive upgrade in
    ``apps_table.upgrade``. Opening a newer database than ``version`` fails.
    """

    def __init__(self, db_path: str | None = None, version: int | None = None):
        self.db_path = db_path
        self.version = version if version is not None else get_db_version()
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self.db_path or get_db_path()

    def get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is None:
                self._conn = self._open()
            return self._conn

    def _open(self) -> sqlite3.Connection:
        path = self.path
        with translate_errors():
            conn = _connect(path)
            try:
                self._migrate(conn)
            except Exception:
                conn.close()
                raise
        logger.debug("opened apps database %s (version %s)", path, self.version)
        return conn

    def _migrate(self, conn: sqlite3.Connection):
        current = conn.execute("PRAGMA user_version").fetchone()[0]
        if current == self.version:
            return
        if current > self.version:
            raise StorageError(f"Can't downgrade database from version {current} to {self.version}")
        conn.execute("BEGIN")
        try:
            if current == 0:
                apps_table.create(conn)
            else:
                apps_table.upgrade(conn, current, self.version)
            conn.execute(f"PRAGMA user_version = {int(self.version)}")
            conn.execute("COMMIT")
        except Exception:
            conn.execute("ROLLBACK")
            raise

    def recreate(self):
        """Force the destructive upgrade at the current version (drops every record)."""
        conn = self.get_connection()
        with self._lock, translate_errors():
            apps_table.upgrade(conn, self.version, self.version)

    def close(self):
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
