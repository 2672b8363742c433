"""Schema of the ``apps`` table: names, DDL and the destructive upgrade."""
from __future__ import annotations

import logging
from sqlite3 import Connection

logger = logging.getLogger(__name__)

TABLE_NAME = "apps"
COLUMN_ID = "id"
COLUMN_NAME = "name"
COLUMN_PACKAGE = "package"
COLUMN_VENDOR = "vendor"
COLUMN_DESCRIPTION = "description"

COLUMNS = (COLUMN_ID, COLUMN_NAME, COLUMN_PACKAGE, COLUMN_VENDOR, COLUMN_DESCRIPTION)

DDL = f"""
CREATE TABLE {TABLE_NAME} (
  {COLUMN_ID} INTEGER PRIMARY KEY AUTOINCREMENT,
  {COLUMN_NAME} TEXT NOT NULL,
  {COLUMN_PACKAGE} TEXT NOT NULL,
  {COLUMN_VENDOR} TEXT NOT NULL,
  {COLUMN_DESCRIPTION} TEXT NOT NULL
)
"""


def create(conn: Connection):
    conn.execute(DDL)


def upgrade(conn: Connection, old_version: int, new_version: int):
    logger.warning(
        "Upgrading database from version %s to %s, which will destroy all old data",
        old_version,
        new_version,
    )
    conn.execute(f"DROP TABLE IF EXISTS {TABLE_NAME}")
    create(conn)


def column_names(conn: Connection) -> list[str]:
    return [r[1] for r in conn.execute(f"PRAGMA table_info({TABLE_NAME})").fetchall()]
