"""Parameterized primitives over the ``apps`` table.

``where`` / ``order_by`` are caller-supplied SQL fragments with ``?``
placeholders; value keys and projection names are checked against
``apps_table.COLUMNS`` before they reach the SQL text.
"""
from __future__ import annotations

from sqlite3 import Connection
from typing import Any, Mapping, Optional, Sequence

from ..errors import StorageError
from .apps_table import COLUMNS, TABLE_NAME


def _check_keys(names) -> None:
    for name in names:
        if name not in COLUMNS:
            raise StorageError(f"table {TABLE_NAME} has no column named {name}")


def select(
    conn: Connection,
    columns: Optional[Sequence[str]] = None,
    where: Optional[str] = None,
    args: Sequence[Any] = (),
    order_by: Optional[str] = None,
):
    cols = list(columns) if columns else list(COLUMNS)
    _check_keys(cols)
    sql = f"SELECT {', '.join(cols)} FROM {TABLE_NAME}"
    if where:
        sql += f" WHERE {where}"
    if order_by:
        sql += f" ORDER BY {order_by}"
    cur = conn.execute(sql, list(args))
    return [d[0] for d in cur.description], cur.fetchall()


def insert(conn: Connection, values: Mapping[str, Any]) -> int:
    if not values:
        cur = conn.execute(f"INSERT INTO {TABLE_NAME} DEFAULT VALUES")
        return cur.lastrowid
    _check_keys(values.keys())
    keys = list(values.keys())
    sql = "INSERT INTO {}({}) VALUES({})".format(
        TABLE_NAME, ", ".join(keys), ", ".join(["?"] * len(keys))
    )
    cur = conn.execute(sql, [values[k] for k in keys])
    return cur.lastrowid


def update(
    conn: Connection,
    values: Mapping[str, Any],
    where: Optional[str] = None,
    args: Sequence[Any] = (),
) -> int:
    if not values:
        raise StorageError("Empty values")
    _check_keys(values.keys())
    keys = list(values.keys())
    sql = f"UPDATE {TABLE_NAME} SET " + ", ".join(f"{k}=?" for k in keys)
    if where:
        sql += f" WHERE {where}"
    cur = conn.execute(sql, [values[k] for k in keys] + list(args))
    return cur.rowcount


def delete(conn: Connection, where: Optional[str] = None, args: Sequence[Any] = ()) -> int:
    sql = f"DELETE FROM {TABLE_NAME}"
    if where:
        sql += f" WHERE {where}"
    cur = conn.execute(sql, list(args))
    return cur.rowcount


def count(conn: Connection) -> int:
    return conn.execute(f"SELECT COUNT(1) AS c FROM {TABLE_NAME}").fetchone()["c"]
