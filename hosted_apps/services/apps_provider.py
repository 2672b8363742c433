"""
Hosted apps provider: address routing + CRUD translation over the apps table.

Every operation classifies its address once, validates caller input, builds
the effective predicate and delegates to ``repository.apps_repo``.
Mutations notify observers after the storage call succeeds, whether or not
any row was affected.
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from ..addressing import (
    AUTHORITY,
    COLLECTION_TYPE,
    ITEM_TYPE,
    Collection,
    Invalid,
    Item,
    classify,
    to_address,
    unknown,
)
from ..db import AppsDatabase, read_config, translate_errors
from ..errors import ProjectionError
from ..notify import ChangeNotifier, RowSet
from ..repository import apps_repo
from ..repository.apps_table import COLUMN_ID, COLUMNS

logger = logging.getLogger(__name__)


def check_columns(projection: Optional[Sequence[str]]):
    if projection is None:
        return
    if isinstance(projection, str) or not set(projection) <= set(COLUMNS):
        raise ProjectionError("Unknown columns in projection")


def effective_selection(
    kind: Collection | Item,
    selection: Optional[str],
    selection_args: Optional[Sequence[Any]],
) -> tuple[Optional[str], list[Any]]:
    """
    Collection: caller selection unchanged.
    Item: ``id = ?`` (id bound first), AND-ed with the parenthesized caller selection.
    """
    args = list(selection_args or [])
    if isinstance(kind, Collection):
        return (selection or None), args
    where = f"{COLUMN_ID} = ?"
    if selection:
        where += f" AND ({selection})"
    return where, [kind.id] + args


class HostedAppsProvider:
    def __init__(self, db: AppsDatabase, notifier: ChangeNotifier | None = None, authority: str = AUTHORITY):
        self.db = db
        self.notifier = notifier or ChangeNotifier()
        self.authority = authority

    @property
    def content_uri(self) -> str:
        return to_address(Collection(self.authority))

    def _classify(self, address: str, *allowed: type) -> Collection | Item:
        kind = classify(address, self.authority)
        if isinstance(kind, Invalid) or not isinstance(kind, allowed):
            raise unknown(address)
        return kind

    def get_type(self, address: str) -> str:
        kind = self._classify(address, Collection, Item)
        return COLLECTION_TYPE if isinstance(kind, Collection) else ITEM_TYPE

    def query(
        self,
        address: str,
        projection: Optional[Sequence[str]] = None,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
        sort_order: Optional[str] = None,
    ) -> RowSet:
        kind = self._classify(address, Collection, Item)
        check_columns(projection)
        where, args = effective_selection(kind, selection, selection_args)
        with translate_errors():
            columns, rows = apps_repo.select(self.db.get_connection(), projection, where, args, sort_order)
        result = RowSet(columns, rows)
        # 让潜在的监听者在数据变化时收到通知
        result.set_notification_address(self.notifier, address)
        logger.debug("query %s where=%r -> %d row(s)", address, where, result.count)
        return result

    def insert(self, address: str, values: Mapping[str, Any]) -> str:
        kind = self._classify(address, Collection)
        with translate_errors():
            new_id = apps_repo.insert(self.db.get_connection(), dict(values or {}))
        self.notifier.notify_change(address)
        new_address = to_address(Item(new_id, kind.authority))
        logger.debug("inserted %s", new_address)
        return new_address

    def update(
        self,
        address: str,
        values: Mapping[str, Any],
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
    ) -> int:
        kind = self._classify(address, Collection, Item)
        where, args = effective_selection(kind, selection, selection_args)
        with translate_errors():
            count = apps_repo.update(self.db.get_connection(), dict(values or {}), where, args)
        self.notifier.notify_change(address)
        logger.debug("update %s where=%r -> %d row(s)", address, where, count)
        return count

    def delete(
        self,
        address: str,
        selection: Optional[str] = None,
        selection_args: Optional[Sequence[Any]] = None,
    ) -> int:
        kind = self._classify(address, Collection, Item)
        where, args = effective_selection(kind, selection, selection_args)
        with translate_errors():
            count = apps_repo.delete(self.db.get_connection(), where, args)
        self.notifier.notify_change(address)
        logger.debug("delete %s where=%r -> %d row(s)", address, where, count)
        return count

    def count(self) -> int:
        with translate_errors():
            return apps_repo.count(self.db.get_connection())

    def close(self):
        self.db.close()


def create_provider(db_path: str | None = None) -> HostedAppsProvider:
    """Provider wired from config.yaml / environment (see db.get_db_path)."""
    cfg = read_config()
    return HostedAppsProvider(AppsDatabase(db_path), ChangeNotifier(), cfg.get("authority", AUTHORITY))
