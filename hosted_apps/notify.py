"""
Change notification keyed by resource address.

An observer registered at an address hears about changes to that address,
to anything below it, and to its ancestors. Ancestor changes always
propagate down; descendant changes propagate up only when the observer was
registered with ``notify_for_descendants=True``.

Registrations made with ``weak=True`` hold a bound-method callback through a
``weakref.WeakMethod``; once its owner is collected the registration is
pruned on the next notify / count.
"""
from __future__ import annotations

import logging
import threading
import weakref
from typing import Any, Callable, Optional, Sequence

from .addressing import split_address

logger = logging.getLogger(__name__)

Callback = Callable[[str], None]


def _key(address: str) -> tuple:
    split = split_address(address)
    if split is None:
        return (str(address),)
    scheme, authority, segments = split
    return (scheme, authority, *segments)


class Registration:
    def __init__(self, notifier: "ChangeNotifier", address: str, callback: Callback,
                 notify_for_descendants: bool, weak: bool = False):
        self.notifier = notifier
        self.address = address
        self.key = _key(address)
        self._callback = weakref.WeakMethod(callback) if weak else (lambda: callback)
        self.notify_for_descendants = notify_for_descendants

    @property
    def callback(self) -> Optional[Callback]:
        """None once a weakly held callback's owner is gone."""
        return self._callback()

    @property
    def alive(self) -> bool:
        return self.callback is not None

    def matches(self, changed: tuple) -> bool:
        n = len(self.key)
        if changed[:n] == self.key:
            # same address, or a change below the registered one
            return len(changed) == n or self.notify_for_descendants
        # change at an ancestor
        return self.key[: len(changed)] == changed

    def unregister(self):
        self.notifier.unregister(self)


class ChangeNotifier:
    def __init__(self):
        self._lock = threading.Lock()
        self._registrations: list[Registration] = []

    def register(self, address: str, callback: Callback, notify_for_descendants: bool = True,
                 weak: bool = False) -> Registration:
        reg = Registration(self, address, callback, notify_for_descendants, weak)
        with self._lock:
            self._registrations.append(reg)
        return reg

    def unregister(self, reg: Registration):
        with self._lock:
            try:
                self._registrations.remove(reg)
            except ValueError:
                pass

    def _prune(self):
        # caller holds self._lock
        self._registrations = [r for r in self._registrations if r.alive]

    def observer_count(self) -> int:
        with self._lock:
            self._prune()
            return len(self._registrations)

    def notify_change(self, address: str) -> int:
        """Call every matching observer; returns how many were notified."""
        changed = _key(address)
        with self._lock:
            self._prune()
            targets = [(r, r.callback) for r in self._registrations if r.matches(changed)]
        notified = 0
        for reg, callback in targets:
            if callback is None:
                continue
            notified += 1
            try:
                callback(address)
            except Exception:
                logger.exception("change observer for %s failed", reg.address)
        logger.debug("notified %d observer(s) of change to %s", notified, address)
        return notified


class RowSet:
    """Query result tracked against the address it was read from."""

    def __init__(self, columns: Sequence[str], rows: Sequence[Sequence[Any]]):
        self.columns = list(columns)
        self.rows = [tuple(r) for r in rows]
        self.stale = False
        self.notification_address: Optional[str] = None
        self._registration: Optional[Registration] = None
        self._observers: list[Callback] = []

    @property
    def count(self) -> int:
        return len(self.rows)

    def __len__(self):
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def __getitem__(self, idx):
        return self.rows[idx]

    def as_dicts(self) -> list[dict[str, Any]]:
        return [dict(zip(self.columns, r)) for r in self.rows]

    def column(self, name: str) -> list[Any]:
        i = self.columns.index(name)
        return [r[i] for r in self.rows]

    def set_notification_address(self, notifier: ChangeNotifier, address: str):
        if self._registration is not None:
            self._registration.unregister()
        self.notification_address = address
        self._registration = notifier.register(address, self._on_change, weak=True)

    def register_observer(self, callback: Callback):
        self._observers.append(callback)

    def _on_change(self, address: str):
        self.stale = True
        for cb in list(self._observers):
            cb(address)

    def close(self):
        if self._registration is not None:
            self._registration.unregister()
            self._registration = None
        self._observers.clear()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
