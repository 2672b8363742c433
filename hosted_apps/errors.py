"""Exceptions raised by the hosted apps provider.

AddressError / ProjectionError are raised before storage is touched;
StorageError / StorageConflictError wrap sqlite3 failures.
"""
from __future__ import annotations


class ProviderError(Exception):
    """Base class for all provider failures."""


class AddressError(ProviderError, ValueError):
    """Unknown address, or an address kind the operation does not support."""


class ProjectionError(ProviderError, ValueError):
    """A requested projection column is not part of the apps table."""


class StorageError(ProviderError):
    """Engine-level failure (I/O, bad SQL fragment, unknown column, ...)."""


class StorageConflictError(StorageError):
    """Constraint violation: duplicate id, missing NOT NULL field."""
