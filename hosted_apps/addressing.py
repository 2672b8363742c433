"""
Resource addresses of the hosted apps provider.

    content://<authority>/hosted_apps        -> Collection
    content://<authority>/hosted_apps/<id>   -> Item(id)
    anything else                            -> Invalid

``classify`` is pure and runs once per operation; callers dispatch on the
returned variant.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union
from urllib.parse import urlsplit

from .errors import AddressError

SCHEME = "content"
AUTHORITY = "com.jamdeo.tv.provider.hostedapps"
BASE_PATH = "hosted_apps"

COLLECTION_TYPE = "vnd.cursor.dir/hosted_apps"
ITEM_TYPE = "vnd.cursor.item/hosted_app"

_DIGITS = frozenset("0123456789")
# SQLite INTEGER 上限
MAX_ID = 2**63 - 1


@dataclass(frozen=True)
class Collection:
    authority: str = AUTHORITY


@dataclass(frozen=True)
class Item:
    id: int
    authority: str = AUTHORITY


@dataclass(frozen=True)
class Invalid:
    address: str


Address = Union[Collection, Item, Invalid]


def content_uri(authority: str = AUTHORITY) -> str:
    return f"{SCHEME}://{authority}/{BASE_PATH}"


CONTENT_URI = content_uri()


def split_address(address: str) -> tuple[str, str, list[str]] | None:
    """(scheme, authority, non-empty path segments), or None if unparsable."""
    if not isinstance(address, str):
        return None
    try:
        parts = urlsplit(address)
    except ValueError:
        return None
    segments = [s for s in parts.path.split("/") if s]
    return parts.scheme, parts.netloc, segments


def classify(address: str, authority: str = AUTHORITY) -> Address:
    split = split_address(address)
    if split is None:
        return Invalid(str(address))
    scheme, netloc, segments = split
    if scheme != SCHEME or netloc != authority or not segments or segments[0] != BASE_PATH:
        return Invalid(address)
    if len(segments) == 1:
        return Collection(authority)
    # '#' 通配只接受 ASCII 数字，拒绝符号/空格/全角数字
    if len(segments) == 2 and segments[1] and set(segments[1]) <= _DIGITS:
        digits = segments[1].lstrip("0") or "0"
        if len(digits) <= len(str(MAX_ID)) and int(digits) <= MAX_ID:
            return Item(int(digits), authority)
    return Invalid(address)


def unknown(address) -> AddressError:
    return AddressError(f"Unknown URI: {address}")


def with_appended_id(address: str, app_id: int) -> str:
    if isinstance(app_id, bool) or not isinstance(app_id, int) or not 0 <= app_id <= MAX_ID:
        raise AddressError(f"invalid id: {app_id!r}")
    return f"{address.rstrip('/')}/{app_id}"


def parse_id(address: str, authority: str = AUTHORITY) -> int:
    kind = classify(address, authority)
    if isinstance(kind, Item):
        return kind.id
    raise unknown(address)


def to_address(kind: Collection | Item) -> str:
    base = content_uri(kind.authority)
    if isinstance(kind, Item):
        return with_appended_id(base, kind.id)
    return base
