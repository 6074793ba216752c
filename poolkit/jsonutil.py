"""Lenient accessors for decoded JSON values."""

from __future__ import annotations

import copy
from typing import Any


def json_array_string(val: Any, entry: int) -> str | None:
    """Return the string at index ``entry`` of a JSON array.

    Returns None when ``val`` is not a list, the index is out of range or the
    entry is not a string.
    """
    if not isinstance(val, list):
        return None
    if entry < 0 or entry >= len(val):
        return None
    item = val[entry]
    if not isinstance(item, str):
        return None
    return item


def json_object_dup(val: Any, entry: str) -> Any:
    """Return a shallow copy of the member ``entry`` of a JSON object, or None."""
    if not isinstance(val, dict):
        return None
    member = val.get(entry)
    if member is None:
        return None
    return copy.copy(member)


def json_get_string(val: Any, key: str) -> str:
    """Return the string member ``key`` of an object, or "" if it is not a string."""
    member = val.get(key) if isinstance(val, dict) else None
    return member if isinstance(member, str) else ""


def json_get_int(val: Any, key: str) -> int:
    """Return the integer member ``key`` of an object, or 0 if it is not an integer."""
    member = val.get(key) if isinstance(val, dict) else None
    if isinstance(member, bool) or not isinstance(member, int):
        return 0
    return member


def json_get_double(val: Any, key: str) -> float:
    """Return the real member ``key`` of an object, or 0.0 if it is not a real."""
    member = val.get(key) if isinstance(val, dict) else None
    return member if isinstance(member, float) else 0.0