"""Helpers for untyped data coming from TOML files and JSON responses."""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a string value, stripped.

    Returns None if missing, not a str, or empty after stripping.
    """
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_int(table: Mapping[str, object], key: str) -> int | None:
    """Get an int value (bools are rejected)."""
    value = table.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def get_str_tuple(table: Mapping[str, object], key: str) -> tuple[str, ...] | None:
    """Get a list of strings as a tuple.

    Raises:
        TypeError: if the key holds something other than a list of strings.
    """
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        raise TypeError(f"{key} must be a list of strings")
    items = cast(list[object], value)
    if not all(isinstance(item, str) for item in items):
        raise TypeError(f"{key} must be a list of strings")
    return tuple(cast(list[str], items))


def expect_str(table: Mapping[str, object], key: str) -> str | None:
    """Like :func:`get_str`, but a present non-string value is an error.

    Raises:
        TypeError: if the key holds something other than a string.
    """
    value = table.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {type(value).__name__}")
    return get_str(table, key)


def expect_table(table: Mapping[str, object], key: str) -> StrDict | None:
    """Like :func:`get_table`, but a present non-table value is an error.

    Raises:
        TypeError: if the key holds something other than a table.
    """
    value = table.get(key)
    if value is None:
        return None
    result = as_str_dict(value)
    if result is None:
        raise TypeError(f"[{key}] must be a table, got {type(value).__name__}")
    return result
