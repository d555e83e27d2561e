"""Inspection of object fields."""

from __future__ import annotations

import dataclasses
from typing import Any


def _fields(obj: Any) -> list[tuple[str, Any]]:
    if isinstance(obj, type):
        raise TypeError(f"expected an instance, got class {obj.__name__}")
    if dataclasses.is_dataclass(obj):
        return [(f.name, getattr(obj, f.name)) for f in dataclasses.fields(obj)]
    try:
        return list(vars(obj).items())
    except TypeError:
        raise TypeError(
            f"expected a dataclass or an object with attributes, got {type(obj).__name__}"
        ) from None


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (bool, int, float, complex)):
        return value == 0
    if hasattr(value, "__len__"):
        return len(value) == 0
    return False


def unknown_non_empty_fields(obj: Any, *args: str) -> list[str]:
    """Return, in declaration order, the non-empty fields of ``obj`` not named in ``args``."""
    known = set(args)
    return [
        name
        for name, value in _fields(obj)
        if not _is_empty(value) and name not in known
    ]