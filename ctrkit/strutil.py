"""Small helpers for string lists and key=value strings."""

from __future__ import annotations

import csv
import io
from collections.abc import Iterable


def convert_kv_strings_to_map(values: Iterable[str]) -> dict[str, str]:
    """Convert ``["key=value", "flag"]`` to ``{"key": "value", "flag": ""}``."""
    result: dict[str, str] = {}
    for value in values:
        key, _, rest = value.partition("=")
        result[key] = rest
    return result


def in_string_slice(items: Iterable[str], value: str) -> bool:
    """Return True if ``value`` is in ``items``, ignoring case."""
    folded = value.casefold()
    return any(item.casefold() == folded for item in items)


def dedupe_str_slice(items: Iterable[str]) -> list[str]:
    """Drop repeated strings, keeping the first occurrence of each."""
    return list(dict.fromkeys(items))


def parse_csv_map(text: str) -> dict[str, str]:
    """Parse a single CSV line such as ``foo=x,bar=y`` into a dict.

    Raises ValueError if the text is not valid CSV or is not exactly one line.
    """
    try:
        records = [row for row in csv.reader(io.StringIO(text), strict=True) if row]
    except csv.Error as err:
        raise ValueError(f"cannot parse {text!r}: {err}") from err
    if len(records) != 1:
        raise ValueError(f"expected a single line, got {len(records)} lines")
    result: dict[str, str] = {}
    for field in records[0]:
        key, _, value = field.partition("=")
        result[key] = value
    return result


def trim_str_slice_right(base: list[str], extra: list[str]) -> list[str]:
    """Remove ``extra`` from the end of ``base`` if ``base`` ends with it."""
    for start in range(len(base)):
        if base[start:] == list(extra):
            return base[:start]
    return base