"""Helpers for reading loosely shaped JSON documents.

Data documents come from hand-edited JSON, so the same value may sit at
different depths or be a scalar where a list is expected.
"""

from __future__ import annotations

from typing import Any


def dig(document: Any, path: tuple[str, ...]) -> Any:
    """Follow ``path`` through nested dicts, returning None on any miss.

    Example:
        >>> dig({"mecanique": {"effects": []}}, ("mecanique", "effects"))
        []
    """
    current = document
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


def as_list(value: Any) -> list[Any]:
    """Wrap a scalar into a list; None becomes ``[]``, sequences are copied."""
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


__all__ = ["dig", "as_list"]
