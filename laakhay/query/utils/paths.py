"""Path lookup helpers for extracting nested values from service results."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Any

# Matches "name", "[0]" and "0" segments of a dotted/bracket path
_SEGMENT_RE = re.compile(r"[^.\[\]]+")

_MISSING = object()


def _split_path(path: str) -> list[str]:
    return _SEGMENT_RE.findall(path)


def _step(current: Any, segment: str) -> Any:
    if isinstance(current, Mapping):
        if segment in current:
            return current[segment]
        if segment.lstrip("-").isdigit() and int(segment) in current:
            return current[int(segment)]
        return _MISSING

    if isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
        if not segment.lstrip("-").isdigit():
            return _MISSING
        index = int(segment)
        if -len(current) <= index < len(current):
            return current[index]
        return _MISSING

    return getattr(current, segment, _MISSING)


def get_path(obj: Any, path: str, default: Any = None) -> Any:
    """Resolve a dotted/bracket path against nested data.

    Mappings are indexed by key, sequences by integer segment and any other
    object by attribute, so pydantic models and dataclasses work as well as
    decoded JSON.

    Args:
        obj: Root object (dict, list, model, ...)
        path: Path such as ``"list"``, ``"data.items"`` or ``"pages[0].rows"``
        default: Value returned when any segment is missing

    Returns:
        The resolved value, or ``default``

    Examples:
        >>> get_path({"data": {"items": [1, 2]}}, "data.items")
        [1, 2]
        >>> get_path({"pages": [{"rows": [3]}]}, "pages[0].rows")
        [3]
        >>> get_path({"a": 1}, "a.b", default="missing")
        'missing'
    """
    if obj is None:
        return default

    segments = _split_path(path)
    if not segments:
        return default

    current = obj
    for segment in segments:
        current = _step(current, segment)
        if current is _MISSING:
            return default
    return current
