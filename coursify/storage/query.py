"""
Equality-filter matching and exclusion projection over plain dict documents.

Queries are ``{field: value}`` mappings ANDed together. Keys may be dotted
paths; a path segment applied to a list matches when any element matches, and
the index of that element is reported so positional (``$``) updates can find
it again.
"""
from __future__ import annotations

from typing import Any, Dict, Tuple

MISSING = object()

# legacy call sites filter on "_id" while documents carry "id"
ID_ALIAS = "_id"


def strict_equal(a, b) -> bool:
    if a is MISSING or b is MISSING:
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    return a == b


def _match_path(value, segments: list[str], path: list[str], expected, positions: Dict[str, int]) -> bool:
    if not segments:
        return strict_equal(value, expected)
    seg, rest = segments[0], segments[1:]
    if isinstance(value, dict):
        return _match_path(value.get(seg, MISSING), rest, path + [seg], expected, positions)
    if isinstance(value, list):
        if seg.isdigit():
            idx = int(seg)
            item = value[idx] if idx < len(value) else MISSING
            return _match_path(item, rest, path + [seg], expected, positions)
        for i, item in enumerate(value):
            found: Dict[str, int] = {}
            if _match_path(item, segments, path, expected, found):
                positions.setdefault(".".join(path), i)
                for k, v in found.items():
                    positions.setdefault(k, v)
                return True
    return False


def match(document: Dict[str, Any], query: Dict[str, Any] | None) -> Tuple[bool, Dict[str, int]]:
    """Return ``(matched, positions)`` where positions maps array paths to the matching index."""
    positions: Dict[str, int] = {}
    for key, expected in (query or {}).items():
        field = "id" if key == ID_ALIAS else key
        if "." in field:
            ok = _match_path(document, field.split("."), [], expected, positions)
        else:
            ok = strict_equal(document.get(field, MISSING), expected)
        if not ok:
            return False, {}
    return True, positions


def matches(document: Dict[str, Any], query: Dict[str, Any] | None) -> bool:
    return match(document, query)[0]


def project(document: Dict[str, Any], projection: Dict[str, Any] | None) -> Dict[str, Any]:
    """Exclusion-only projection: drop every field mapped to 0."""
    out = dict(document)
    for key, flag in (projection or {}).items():
        if flag == 0:
            out.pop(key, None)
    return out
