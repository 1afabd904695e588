"""
The update operators understood by ``Collection.update_one``.

An update document such as::

    {"$set": {"title": "New", "participatedUsers.$.progress": 40},
     "$push": {"sections": {...}},
     "$pull": {"sections": {"id": "section_1"}}}

is parsed into a flat list of ``SetOp`` / ``PushOp`` / ``PullOp`` values and
applied to a copy of the matched document. Paths are dot separated; numeric
segments index into lists and a ``$`` segment stands for the array index that
satisfied the query (see ``query.match``).
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Union

from .errors import UpdateError
from .query import MISSING, matches, strict_equal
from .schemas import CollectionSchema, is_number


@dataclass(frozen=True)
class SetOp:
    path: str
    value: Any


@dataclass(frozen=True)
class PushOp:
    path: str
    value: Any


@dataclass(frozen=True)
class PullOp:
    path: str
    condition: Any


UpdateOp = Union[SetOp, PushOp, PullOp]

# applied in this order
OPERATORS = {"$set": SetOp, "$push": PushOp, "$pull": PullOp}


def parse_update(update: Dict[str, Any]) -> List[UpdateOp]:
    if not isinstance(update, dict):
        raise UpdateError("update must be a dict of operators")
    unknown = [k for k in update if k not in OPERATORS]
    if unknown:
        raise UpdateError(f"unsupported update operator(s): {', '.join(map(str, unknown))}")
    ops: List[UpdateOp] = []
    for name, op_type in OPERATORS.items():
        fields = update.get(name)
        if fields is None:
            continue
        if not isinstance(fields, dict):
            raise UpdateError(f"{name} expects a dict of paths")
        ops.extend(op_type(path, value) for path, value in fields.items())
    return ops


def split_path(path: str, positions: Dict[str, int]) -> List[str]:
    """Split a dotted path, substituting ``$`` with the index the query matched."""
    if not isinstance(path, str) or not path:
        raise UpdateError(f"invalid update path: {path!r}")
    segments: List[str] = []
    for seg in path.split("."):
        if not seg:
            raise UpdateError(f"invalid update path: {path!r}")
        if seg == "$":
            prefix = ".".join(segments)
            if prefix not in positions:
                raise UpdateError(f"positional operator in {path!r} did not find a match in the query")
            seg = str(positions[prefix])
        segments.append(seg)
    return segments


def _index(node: list, seg: str, path: str) -> int:
    if not seg.isdigit():
        raise UpdateError(f"cannot use field {seg!r} on an array at {path!r}")
    return int(seg)


def _get(node, seg: str, path: str):
    if isinstance(node, dict):
        return node.get(seg, MISSING)
    if isinstance(node, list):
        idx = _index(node, seg, path)
        return node[idx] if idx < len(node) else MISSING
    raise UpdateError(f"cannot traverse {type(node).__name__} at {path!r}")


def _assign(node, seg: str, value, path: str):
    if isinstance(node, dict):
        node[seg] = value
        return
    if isinstance(node, list):
        idx = _index(node, seg, path)
        if idx < len(node):
            node[idx] = value
        else:
            node.extend([None] * (idx - len(node)))
            node.append(value)
        return
    raise UpdateError(f"cannot traverse {type(node).__name__} at {path!r}")


def _parent(doc: Dict[str, Any], segments: List[str], path: str, create: bool):
    """Walk to the container holding the last segment, creating dicts on the way when ``create``."""
    node = doc
    for seg in segments[:-1]:
        child = _get(node, seg, path)
        if child is MISSING or child is None:
            if not create:
                return MISSING
            child = {}
            _assign(node, seg, child, path)
        node = child
    return node


def _pull_matches(item, condition) -> bool:
    if isinstance(condition, dict):
        return isinstance(item, dict) and matches(item, condition)
    return strict_equal(item, condition)


def apply_update(
    document: Dict[str, Any],
    ops: List[UpdateOp],
    positions: Dict[str, int] | None = None,
    schema: CollectionSchema | None = None,
) -> Dict[str, Any]:
    """
    Apply ``ops`` to a deep copy of ``document`` and return the copy.

    The input document is never modified, so a failing op leaves it intact.
    A top-level ``$set`` of a schema list or number field with a value of the
    wrong type is skipped and the previous value kept.
    """
    positions = positions or {}
    doc = copy.deepcopy(document)

    for op in ops:
        segments = split_path(op.path, positions)
        last = segments[-1]

        if isinstance(op, SetOp):
            if schema is not None and len(segments) == 1:
                if schema.is_list_field(last) and not isinstance(op.value, list):
                    continue
                if schema.is_number_field(last) and not is_number(op.value):
                    continue
            parent = _parent(doc, segments, op.path, create=True)
            _assign(parent, last, copy.deepcopy(op.value), op.path)

        elif isinstance(op, PushOp):
            parent = _parent(doc, segments, op.path, create=True)
            current = _get(parent, last, op.path)
            if current is MISSING or current is None:
                _assign(parent, last, [copy.deepcopy(op.value)], op.path)
            elif isinstance(current, list):
                current.append(copy.deepcopy(op.value))
            else:
                raise UpdateError(f"cannot $push to non-array field {op.path!r}")

        elif isinstance(op, PullOp):
            parent = _parent(doc, segments, op.path, create=False)
            if parent is MISSING:
                continue
            current = _get(parent, last, op.path)
            if current is MISSING or current is None:
                continue
            if not isinstance(current, list):
                raise UpdateError(f"cannot $pull from non-array field {op.path!r}")
            current[:] = [item for item in current if not _pull_matches(item, op.condition)]

    return schema.normalize(doc) if schema is not None else doc
