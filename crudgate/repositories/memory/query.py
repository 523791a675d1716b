"""
In-Memory Query Evaluation

Evaluates the subset of MongoDB filter, projection, sort and update syntax used
by the CRUD pipelines against plain dict records.

Supported filter operators: $and, $or, $nor, $eq, $ne, $in, $nin, $gt, $gte,
$lt, $lte, $exists, $regex. Supported update operators: $set, $unset, $inc.
"""

import copy
import re
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from bson import ObjectId

_MISSING = object()


def _get_path(record: Any, path: str) -> Any:
    current = record
    for part in path.split("."):
        if isinstance(current, dict):
            if part not in current:
                return _MISSING
            current = current[part]
        elif isinstance(current, list) and part.isdigit() and int(part) < len(current):
            current = current[int(part)]
        else:
            return _MISSING
    return current


def _equals(value: Any, target: Any) -> bool:
    if value is _MISSING:
        return target is None
    if value == target:
        return True
    # Array fields match when any element equals the target
    if isinstance(value, list) and not isinstance(target, list):
        return target in value
    return False


def _compare(value: Any, target: Any, op: str) -> bool:
    if value is _MISSING or value is None:
        return False
    try:
        if op == "$gt":
            return value > target
        if op == "$gte":
            return value >= target
        if op == "$lt":
            return value < target
        if op == "$lte":
            return value <= target
    except TypeError:
        return False
    return False


def _match_operators(value: Any, condition: dict[str, Any]) -> bool:
    for op, target in condition.items():
        if op == "$eq":
            if not _equals(value, target):
                return False
        elif op == "$ne":
            if _equals(value, target):
                return False
        elif op == "$in":
            if not any(_equals(value, t) for t in target):
                return False
        elif op == "$nin":
            if any(_equals(value, t) for t in target):
                return False
        elif op in ("$gt", "$gte", "$lt", "$lte"):
            if not _compare(value, target, op):
                return False
        elif op == "$exists":
            if (value is not _MISSING) != bool(target):
                return False
        elif op == "$regex":
            if not isinstance(value, str) or re.search(target, value) is None:
                return False
        else:
            raise ValueError(f"Unsupported query operator: {op}")
    return True


def _is_operator_doc(condition: Any) -> bool:
    return isinstance(condition, dict) and bool(condition) and all(
        k.startswith("$") for k in condition
    )


def matches(record: dict[str, Any], filter: Optional[dict[str, Any]]) -> bool:
    """Return True if the record satisfies the filter"""
    if not filter:
        return True
    for key, condition in filter.items():
        if key == "$and":
            if not all(matches(record, sub) for sub in condition):
                return False
        elif key == "$or":
            if not any(matches(record, sub) for sub in condition):
                return False
        elif key == "$nor":
            if any(matches(record, sub) for sub in condition):
                return False
        else:
            value = _get_path(record, key)
            if _is_operator_doc(condition):
                if not _match_operators(value, condition):
                    return False
            elif not _equals(value, condition):
                return False
    return True


def project(record: dict[str, Any], projection: Optional[dict[str, Any]]) -> dict[str, Any]:
    """Apply an inclusion or exclusion projection to a copy of the record"""
    if not projection:
        return copy.deepcopy(record)
    include_id = bool(projection.get("_id", 1))
    fields = {k: v for k, v in projection.items() if k != "_id"}
    inclusion = any(bool(v) for v in fields.values())

    if inclusion:
        result: dict[str, Any] = {}
        if include_id and "_id" in record:
            result["_id"] = copy.deepcopy(record["_id"])
        for path, flag in fields.items():
            if not flag:
                continue
            value = _get_path(record, path)
            if value is _MISSING:
                continue
            _set_path(result, path, copy.deepcopy(value))
        return result

    result = copy.deepcopy(record)
    if not include_id:
        result.pop("_id", None)
    for path in fields:
        _unset_path(result, path)
    return result


def _sort_rank(value: Any) -> tuple[int, Any]:
    # Type ordering loosely follows BSON comparison order
    if value is _MISSING or value is None:
        return (0, 0)
    if isinstance(value, bool):
        return (6, value)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, str):
        return (2, value)
    if isinstance(value, ObjectId):
        return (5, value)
    if isinstance(value, datetime):
        return (7, value.timestamp())
    return (3, str(value))


def sort_records(records: list[dict[str, Any]], sort: Optional[Sequence[tuple[str, int]]]) -> list[dict[str, Any]]:
    """Sort records by ordered (field, direction) pairs"""
    if not sort:
        return records
    result = list(records)
    for field, direction in reversed(list(sort)):
        result.sort(key=lambda r: _sort_rank(_get_path(r, field)), reverse=direction < 0)
    return result


def _set_path(record: dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    current = record
    for part in parts[:-1]:
        nxt = current.get(part)
        if not isinstance(nxt, dict):
            nxt = {}
            current[part] = nxt
        current = nxt
    current[parts[-1]] = value


def _unset_path(record: dict[str, Any], path: str) -> None:
    parts = path.split(".")
    current: Any = record
    for part in parts[:-1]:
        if not isinstance(current, dict) or part not in current:
            return
        current = current[part]
    if isinstance(current, dict):
        current.pop(parts[-1], None)


def apply_update(record: dict[str, Any], update: dict[str, Any]) -> bool:
    """
    Apply an update document in place

    Returns:
        bool: True if the record changed
    """
    if not update or not all(k.startswith("$") for k in update):
        raise ValueError("Update document must only contain update operators")
    before = copy.deepcopy(record)
    for op, fields in update.items():
        if op == "$set":
            for path, value in fields.items():
                _set_path(record, path, copy.deepcopy(value))
        elif op == "$unset":
            for path in fields:
                _unset_path(record, path)
        elif op == "$inc":
            for path, amount in fields.items():
                current = _get_path(record, path)
                base = 0 if current is _MISSING or current is None else current
                _set_path(record, path, base + amount)
        else:
            raise ValueError(f"Unsupported update operator: {op}")
    return record != before


def select(
    records: Iterable[dict[str, Any]],
    filter: Optional[dict[str, Any]],
    *,
    projection: Optional[dict[str, Any]] = None,
    sort: Optional[Sequence[tuple[str, int]]] = None,
    skip: int = 0,
    limit: int = 0,
) -> list[dict[str, Any]]:
    """Filter, sort, paginate and project records; returns copies"""
    matched = [r for r in records if matches(r, filter)]
    matched = sort_records(matched, sort)
    if skip > 0:
        matched = matched[skip:]
    if limit > 0:
        matched = matched[:limit]
    return [project(r, projection) for r in matched]
