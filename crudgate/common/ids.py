"""
Record Identifier Utilities

Record ids are bson ObjectIds; callers may pass them in string form.
"""

from typing import Any, Iterable

from bson import ObjectId

from crudgate.common.errors import ValidationError
from crudgate.domain.record import ID_FIELD

# Filter operators whose operand is a single id or a list of ids
_SCALAR_ID_OPERATORS = ("$eq", "$ne")
_LIST_ID_OPERATORS = ("$in", "$nin")


def to_object_id(value: Any) -> ObjectId:
    """
    Convert a record id to ObjectId

    Args:
        value: ObjectId or its 24-character hex string form

    Returns:
        ObjectId: Converted id

    Raises:
        ValidationError: Value is not a valid id
    """
    if isinstance(value, ObjectId):
        return value
    # ObjectId(None) would generate a new id
    if not isinstance(value, str) or not ObjectId.is_valid(value):
        raise ValidationError(
            message=f"Invalid record id: {value!r}",
            code="invalid_id",
            details={"id": str(value)},
        )
    return ObjectId(value)


def to_object_ids(values: Iterable[Any]) -> list[ObjectId]:
    """Convert a sequence of ids, keeping order and dropping duplicates"""
    result: list[ObjectId] = []
    for value in values:
        oid = to_object_id(value)
        if oid not in result:
            result.append(oid)
    return result


def id_variants(ids: Iterable[Any]) -> list[Any]:
    """
    Expand ids to both ObjectId and string form.

    References such as parentId may be stored either way.
    """
    variants: list[Any] = []
    for value in ids:
        for form in (value, str(value)):
            if form not in variants:
                variants.append(form)
    return variants


def coerce_filter_ids(filter_doc: dict[str, Any]) -> dict[str, Any]:
    """
    Convert string ids under `_id` (direct or behind $eq/$ne/$in/$nin) to ObjectId.

    Returns a shallow copy; other fields are left untouched.
    """
    if ID_FIELD not in filter_doc:
        return dict(filter_doc)
    result = dict(filter_doc)
    condition = result[ID_FIELD]
    if isinstance(condition, dict):
        coerced = dict(condition)
        for op in _SCALAR_ID_OPERATORS:
            if op in coerced:
                coerced[op] = to_object_id(coerced[op])
        for op in _LIST_ID_OPERATORS:
            if op in coerced:
                coerced[op] = [to_object_id(v) for v in coerced[op]]
        result[ID_FIELD] = coerced
    else:
        result[ID_FIELD] = to_object_id(condition)
    return result
