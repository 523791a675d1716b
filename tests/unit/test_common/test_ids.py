"""
Record Id Utility Tests
"""

import pytest
from bson import ObjectId

from crudgate.common.errors import ValidationError
from crudgate.common.ids import coerce_filter_ids, id_variants, to_object_id, to_object_ids


def test_to_object_id_accepts_hex_string():
    oid = ObjectId()
    assert to_object_id(str(oid)) == oid
    assert to_object_id(oid) is oid


@pytest.mark.parametrize("value", ["abc", "", None, 42])
def test_to_object_id_rejects_invalid(value):
    with pytest.raises(ValidationError) as exc_info:
        to_object_id(value)
    assert exc_info.value.code == "invalid_id"


def test_to_object_ids_keeps_order_and_dedupes():
    first, second = ObjectId(), ObjectId()
    assert to_object_ids([str(second), first, second]) == [second, first]


def test_id_variants():
    oid = ObjectId()
    assert id_variants([oid]) == [oid, str(oid)]
    assert id_variants(["x"]) == ["x"]


def test_coerce_filter_ids():
    first, second = ObjectId(), ObjectId()
    assert coerce_filter_ids({"_id": str(first), "name": "a"}) == {"_id": first, "name": "a"}
    assert coerce_filter_ids({"_id": {"$in": [str(first), str(second)]}}) == {"_id": {"$in": [first, second]}}
    assert coerce_filter_ids({"_id": {"$ne": str(first)}}) == {"_id": {"$ne": first}}
    assert coerce_filter_ids({"name": "a"}) == {"name": "a"}
