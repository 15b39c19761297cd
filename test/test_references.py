from copy import copy

import pytest

from luaserialize._references import (
    ObjectNotSerializedLuaSerializeError,
    SerializedId,
    SerializedIdOutOfRangeLuaSerializeError,
    SerializedObjectLog,
    UpvalueLog,
    UpvalueOwner,
)


def test_serialized_object_log__objects_receive_sequential_ids_from_0() -> None:
    objects = SerializedObjectLog()

    assert objects.record_reference(object()) == SerializedId(0)
    assert objects.record_reference(object()) == SerializedId(1)
    assert objects.record_reference({}) == SerializedId(2)
    assert len(objects) == 3


def test_serialized_object_log__can_be_retrieved_by_id() -> None:
    obj1, obj2, dict1, dict2 = object(), object(), dict[object, object](), dict()
    objects = SerializedObjectLog()

    obj1_id = objects.record_reference(obj1)
    obj2_id = objects.record_reference(obj2)
    dict1_id = objects.record_reference(dict1)
    dict2_id = objects.record_reference(dict2)

    assert objects.get_object(obj1_id) is obj1
    assert objects.get_object(obj2_id) is obj2
    assert objects.get_object(dict1_id) is dict1
    assert objects.get_object(dict2_id) is dict2


def test_serialized_object_log__id_can_be_retrieved_by_object() -> None:
    obj1, obj2, dict1, dict2 = object(), object(), dict[object, object](), dict()
    objects = SerializedObjectLog()

    obj1_id = objects.record_reference(obj1)
    obj2_id = objects.record_reference(obj2)
    dict1_id = objects.record_reference(dict1)
    dict2_id = objects.record_reference(dict2)

    assert objects.get_serialized_id(obj1) == obj1_id
    assert objects.get_serialized_id(obj2) == obj2_id
    assert objects.get_serialized_id(dict1) == dict1_id
    assert objects.get_serialized_id(dict2) == dict2_id


def test_serialized_object_log__contains_referenced_objects() -> None:
    obj1, dict1 = object(), dict[object, object]()
    objects = SerializedObjectLog()

    objects.record_reference(obj1)
    objects.record_reference(dict1)

    assert obj1 in objects
    assert dict1 in objects


def test_serialized_object_log__does_not_contain_equal_unreferenced_objects() -> None:
    obj1, dict1 = object(), dict[object, object]()
    objects = SerializedObjectLog()

    objects.record_reference(obj1)
    objects.record_reference(dict1)

    assert copy(obj1) not in objects
    assert copy(dict1) == dict1
    assert copy(dict1) not in objects


def test_serialized_object_log__intern_records_objects_once() -> None:
    obj1, obj2 = object(), object()
    objects = SerializedObjectLog()

    assert objects.intern(obj1) == (SerializedId(0), True)
    assert objects.intern(obj2) == (SerializedId(1), True)
    assert objects.intern(obj1) == (SerializedId(0), False)
    assert len(objects) == 2


def test_serialized_object_log__getting_unrecorded_id_throws() -> None:
    objects = SerializedObjectLog()

    with pytest.raises(SerializedIdOutOfRangeLuaSerializeError) as exc_info:
        objects.get_object(SerializedId(42))

    assert exc_info.value.serialized_id == SerializedId(42)
    assert exc_info.value.message == "Serialized ID has not been recorded in the log"


def test_serialized_object_log__getting_negative_id_throws() -> None:
    objects = SerializedObjectLog()
    objects.record_reference(object())

    with pytest.raises(SerializedIdOutOfRangeLuaSerializeError):
        objects.get_object(SerializedId(-1))


def test_serialized_object_log__getting_unrecorded_object_throws() -> None:
    objects = SerializedObjectLog()

    unrecorded = object()
    with pytest.raises(ObjectNotSerializedLuaSerializeError) as exc_info:
        objects.get_serialized_id(unrecorded)

    assert exc_info.value.obj is unrecorded
    assert exc_info.value.message == "Object has not been recorded in the log"
    assert isinstance(exc_info.value, KeyError)


def test_upvalue_log__first_claim_takes_ownership() -> None:
    upvalue = object()
    upvalues = UpvalueLog()

    assert upvalue not in upvalues
    assert upvalues.claim(upvalue, SerializedId(3), 2) is None
    assert upvalue in upvalues
    assert upvalues.get_owner(upvalue) == UpvalueOwner(SerializedId(3), 2)


def test_upvalue_log__later_claims_get_the_first_owner() -> None:
    upvalue = object()
    upvalues = UpvalueLog()

    upvalues.claim(upvalue, SerializedId(0), 1)

    assert upvalues.claim(upvalue, SerializedId(1), 1) == UpvalueOwner(
        SerializedId(0), 1
    )
    assert upvalues.claim(upvalue, SerializedId(2), 5) == UpvalueOwner(
        SerializedId(0), 1
    )
    assert len(upvalues) == 1


def test_upvalue_log__upvalues_are_matched_by_identity() -> None:
    a, b = [0], [0]
    upvalues = UpvalueLog()

    assert upvalues.claim(a, SerializedId(0), 1) is None
    assert upvalues.claim(b, SerializedId(0), 2) is None
    assert upvalues.get_owner(a) == UpvalueOwner(SerializedId(0), 1)
    assert upvalues.get_owner(b) == UpvalueOwner(SerializedId(0), 2)


def test_upvalue_log__unclaimed_upvalues_have_no_owner() -> None:
    assert UpvalueLog().get_owner(object()) is None


def test_serialized_object_log__intern_ids_follow_record_reference_ids() -> None:
    obj1, obj2 = object(), object()
    objects = SerializedObjectLog()

    objects.record_reference(obj1)

    assert objects.intern(obj2) == (SerializedId(1), True)
    assert objects.intern(obj1) == (SerializedId(0), False)
