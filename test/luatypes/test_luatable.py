from __future__ import annotations

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from luaserialize.luatypes import LuaTable, raw_key


def test_init__from_mapping_pairs_and_kwargs() -> None:
    assert dict(LuaTable({1: "a"})) == {1: "a"}
    assert dict(LuaTable([(1, "a"), (2, "b")])) == {1: "a", 2: "b"}
    assert dict(LuaTable(a=1)) == {"a": 1}
    assert dict(LuaTable([(1, "a")], b=2)) == {1: "a", "b": 2}
    assert len(LuaTable()) == 0


def test_from_sequence() -> None:
    t = LuaTable.from_sequence("abc")

    assert list(t.items()) == [(1, "a"), (2, "b"), (3, "c")]


def test_bool_keys_are_distinct_from_int_keys() -> None:
    t = LuaTable[object, str]()
    t[1] = "one"
    t[True] = "true"
    t[0] = "zero"
    t[False] = "false"

    assert len(t) == 4
    assert t[1] == "one"
    assert t[True] == "true"
    assert t[0] == "zero"
    assert t[False] == "false"


def test_integral_float_keys_are_stored_as_ints() -> None:
    t = LuaTable[object, str]()
    t[2.0] = "two"

    assert t[2] == "two"
    assert list(t) == [2]
    assert type(list(t)[0]) is int

    t[2.5] = "two and a half"
    assert list(t) == [2, 2.5]


def test_str_keys_match_utf8_bytes_keys() -> None:
    t = LuaTable[object, int]()
    t["é"] = 1

    assert t["é".encode("utf-8")] == 1
    t[b"\xc3\xa9"] = 2
    assert len(t) == 1
    # The most recently assigned key is kept
    assert list(t) == [b"\xc3\xa9"]


def test_other_keys_match_by_identity() -> None:
    a, b = [1], [1]
    t = LuaTable[object, str]()
    t[a] = "a"
    t[b] = "b"

    assert len(t) == 2
    assert t[a] == "a"
    assert t[b] == "b"
    assert [1] not in t


@pytest.mark.parametrize("key", [None, math.nan])
def test_nil_and_nan_keys_cannot_be_set(key: object) -> None:
    t = LuaTable[object, int]()

    with pytest.raises(ValueError, match=r"table index is (nil|NaN)"):
        t[key] = 1


@pytest.mark.parametrize("key", [None, math.nan])
def test_nil_and_nan_keys_are_never_present(key: object) -> None:
    t = LuaTable(a=1)

    assert key not in t
    with pytest.raises(KeyError):
        t[key]
    assert t.get(key) is None


def test_assigning_none_removes_entry() -> None:
    t = LuaTable(a=1, b=2)
    t["a"] = None

    assert dict(t) == {"b": 2}
    # Removing an absent key is not an error, like assigning nil in Lua
    t["missing"] = None
    assert dict(t) == {"b": 2}


def test_del() -> None:
    t = LuaTable(a=1)
    del t["a"]

    assert len(t) == 0
    with pytest.raises(KeyError):
        del t["a"]


def test_tables_are_equal_by_identity() -> None:
    t1, t2 = LuaTable(a=1), LuaTable(a=1)

    assert t1 == t1
    assert t1 != t2
    assert t1 != {"a": 1}
    assert len({t1, t2}) == 2


def test_tables_can_be_keys_of_other_tables() -> None:
    inner = LuaTable[object, object]()
    t = LuaTable[object, object]()
    t[inner] = inner

    assert t[inner] is inner
    assert LuaTable() not in t


def test_repr() -> None:
    t = LuaTable[object, object](a=1)
    t[2] = "two"

    assert repr(t) == "LuaTable({'a': 1, 2: 'two'})"


def test_repr__cyclic() -> None:
    t = LuaTable[object, object]()
    t["self"] = t

    assert repr(t) == "LuaTable({'self': LuaTable(...)})"


def test_clear() -> None:
    t = LuaTable(a=1, b=2)
    t.clear()

    assert len(t) == 0


@given(keys=st.lists(st.one_of(st.booleans(), st.integers(), st.text())))
def test_keys_are_unique_by_raw_key(keys: list[object]) -> None:
    t = LuaTable[object, int]()
    for i, key in enumerate(keys):
        t[key] = i

    assert len(t) == len({raw_key(k) for k in keys})
    for key in keys:
        assert key in t
