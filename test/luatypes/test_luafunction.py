from __future__ import annotations

import pytest

from luaserialize.luatypes import LuaFunction, LuaUpvalue


def test_lua_function__code_is_copied_to_bytes() -> None:
    code = bytearray(b"\x1bLua")
    f = LuaFunction(code)
    code[0] = 0

    assert f.code == b"\x1bLua"
    assert f.upvalues == ()


def test_lua_function__upvalues_are_a_tuple() -> None:
    a, b = LuaUpvalue(1), LuaUpvalue("x")
    f = LuaFunction(b"", iter([a, b]))

    assert f.upvalues == (a, b)


def test_lua_function__at_most_255_upvalues() -> None:
    assert len(LuaFunction(b"", [LuaUpvalue() for _ in range(255)]).upvalues) == 255

    with pytest.raises(ValueError, match=r"at most 255 upvalues"):
        LuaFunction(b"", [LuaUpvalue() for _ in range(256)])


def test_lua_function__compared_by_identity() -> None:
    f1, f2 = LuaFunction(b"code"), LuaFunction(b"code")

    assert f1 == f1
    assert f1 != f2
    assert len({f1, f2}) == 2


def test_lua_function__repr() -> None:
    assert (
        repr(LuaFunction(b"code", [LuaUpvalue()]))
        == "LuaFunction(code=<4 bytes>, upvalues=1)"
    )


def test_lua_upvalue__shared_between_functions() -> None:
    shared = LuaUpvalue(0)
    f1, f2 = LuaFunction(b"f1", [shared]), LuaFunction(b"f2", [LuaUpvalue(), shared])

    f1.upvalues[0].value = 10

    assert f2.upvalues[1].value == 10
    assert f2.upvalues[1] is shared


def test_lua_upvalue__compared_by_identity() -> None:
    assert LuaUpvalue(1) != LuaUpvalue(1)
    assert repr(LuaUpvalue(1)) == "LuaUpvalue(value=1)"
    assert LuaUpvalue().value is None
