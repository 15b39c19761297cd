"""Python representations of the Lua types in the luaserialize encoding."""

from __future__ import annotations

from luaserialize.luatypes._normalise_key import LuaRawKey as LuaRawKey
from luaserialize.luatypes._normalise_key import raw_key as raw_key
from luaserialize.luatypes.luafunction import LuaFunction as LuaFunction
from luaserialize.luatypes.luafunction import LuaUpvalue as LuaUpvalue
from luaserialize.luatypes.luatable import LuaTable as LuaTable
