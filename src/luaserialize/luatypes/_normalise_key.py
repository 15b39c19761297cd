from __future__ import annotations

from math import isnan
from typing import NewType

from luaserialize.constants import INT64_RANGE

LuaRawKey = NewType("LuaRawKey", object)
"""
The type of the opaque values returned by [`raw_key`].

[`raw_key`]: `luaserialize.luatypes.raw_key`
"""


def normalise_table_key(key: object) -> object:
    """Get the form of a key that a table stores.

    Floats with an integral value become ints, as they do in Lua. `None` and
    `nan` can't be table keys.

    >>> normalise_table_key(2.0)
    2
    >>> normalise_table_key(2.5)
    2.5
    >>> normalise_table_key(None)
    Traceback (most recent call last):
    ValueError: table index is nil
    """
    if key is None:
        raise ValueError("table index is nil")
    if isinstance(key, float):
        if isnan(key):
            raise ValueError("table index is NaN")
        if key.is_integer() and int(key) in INT64_RANGE:
            return int(key)
    return key


def raw_key(key: object) -> LuaRawKey:
    """
    Get a surrogate value that follows Lua's raw equality rules for table keys.

    Two keys index the same table entry if their surrogates are equal.

    Examples
    --------
    >>> True == 1
    True
    >>> raw_key(True) == raw_key(1)
    False

    Strings are byte strings, so `str` keys match their UTF-8 `bytes`.

    >>> raw_key("a") == raw_key(b"a")
    True
    >>> raw_key(1.0) == raw_key(1)
    True

    Everything else is equal by object identity.

    >>> t1, t2 = [0], [0]
    >>> raw_key(t1) == raw_key(t2)
    False
    >>> raw_key(t1) == raw_key(t1)
    True
    """
    key = normalise_table_key(key)
    if isinstance(key, bool):
        # bools are equal to 0 and 1 by default
        return LuaRawKey((bool, key))
    elif isinstance(key, (int, float, bytes)):
        return LuaRawKey(key)
    elif isinstance(key, str):
        return LuaRawKey(key.encode("utf-8"))
    # Wrap id in a tuple to avoid clashing with int.
    return LuaRawKey((id(key),))
