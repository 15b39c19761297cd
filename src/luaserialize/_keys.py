from __future__ import annotations

from collections.abc import Iterable
from math import isnan
from operator import attrgetter
from typing import Any, NamedTuple

from luaserialize._errors import UnsupportedKeyEncodeLuaSerializeError
from luaserialize.constants import INT64_RANGE, KeyTag


class TableKey(NamedTuple):
    """A table key, classified for writing in canonical order."""

    tag: KeyTag
    order: tuple[Any, ...]
    """Sorts keys of the same tag. Only comparable between keys of equal tag."""
    key: object
    """The key as the table holds it, used to look the entry back up."""
    data: bytes | None = None
    """The encoded bytes of string keys."""

    @property
    def sort_key(self) -> tuple[Any, ...]:
        return (self.tag, self.order)


def classify_key(key: object) -> TableKey:
    """
    Get the canonical ordering information of a table key.

    Raises
    ------
    UnsupportedKeyEncodeLuaSerializeError
        If `key` is not a bool, 64-bit int, float, str or bytes.

    Examples
    --------
    >>> classify_key(True).tag
    <KeyTag.kTrue: 1>
    >>> classify_key("ab").order
    (2, b'ab')
    """
    if isinstance(key, bool):
        return TableKey(KeyTag.kTrue if key else KeyTag.kFalse, (), key)
    elif isinstance(key, int):
        if key not in INT64_RANGE:
            raise UnsupportedKeyEncodeLuaSerializeError(
                "Table key int does not fit in 64 bits", key=key
            )
        return TableKey(KeyTag.kInteger, (key,), key)
    elif isinstance(key, float):
        # nan is not ordered against other floats, so it's placed after them.
        return TableKey(KeyTag.kNumber, (isnan(key), key), key)
    elif isinstance(key, bytes):
        return TableKey(KeyTag.kString, (len(key), key), key, key)
    elif isinstance(key, str):
        try:
            data = key.encode("utf-8")
        except UnicodeEncodeError as e:
            raise UnsupportedKeyEncodeLuaSerializeError(
                "Table key str cannot be encoded as UTF-8", key=key
            ) from e
        return TableKey(KeyTag.kString, (len(data), data), key, data)
    raise UnsupportedKeyEncodeLuaSerializeError(
        f"Table key of type {type(key).__name__} is not supported", key=key
    )


def canonical_key_order(keys: Iterable[object]) -> list[TableKey]:
    """
    Classify and sort table keys into the order their entries are written.

    Keys are ordered by kind first: `False`, `True`, integers, floats, then
    strings. Integers and floats sort numerically (`nan` last), strings sort by
    byte length, then by their bytes.

    Keys that would be written as identical key records, such as `"a"` and
    `b"a"` in the same `dict`, have no canonical order, so they raise
    `UnsupportedKeyEncodeLuaSerializeError`.

    >>> [k.key for k in canonical_key_order(["ab", 0.5, -1, "", True, 1, False])]
    [False, True, -1, 1, 0.5, '', 'ab']
    """
    ordered = sorted(map(classify_key, keys), key=attrgetter("sort_key"))
    for previous, current in zip(ordered, ordered[1:]):
        if _is_same_key_record(previous, current):
            raise UnsupportedKeyEncodeLuaSerializeError(
                "Table has more than one key with the same key record",
                key=current.key,
            )
    return ordered


def _is_same_key_record(a: TableKey, b: TableKey) -> bool:
    if a.tag is not b.tag:
        return False
    if a.tag is KeyTag.kString:
        return a.data == b.data
    # nan keys are the only floats that tie: order is (isnan, value)
    return a.tag is KeyTag.kNumber and bool(a.order[0] and b.order[0])
