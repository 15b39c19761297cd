from __future__ import annotations

from abc import ABCMeta
from collections.abc import Iterable, Iterator, MutableMapping
from operator import itemgetter
from reprlib import recursive_repr
from typing import TYPE_CHECKING, cast, overload

from luaserialize.luatypes._normalise_key import (
    LuaRawKey,
    normalise_table_key,
    raw_key,
)

if TYPE_CHECKING:
    from typing_extensions import TypeVar

    from _typeshed import SupportsKeysAndGetItem

    KT = TypeVar("KT", default=object)
    VT = TypeVar("VT", default=object)
else:
    from typing import TypeVar

    KT = TypeVar("KT")
    VT = TypeVar("VT")


class LuaTable(MutableMapping[KT, VT], metaclass=ABCMeta):
    """A Python equivalent of a Lua table.

    `LuaTable` is a [Mapping] that matches keys the way Lua does:

    * `True` and `False` are distinct from `1` and `0`.
    * Floats with an integral value are the same key as the equal int, and are
      stored as the int.
    * `str` keys are the same key as their UTF-8 `bytes`.
    * Any other key is matched by identity, so keys need not be hashable.
    * `None` and `nan` are not valid keys, and assigning `None` to a key
      removes it.

    Tables themselves are compared by identity, like Lua tables. Two tables
    holding equal entries are not equal, which is what lets tables reference
    themselves, and each other, in cycles.

    [Mapping]: https://docs.python.org/3/glossary.html#term-mapping

    Parameters
    ----------
    init
        Another Mapping to copy items from, or a series of `(key, value)` pairs.
    kwargs
        Keyword arguments become items with `str` keys.

    Examples
    --------
    >>> t = LuaTable([(1, "one"), (True, "yes")])
    >>> t[1.0]
    'one'
    >>> t[True]
    'yes'
    >>> t["name"] = "t"
    >>> t[b"name"]
    't'
    >>> t[1] = None
    >>> len(t)
    2
    >>> t == LuaTable(t)
    False
    """

    __dict: dict[LuaRawKey, tuple[KT, VT]]

    @overload
    def __init__(self, /) -> None: ...

    @overload
    def __init__(self: LuaTable[str, VT], /, **kwargs: VT) -> None: ...  # pyright: ignore[reportInvalidTypeVarUse]

    @overload
    def __init__(self, map: SupportsKeysAndGetItem[KT, VT], /) -> None: ...

    @overload
    def __init__(self, iterable: Iterable[tuple[KT, VT]], /) -> None: ...

    def __init__(  # type: ignore[misc]
        self,
        init: SupportsKeysAndGetItem[KT, VT] | Iterable[tuple[KT, VT]] | None = None,
        **kwargs: VT,
    ) -> None:
        self.__dict = {}
        if init is not None:
            self.update(init)
        if kwargs:
            self.update(cast(dict[KT, VT], kwargs))

    @classmethod
    def from_sequence(cls, values: Iterable[VT]) -> LuaTable[int, VT]:
        """Create a table holding `values` under the keys 1, 2, 3, ...

        >>> LuaTable.from_sequence(["a", "b"])
        LuaTable({1: 'a', 2: 'b'})
        """
        return cast("LuaTable[int, VT]", cls(enumerate(values, start=1)))

    def __setitem__(self, key: KT, value: VT, /) -> None:
        if value is None:
            self.__dict.pop(raw_key(key), None)
            return
        self.__dict[raw_key(key)] = cast(KT, normalise_table_key(key)), value

    def __delitem__(self, key: KT, /) -> None:
        del self.__dict[raw_key(key)]

    def __getitem__(self, key: KT, /) -> VT:
        try:
            return self.__dict[raw_key(key)][1]
        except ValueError:
            # nil and NaN are never present
            raise KeyError(key) from None

    def __iter__(self) -> Iterator[KT]:
        return map(itemgetter(0), self.__dict.values())

    def __len__(self) -> int:
        return len(self.__dict)

    def __contains__(self, key: object) -> bool:
        try:
            return raw_key(key) in self.__dict
        except ValueError:
            return False

    def __eq__(self, other: object) -> bool:
        return self is other

    def __ne__(self, other: object) -> bool:
        return self is not other

    __hash__ = object.__hash__

    @recursive_repr("LuaTable(...)")
    def __repr__(self) -> str:
        items = ", ".join(f"{k!r}: {v!r}" for k, v in self.__dict.values())
        return f"LuaTable({{{items}}})"

    def clear(self) -> None:
        self.__dict.clear()
