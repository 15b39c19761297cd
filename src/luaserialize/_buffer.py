from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Union

from luaserialize._errors import OutOfMemoryEncodeLuaSerializeError
from luaserialize._pycompat.dataclasses import slots_if310

if TYPE_CHECKING:
    from typing_extensions import TypeAlias

DEFAULT_INITIAL_CAPACITY: Final = 256

ReadableBinary: TypeAlias = Union[bytes, bytearray, memoryview]


@dataclass(init=False, **slots_if310())
class OutputBuffer:
    """An append-only byte buffer that grows its capacity geometrically.

    Capacity is doubled (repeatedly, if needed) whenever an append does not
    fit in the remaining space, so appending is amortized O(1) per byte.
    The buffer never shrinks.

    >>> buf = OutputBuffer(initial_capacity=4)
    >>> buf.append(b"nil\\n")
    >>> buf.formatted_append(b"integer %d\\n", 42)
    >>> buf.getvalue()
    b'nil\\ninteger 42\\n'
    >>> buf.capacity
    16
    """

    _data: bytearray
    _used: int

    def __init__(self, initial_capacity: int = DEFAULT_INITIAL_CAPACITY) -> None:
        if initial_capacity < 1:
            raise ValueError(
                f"initial_capacity must be at least 1: {initial_capacity=}"
            )
        self._data = self._allocate(initial_capacity)
        self._used = 0

    @staticmethod
    def _allocate(capacity: int) -> bytearray:
        try:
            return bytearray(capacity)
        except MemoryError as e:
            raise OutOfMemoryEncodeLuaSerializeError(
                "Unable to allocate output buffer", requested_capacity=capacity
            ) from e

    @property
    def capacity(self) -> int:
        return len(self._data)

    @property
    def used(self) -> int:
        return self._used

    def __len__(self) -> int:
        return self._used

    def reserve(self, count: int) -> None:
        """Ensure at least `count` more bytes can be appended without growing."""
        required = self._used + count
        capacity = len(self._data)
        if required <= capacity:
            return
        new_capacity = capacity * 2
        while new_capacity < required:
            new_capacity *= 2
        grown = self._allocate(new_capacity)
        grown[: self._used] = memoryview(self._data)[: self._used]
        self._data = grown

    def append(self, data: ReadableBinary) -> None:
        view = memoryview(data)
        if view.format != "B" or view.ndim != 1:
            view = view.cast("B")
        count = len(view)
        self.reserve(count)
        self._data[self._used : self._used + count] = view
        self._used += count

    def formatted_append(self, template: bytes, *args: object) -> None:
        """Append `template % args`, formatted in full before it's copied in."""
        self.append(template % args)

    def getvalue(self) -> bytes:
        with memoryview(self._data) as view:
            return bytes(view[: self._used])
