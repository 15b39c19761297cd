from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, cast


@dataclass(init=False)
class LuaSerializeError(Exception):
    """The base class that all luaserialize errors are subclasses of."""

    if not TYPE_CHECKING:
        message: str  # needed to have dataclass include message in the repr, etc

    def __init__(self, message: str, *args: object) -> None:
        super().__init__(message, *args)

    @property
    def message(self) -> str:
        return cast(str, self.args[0])

    def __str__(self) -> str:
        field_values = [
            (f.name, getattr(self, f.name)) for f in fields(self) if f.name != "message"
        ]
        values_fmt = ", ".join(f"{f}={v!r}" for (f, v) in field_values)

        if values_fmt:
            return f"{self.message}: {values_fmt}"
        return self.message


@dataclass(init=False)
class EncodeLuaSerializeError(LuaSerializeError, ValueError):
    """The parent of all errors raised while encoding a value graph.

    Any encode error aborts the whole call. Output written before the error
    is not returned.
    """


@dataclass(init=False)
class UnhandledValueEncodeLuaSerializeError(EncodeLuaSerializeError):
    """
    A value reachable from the root cannot be represented in the encoding.

    Raised when none of the configured [encode steps] is able to write a value,
    or when a value of a supported type is outside the range the encoding
    allows, such as an `int` that does not fit in 64 bits.

    [encode steps]: `luaserialize.encode.EncodeStep`
    """

    value: object

    def __init__(self, message: str, *args: object, value: object) -> None:
        super().__init__(message, *args)
        self.value = value


@dataclass(init=False)
class UpvalueLimitEncodeLuaSerializeError(UnhandledValueEncodeLuaSerializeError):
    """A function captures more upvalues than a function record can hold."""

    count: int

    def __init__(self, message: str, *, value: object, count: int) -> None:
        super().__init__(message, value=value)
        self.count = count


@dataclass(init=False)
class UnsupportedKeyEncodeLuaSerializeError(EncodeLuaSerializeError):
    """
    A table contains a key that is not a boolean, integer, float or string.

    The error is raised while the table's keys are being ordered, before the
    table record is written.
    """

    key: object

    def __init__(self, message: str, *args: object, key: object) -> None:
        super().__init__(message, *args)
        self.key = key


@dataclass(init=False)
class ResourceExhaustedEncodeLuaSerializeError(EncodeLuaSerializeError):
    """Encoding ran out of a resource it needs to continue."""


@dataclass(init=False)
class OutOfMemoryEncodeLuaSerializeError(ResourceExhaustedEncodeLuaSerializeError):
    requested_capacity: int

    def __init__(self, message: str, *args: object, requested_capacity: int) -> None:
        super().__init__(message, *args)
        self.requested_capacity = requested_capacity


@dataclass(init=False)
class RecursionDepthEncodeLuaSerializeError(ResourceExhaustedEncodeLuaSerializeError):
    """The value graph is nested more deeply than the interpreter's stack allows."""

    recursion_limit: int

    def __init__(self, message: str, *args: object, recursion_limit: int) -> None:
        super().__init__(message, *args)
        self.recursion_limit = recursion_limit
