from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic

from luaserialize._buffer import ReadableBinary
from luaserialize._pycompat.dataclasses import slots_if310
from luaserialize.constants import MAX_UPVALUES

if TYPE_CHECKING:
    from typing_extensions import TypeVar

    T = TypeVar("T", default=object)
else:
    from typing import TypeVar

    T = TypeVar("T")


@dataclass(eq=False, **slots_if310())
class LuaUpvalue(Generic[T]):
    """A variable captured by one or more functions.

    Functions capture upvalues by reference: functions created with the same
    `LuaUpvalue` instance share the variable, and see each other's
    assignments. Upvalues are compared by identity.

    >>> counter = LuaUpvalue(0)
    >>> inc, get = LuaFunction(b"inc", [counter]), LuaFunction(b"get", [counter])
    >>> inc.upvalues[0].value += 1
    >>> get.upvalues[0].value
    1
    """

    value: T | None = None


@dataclass(init=False, eq=False, **slots_if310())
class LuaFunction:
    """A Python equivalent of a Lua function: compiled code and its upvalues.

    The code is an opaque blob, as produced by the runtime's code dumper. It's
    written to the encoding verbatim and is never interpreted here.

    Functions are compared by identity.

    Parameters
    ----------
    code
        The compiled code of the function.
    upvalues
        The variables the function captures, in slot order. At most 255.
    """

    code: bytes
    upvalues: tuple[LuaUpvalue, ...]

    def __init__(
        self, code: ReadableBinary, upvalues: Iterable[LuaUpvalue] = ()
    ) -> None:
        self.code = bytes(code)
        self.upvalues = tuple(upvalues)
        if len(self.upvalues) > MAX_UPVALUES:
            raise ValueError(
                f"A function can capture at most {MAX_UPVALUES} upvalues: "
                f"{len(self.upvalues)=}"
            )

    def __repr__(self) -> str:
        return (
            f"LuaFunction(code=<{len(self.code)} bytes>, "
            f"upvalues={len(self.upvalues)})"
        )
