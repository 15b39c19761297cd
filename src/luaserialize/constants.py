"""Constant values related to the luaserialize record encoding."""

from __future__ import annotations

from enum import Enum
from typing import Final

from luaserialize._pycompat.enum import IntEnum, StrEnum

INT64_RANGE: Final = range(-(2**63), 2**63)
"""The range of integers an `integer` record can hold."""

MAX_UPVALUES: Final = 255
"""The largest number of upvalues a `function` record can hold."""

RECORD_TERMINATOR: Final = b"\n"


class SerializationTag(StrEnum):
    """The words that start each record in the encoding.

    Every record is one line: the tag, then zero or more space-separated
    fields, then a newline. `string` records and the code of `function`
    records are followed by a raw payload whose byte length is the last field
    written before it.
    """

    # no fields
    kNil = "nil"
    kTrue = "true"
    kFalse = "false"
    # value:decimal int64
    kInteger = "integer"
    # value:float in the NumberFormat in use
    kNumber = "number"
    # byteLength:decimal, then newline, raw bytes, newline
    kString = "string"
    # Reference to a previously-written table or function. id:decimal
    kObjectReference = "ref"
    # entryCount:decimal, then entryCount key/value record pairs
    kTable = "table"
    # upvalueCount:decimal, then upvalueCount values or uprefs, then the code
    # as byteLength:decimal, newline, raw bytes, newline
    kFunction = "function"
    # An upvalue shared with an earlier function. ownerId:decimal slot:decimal
    kUpvalueReference = "upref"

    @property
    def token(self) -> bytes:
        return self.value.encode("ascii")


class KeyTag(IntEnum):
    """The kinds of table key, in the order tables' keys are written."""

    kFalse = 0
    kTrue = 1
    kInteger = 2
    kNumber = 3
    kString = 4


class NumberFormat(Enum):
    """How float values are written in `number` records.

    Both formats round-trip exactly: parsing the text gives back the same
    float, including infinities and `nan`. The same format is used for float
    values and for float table keys.
    """

    Hex = "hex"
    """C99-style hexadecimal float text, like `0x1.8000000000000p+0`."""
    Decimal = "decimal"
    """The shortest decimal text that round-trips, like `1.5`."""

    def format(self, value: float) -> str:
        """
        Format a float in this format.

        >>> NumberFormat.Hex.format(1.5)
        '0x1.8000000000000p+0'
        >>> NumberFormat.Decimal.format(1.5)
        '1.5'
        >>> NumberFormat.Hex.format(float('-inf'))
        '-inf'
        """
        if self is NumberFormat.Hex:
            return value.hex()
        return repr(value)
