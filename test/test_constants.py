from __future__ import annotations

import math

import pytest

from luaserialize.constants import (
    INT64_RANGE,
    KeyTag,
    NumberFormat,
    SerializationTag,
)


def test_SerializationTag() -> None:
    assert SerializationTag.kNil.token == b"nil"
    assert SerializationTag.kObjectReference.token == b"ref"
    assert SerializationTag.kUpvalueReference.token == b"upref"
    assert str(SerializationTag.kTable) == "table"
    assert "function" in SerializationTag
    assert "closure" not in SerializationTag


def test_KeyTag__ranks_are_ordered() -> None:
    assert sorted(KeyTag) == [
        KeyTag.kFalse,
        KeyTag.kTrue,
        KeyTag.kInteger,
        KeyTag.kNumber,
        KeyTag.kString,
    ]


def test_INT64_RANGE() -> None:
    assert -(2**63) in INT64_RANGE
    assert 2**63 - 1 in INT64_RANGE
    assert 2**63 not in INT64_RANGE


@pytest.mark.parametrize("number_format", list(NumberFormat))
@pytest.mark.parametrize(
    "value",
    [0.0, -0.0, 0.1, -2.5, 1e300, 5e-324, math.inf, -math.inf, 2.0**53 + 2],
)
def test_NumberFormat__round_trips_exactly(
    number_format: NumberFormat, value: float
) -> None:
    text = number_format.format(value)
    parsed = float.fromhex(text) if number_format is NumberFormat.Hex else float(text)

    assert parsed == value
    assert math.copysign(1, parsed) == math.copysign(1, value)


@pytest.mark.parametrize("number_format", list(NumberFormat))
def test_NumberFormat__nan(number_format: NumberFormat) -> None:
    assert number_format.format(math.nan) == "nan"
