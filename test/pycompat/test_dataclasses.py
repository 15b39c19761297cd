from __future__ import annotations

import sys
from dataclasses import dataclass

import pytest

from luaserialize._pycompat.dataclasses import slots_if310


@dataclass(**slots_if310())
class Example:
    a: int


@pytest.mark.skipif(sys.version_info < (3, 10), reason="slots requires py310")
def test_slots_if310__uses_slots() -> None:
    assert Example.__slots__ == ("a",)  # type: ignore[attr-defined]
    with pytest.raises(AttributeError):
        Example(a=1).b = 2  # type: ignore[attr-defined]


@pytest.mark.skipif(sys.version_info >= (3, 10), reason="applies before py310")
def test_slots_if310__no_slots_before_py310() -> None:
    assert slots_if310() == {}
    assert not hasattr(Example, "__slots__")
