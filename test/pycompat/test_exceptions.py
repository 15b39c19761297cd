from __future__ import annotations

import pytest

from luaserialize._pycompat.exceptions import add_note, has_notes


def test_add_note() -> None:
    e = ValueError("oops")
    assert not has_notes(e)

    add_note(e, "first")
    add_note(e, "second")

    assert has_notes(e)
    assert e.__notes__ == ["first", "second"]


def test_add_note__requires_str() -> None:
    with pytest.raises(TypeError, match="note must be a str"):
        add_note(ValueError(), 1)  # type: ignore[arg-type]
