from __future__ import annotations

import sys
from enum import EnumMeta


class ContainsValueEnumMeta(EnumMeta):
    def __contains__(cls, value: object) -> bool:
        return value in cls._value2member_map_


if sys.version_info < (3, 12):
    from enum import Enum
    from enum import IntEnum as _IntEnum

    class StrEnum(str, Enum, metaclass=ContainsValueEnumMeta):
        def __str__(self) -> str:
            return str(self._value_)

    # In py3.12 `"nil" in SomeStrEnum` returns True/False, earlier versions
    # raise TypeError for non-member values.
    class IntEnum(_IntEnum, metaclass=ContainsValueEnumMeta):
        def __str__(self) -> str:
            return str(self._value_)

else:
    from enum import IntEnum as IntEnum  # noqa: F401  # re-export
    from enum import StrEnum as StrEnum  # noqa: F401  # re-export
