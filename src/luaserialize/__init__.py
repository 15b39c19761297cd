"""The main public API of luaserialize."""

from __future__ import annotations

from luaserialize._buffer import ReadableBinary as ReadableBinary
from luaserialize._errors import EncodeLuaSerializeError as EncodeLuaSerializeError
from luaserialize._errors import LuaSerializeError as LuaSerializeError
from luaserialize._errors import (
    OutOfMemoryEncodeLuaSerializeError as OutOfMemoryEncodeLuaSerializeError,
)
from luaserialize._errors import (
    RecursionDepthEncodeLuaSerializeError as RecursionDepthEncodeLuaSerializeError,
)
from luaserialize._errors import (
    ResourceExhaustedEncodeLuaSerializeError as ResourceExhaustedEncodeLuaSerializeError,  # noqa: E501
)
from luaserialize._errors import (
    UnhandledValueEncodeLuaSerializeError as UnhandledValueEncodeLuaSerializeError,
)
from luaserialize._errors import (
    UnsupportedKeyEncodeLuaSerializeError as UnsupportedKeyEncodeLuaSerializeError,
)
from luaserialize._errors import (
    UpvalueLimitEncodeLuaSerializeError as UpvalueLimitEncodeLuaSerializeError,
)
from luaserialize._references import (
    ObjectReferenceLuaSerializeError as ObjectReferenceLuaSerializeError,
)
from luaserialize.constants import NumberFormat as NumberFormat
from luaserialize.constants import SerializationTag as SerializationTag
from luaserialize.encode import Encoder as Encoder
from luaserialize.encode import EncodeStep as EncodeStep
from luaserialize.encode import EncodeStepFn as EncodeStepFn
from luaserialize.encode import EncodeStepObject as EncodeStepObject
from luaserialize.encode import TagWriter as TagWriter
from luaserialize.encode import WritableRecordStream as WritableRecordStream
from luaserialize.encode import default_encode_steps as default_encode_steps
from luaserialize.encode import dumps as dumps
from luaserialize.encode import (
    serialize_object_references as serialize_object_references,
)
from luaserialize.luatypes import LuaFunction as LuaFunction
from luaserialize.luatypes import LuaTable as LuaTable
from luaserialize.luatypes import LuaUpvalue as LuaUpvalue
