from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, NewType

from luaserialize._errors import LuaSerializeError
from luaserialize._pycompat.dataclasses import slots_if310


class ObjectReferenceLuaSerializeError(LuaSerializeError, KeyError):
    pass


@dataclass(init=False)
class ObjectNotSerializedLuaSerializeError(ObjectReferenceLuaSerializeError):
    obj: object

    def __init__(self, message: str, *args: object, obj: object) -> None:
        super(ObjectNotSerializedLuaSerializeError, self).__init__(message, *args)
        self.obj = obj


@dataclass(init=False)
class SerializedIdOutOfRangeLuaSerializeError(ObjectReferenceLuaSerializeError):
    serialized_id: SerializedId

    def __init__(self, message: str, serialized_id: SerializedId) -> None:
        super(SerializedIdOutOfRangeLuaSerializeError, self).__init__(message)
        self.serialized_id = serialized_id


SerializedId = NewType("SerializedId", int)


@dataclass(init=False, **slots_if310())
class SerializedObjectLog:
    """References to the tables and functions occurring in encoded data.

    Each table or function gets an id the first time it's written, counting
    from 0 in the order objects are first encountered. Later occurrences of
    the same object (by identity, not `==`) are written as references to that
    id. This allows for de-duplication and cyclic references.

    The log holds a reference to every object it records, so the `id()` of a
    recorded object can't be re-used by another object while the log exists.
    """

    _serialized_id_by_pyid: dict[int, SerializedId]
    _object_by_serialized_id: list[object]

    def __init__(self) -> None:
        self._serialized_id_by_pyid = dict()
        self._object_by_serialized_id = []

    def __contains__(self, obj: object) -> bool:
        return id(obj) in self._serialized_id_by_pyid

    def __len__(self) -> int:
        return len(self._object_by_serialized_id)

    def get_serialized_id(self, obj: object) -> SerializedId:
        try:
            return self._serialized_id_by_pyid[id(obj)]
        except KeyError:
            raise ObjectNotSerializedLuaSerializeError(
                "Object has not been recorded in the log", obj=obj
            ) from None

    def get_object(self, serialized_id: SerializedId) -> object:
        try:
            if serialized_id < 0:
                raise IndexError(serialized_id)
            return self._object_by_serialized_id[serialized_id]
        except IndexError:
            raise SerializedIdOutOfRangeLuaSerializeError(
                "Serialized ID has not been recorded in the log",
                serialized_id=serialized_id,
            ) from None

    def record_reference(self, obj: object) -> SerializedId:
        serialized_id = SerializedId(len(self._object_by_serialized_id))
        self._object_by_serialized_id.append(obj)
        self._serialized_id_by_pyid[id(obj)] = serialized_id
        return serialized_id

    def intern(self, obj: object) -> tuple[SerializedId, bool]:
        """Get the id of an object, recording it first if it's not yet known.

        Returns
        -------
        :
            The object's id and `True` if the object was recorded by this call,
            or `False` if it was already in the log.
        """
        serialized_id = self._serialized_id_by_pyid.get(id(obj))
        if serialized_id is not None:
            return serialized_id, False
        return self.record_reference(obj), True


class UpvalueOwner(NamedTuple):
    """The function slot that first wrote a shared upvalue."""

    serialized_id: SerializedId
    """The id of the owning function in the `SerializedObjectLog`."""
    slot: int
    """The upvalue's position in the owning function (the first slot is 1)."""


@dataclass(init=False, **slots_if310())
class UpvalueLog:
    """The owners of the upvalues occurring in encoded data.

    Several functions can capture the same upvalue. The first function to
    write an upvalue owns it, and later functions capturing the same upvalue
    (by identity) write a reference to the owner's slot instead of the value.
    """

    _owner_id_by_pyid: dict[int, SerializedId]
    _slot_by_pyid: dict[int, int]
    _upvalues: list[object]

    def __init__(self) -> None:
        self._owner_id_by_pyid = dict()
        self._slot_by_pyid = dict()
        self._upvalues = []

    def __contains__(self, upvalue: object) -> bool:
        return id(upvalue) in self._owner_id_by_pyid

    def __len__(self) -> int:
        return len(self._upvalues)

    def get_owner(self, upvalue: object) -> UpvalueOwner | None:
        pyid = id(upvalue)
        owner_id = self._owner_id_by_pyid.get(pyid)
        if owner_id is None:
            return None
        return UpvalueOwner(owner_id, self._slot_by_pyid[pyid])

    def claim(
        self, upvalue: object, serialized_id: SerializedId, slot: int
    ) -> UpvalueOwner | None:
        """Make a function slot the owner of an upvalue, unless it's owned already.

        Returns
        -------
        :
            `None` if the caller's slot now owns the upvalue and must write its
            value. Otherwise the existing owner, which the caller must reference
            instead of writing the value.
        """
        owner = self.get_owner(upvalue)
        if owner is not None:
            return owner
        pyid = id(upvalue)
        self._owner_id_by_pyid[pyid] = serialized_id
        self._slot_by_pyid[pyid] = slot
        self._upvalues.append(upvalue)
        return None
