"""Encode graphs of Python values as Lua values in the luaserialize record format."""

from __future__ import annotations

import logging
import marshal
import sys
from collections import abc
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from functools import partial, singledispatchmethod
from types import CellType, FunctionType
from typing import TYPE_CHECKING, Any, Callable, Protocol, cast, overload

from luaserialize._buffer import OutputBuffer, ReadableBinary
from luaserialize._errors import (
    EncodeLuaSerializeError,
    RecursionDepthEncodeLuaSerializeError,
    ResourceExhaustedEncodeLuaSerializeError,
    UnhandledValueEncodeLuaSerializeError,
    UpvalueLimitEncodeLuaSerializeError,
)
from luaserialize._keys import TableKey, canonical_key_order
from luaserialize._pycompat.dataclasses import slots_if310
from luaserialize._pycompat.exceptions import add_note
from luaserialize._pycompat.types import NoneType
from luaserialize._references import (
    SerializedId,
    SerializedObjectLog,
    UpvalueLog,
    UpvalueOwner,
)
from luaserialize.constants import (
    INT64_RANGE,
    MAX_UPVALUES,
    RECORD_TERMINATOR,
    KeyTag,
    NumberFormat,
    SerializationTag,
)
from luaserialize.luatypes.luafunction import LuaFunction

if TYPE_CHECKING:
    from typing_extensions import Never, TypeAlias

logger = logging.getLogger(__name__)


@dataclass(**slots_if310())
class WritableRecordStream:
    """Write individual records in the luaserialize format.

    This is a low-level interface to incrementally generate encoded data. The
    stream owns the output buffer and the logs of tables, functions and
    upvalues written so far, so one stream must be used for one value graph.
    """

    data: OutputBuffer = field(default_factory=OutputBuffer)
    objects: SerializedObjectLog = field(default_factory=SerializedObjectLog)
    upvalues: UpvalueLog = field(default_factory=UpvalueLog)
    number_format: NumberFormat = field(default=NumberFormat.Hex)

    @property
    def pos(self) -> int:
        return len(self.data)

    def write_tag(self, tag: SerializationTag, *fields: int | str) -> None:
        """Write one record line: the tag and its space-separated fields."""
        self.data.formatted_append(
            b"%s%s\n",
            tag.token,
            b"".join(b" %s" % str(f).encode("ascii") for f in fields),
        )

    def write_payload(
        self, payload: ReadableBinary, *, tag: SerializationTag | None = None
    ) -> None:
        """Write raw bytes, preceded by a line ending with their length.

        The length is the last field of `tag`'s record line, or is on a line of
        its own when `tag` is None. The bytes are not escaped. Readers must read
        exactly the stated number of bytes before looking for the newline that
        ends the payload.
        """
        with memoryview(payload) as view:
            if tag is None:
                self.data.formatted_append(b"%d\n", view.nbytes)
            else:
                self.write_tag(tag, view.nbytes)
            self.data.append(view)
        self.data.append(RECORD_TERMINATOR)

    def write_nil(self) -> None:
        self.write_tag(SerializationTag.kNil)

    def write_boolean(self, value: bool) -> None:
        self.write_tag(SerializationTag.kTrue if value else SerializationTag.kFalse)

    def write_integer(self, value: int) -> None:
        if value not in INT64_RANGE:
            raise UnhandledValueEncodeLuaSerializeError(
                f"Python int is too large to represent as integer: value must "
                f"be in {INT64_RANGE}",
                value=value,
            )
        self.write_tag(SerializationTag.kInteger, value)

    def write_number(self, value: float) -> None:
        self.write_tag(SerializationTag.kNumber, self.number_format.format(value))

    def write_string(self, value: str | ReadableBinary) -> None:
        """Write a string record. `str` values are written as UTF-8 bytes."""
        if isinstance(value, str):
            try:
                value = value.encode("utf-8")
            except UnicodeEncodeError as e:
                raise UnhandledValueEncodeLuaSerializeError(
                    "Python str cannot be encoded as UTF-8", value=value
                ) from e
        self.write_payload(value, tag=SerializationTag.kString)

    @overload
    def write_object_reference(
        self, *, obj: object, serialized_id: None = None
    ) -> None: ...

    @overload
    def write_object_reference(
        self,
        *,
        serialized_id: SerializedId,
        obj: None = None,
    ) -> None: ...

    def write_object_reference(
        self, *, obj: object | None = None, serialized_id: SerializedId | None = None
    ) -> None:
        if obj is not None:
            serialized_id = self.objects.get_serialized_id(obj)
        else:
            assert serialized_id is not None
            self.objects.get_object(serialized_id)  # throws if invalid

        self.write_tag(SerializationTag.kObjectReference, serialized_id)

    def write_upvalue_reference(self, owner: UpvalueOwner) -> None:
        self.objects.get_object(owner.serialized_id)  # throws if invalid
        self.write_tag(
            SerializationTag.kUpvalueReference, owner.serialized_id, owner.slot
        )

    def write_table_key(self, table_key: TableKey) -> None:
        tag = table_key.tag
        if tag is KeyTag.kFalse or tag is KeyTag.kTrue:
            self.write_boolean(tag is KeyTag.kTrue)
        elif tag is KeyTag.kInteger:
            self.write_integer(cast(int, table_key.key))
        elif tag is KeyTag.kNumber:
            self.write_number(cast(float, table_key.key))
        elif tag is KeyTag.kString:
            assert table_key.data is not None
            self.write_string(table_key.data)
        else:
            raise AssertionError(f"Unexpected key tag: {tag}")

    def write_table(
        self,
        table: Mapping[object, object],
        ctx: EncodeContext,
        *,
        identity: object | None = None,
    ) -> None:
        """Write a table record followed by its entries in canonical key order.

        The table's keys are all checked before anything is written, so an
        unsupported key leaves no partial table record behind. Each entry's
        value is looked up again by its key rather than taken from an
        iterator, so `table` only needs to support `keys()` and `[]`.

        A table that has already been written is written as a `ref` record.
        """
        keys = canonical_key_order(list(table.keys()))
        serialized_id, is_new = self.objects.intern(
            table if identity is None else identity
        )
        if not is_new:
            self.write_object_reference(serialized_id=serialized_id)
            return
        self.write_tag(SerializationTag.kTable, len(keys))
        for table_key in keys:
            self.write_table_key(table_key)
            try:
                ctx.encode_object(table[table_key.key])
            except EncodeLuaSerializeError as e:
                add_note(
                    e, f"while encoding the value of table key {table_key.key!r}"
                )
                raise

    def write_function(
        self,
        code: ReadableBinary,
        upvalues: Sequence[tuple[object, object]],
        ctx: EncodeContext,
        *,
        identity: object,
    ) -> None:
        """Write a function record, its upvalues, then its code.

        Parameters
        ----------
        code
            The function's compiled code, written verbatim.
        upvalues
            `(upvalue, value)` pairs in slot order. The first item is the object
            whose identity is shared between functions capturing the same
            variable, the second is the variable's current value.
        identity
            The object that is recorded in the object log for the function. A
            function whose identity is already recorded is written as a `ref`.
        """
        if len(upvalues) > MAX_UPVALUES:
            raise UpvalueLimitEncodeLuaSerializeError(
                f"Function captures more than {MAX_UPVALUES} upvalues",
                value=identity,
                count=len(upvalues),
            )
        serialized_id, is_new = self.objects.intern(identity)
        if not is_new:
            self.write_object_reference(serialized_id=serialized_id)
            return
        self.write_tag(SerializationTag.kFunction, len(upvalues))
        # Upvalue slots are numbered from 1, as the Lua API numbers them.
        for slot, (upvalue, value) in enumerate(upvalues, start=1):
            # The claim happens before the value is written, so an upvalue that
            # leads back to this function is referenced rather than re-entered.
            owner = self.upvalues.claim(upvalue, serialized_id, slot)
            if owner is None:
                ctx.encode_object(value)
            else:
                self.write_upvalue_reference(owner)
        self.write_payload(code)


class EncodeContext(Protocol):
    """Maintains the state needed to write Python objects as records."""

    if TYPE_CHECKING:

        @property
        def stream(self) -> WritableRecordStream:
            """The `WritableRecordStream` this context writes to."""

    else:
        stream: WritableRecordStream
        """The `WritableRecordStream` this context writes to."""

    def encode_object(self, value: object) -> None:
        """Encode and write a single Python value to the stream."""


class EncodeNextFn(Protocol):
    """
    Delegate to the next encode step in the sequence to write a value.

    Raises
    ------
    UnhandledValueEncodeLuaSerializeError
        If none of the following steps were able to handle a value.
    """

    def __call__(self, value: object, /) -> None: ...


class EncodeStepFn(Protocol):
    """
    The signature of a function that writes records to represent objects.

    Encode steps can either write the `ctx.stream` directly, or delegate to the
    next encode step by calling `next()`. Steps can modify the representation
    of objects by passing a different `value` to next than the one they
    received.
    """

    def __call__(
        self, value: object, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None: ...


class EncodeStepObject(Protocol):
    encode: EncodeStepFn
    """The same as `EncodeStepFn`."""


EncodeStep: TypeAlias = "EncodeStepObject | EncodeStepFn"
"""
Either an `EncodeStepObject` or `EncodeStepFn`.

See Also
--------
[`default_encode_steps`](`luaserialize.default_encode_steps`)
"""


@dataclass(init=False, **slots_if310())
class DefaultEncodeContext(EncodeContext):
    encode_steps: Sequence[EncodeStep]
    stream: WritableRecordStream

    def __init__(
        self,
        encode_steps: Iterable[EncodeStepObject | EncodeStepFn] | None = None,
        *,
        stream: WritableRecordStream | None = None,
    ) -> None:
        self.encode_steps = list(
            default_encode_steps if encode_steps is None else encode_steps
        )
        self.stream = WritableRecordStream() if stream is None else stream

    def __encode_object_with_step(self, value: object, *, i: int) -> None:
        if i < len(self.encode_steps):
            step = self.encode_steps[i]
            next = partial(self.__encode_object_with_step, i=i + 1)
            if callable(step):
                return step(value, ctx=self, next=next)
            else:
                return step.encode(value, ctx=self, next=next)
        self._report_unmapped_value(value)
        raise AssertionError("report_unmapped_value returned")

    def encode_object(self, value: object) -> None:
        """Encode a single Python value to the stream.

        The encode_steps decide how the Python value is represented, and the
        stream writes out the records.
        """
        return self.__encode_object_with_step(value, i=0)

    def _report_unmapped_value(self, value: object) -> Never:
        raise UnhandledValueEncodeLuaSerializeError(
            "No encode step was able to write the value", value=value
        )


def marshal_function_code(func: FunctionType) -> bytes:
    """Dump the compiled code of a Python function with `marshal`.

    The result is only loadable by the same Python version that produced it.
    """
    return marshal.dumps(func.__code__)


def _cell_value(cell: CellType) -> object:
    try:
        return cell.cell_contents
    except ValueError:  # the captured variable is not assigned yet
        return None


@dataclass(**slots_if310())
class _SequenceTable(Mapping[int, object]):
    """A read-only table view of a sequence, keyed from 1."""

    values: Sequence[object]

    def __getitem__(self, key: int) -> object:
        if not isinstance(key, int) or not 1 <= key <= len(self.values):
            raise KeyError(key)
        return self.values[key - 1]

    def __iter__(self) -> Iterator[int]:
        return iter(range(1, len(self.values) + 1))

    def __len__(self) -> int:
        return len(self.values)


@dataclass(**slots_if310())
class TagWriter(EncodeStepObject):
    """Defines the conversion of Python types into luaserialize records.

    TagWriters are responsible for making suitable calls to a
    `WritableRecordStream` to represent Python objects as Lua values.

    The stream delegates back to the `EncodeContext` when writing tables and
    functions, to let the context pass their entries and upvalues through the
    sequence of encode steps, typically ending with a `TagWriter` as the final
    step.

    Parameters
    ----------
    dump_python_code
        Produces the code blob written for plain Python functions. The blob is
        opaque to the encoding, so any loader-specific format can be used.
    """

    dump_python_code: Callable[[FunctionType], bytes] = marshal_function_code

    @singledispatchmethod
    def encode(  # type: ignore[override]
        self, value: object, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        next(value)

    @encode.register(int)
    def serialize_int(
        self, value: int, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_integer(value)

    @encode.register(bool)
    def serialize_bool(
        self, value: bool, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_boolean(value)

    @encode.register(cast(Any, NoneType))  # None confuses the register() type
    def serialize_none(
        self, value: None, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_nil()

    @encode.register(float)
    def serialize_float(
        self, value: float, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_number(value)

    @encode.register(str)
    @encode.register(bytes)
    @encode.register(bytearray)
    @encode.register(memoryview)
    def serialize_string(
        self,
        value: str | bytes | bytearray | memoryview,
        /,
        ctx: EncodeContext,
        next: EncodeNextFn,
    ) -> None:
        ctx.stream.write_string(value)

    @encode.register(abc.Mapping)
    def serialize_mapping(
        self,
        value: Mapping[object, object],
        /,
        ctx: EncodeContext,
        next: EncodeNextFn,
    ) -> None:
        ctx.stream.write_table(value, ctx=ctx)

    @encode.register(list)
    @encode.register(tuple)
    def serialize_sequence(
        self, value: Sequence[object], /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_table(_SequenceTable(value), ctx=ctx, identity=value)

    @encode.register(LuaFunction)
    def serialize_lua_function(
        self, value: LuaFunction, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        ctx.stream.write_function(
            value.code,
            [(upvalue, upvalue.value) for upvalue in value.upvalues],
            ctx=ctx,
            identity=value,
        )

    @encode.register(FunctionType)
    def serialize_python_function(
        self, value: FunctionType, /, ctx: EncodeContext, next: EncodeNextFn
    ) -> None:
        # A function's cells are shared with every other function that closes
        # over the same variable, so the cells are the upvalues.
        upvalues = [(cell, _cell_value(cell)) for cell in value.__closure__ or ()]
        ctx.stream.write_function(
            self.dump_python_code(value), upvalues, ctx=ctx, identity=value
        )


def serialize_object_references(
    value: object, /, ctx: EncodeContext, next: EncodeNextFn
) -> None:
    """
    Serialize references to previously-seen objects instead of duplicating them.

    Tables and functions that have already been written to the stream are
    written as references to the original instance. This:

    * Avoids duplication of data.
    * Preserves object identity after decoding.
    * Allows cyclic object graphs to be encoded without causing infinite loops.

    Notes
    -----
    This is an [encode step] that can be used as one of
    the `encode_steps` with `dumps()` or `Encoder()`.

    [encode step]: `luaserialize.encode.EncodeStep`
    """
    if value in ctx.stream.objects:
        ctx.stream.write_object_reference(obj=value)
    else:
        next(value)


default_encode_steps: tuple[EncodeStep, ...] = (
    serialize_object_references,
    TagWriter(),
)
"""
The default sequence of [encode steps] used to map Python objects to Lua values.

This sequence contains
[`serialize_object_references`](`luaserialize.encode.serialize_object_references`)
and an instance of [`TagWriter`](`luaserialize.encode.TagWriter`).

[encode steps]: `luaserialize.encode.EncodeStep`
"""


@dataclass(init=False)
class Encoder:
    """
    A re-usable configuration for encoding value graphs.

    The `encode_steps` and `number_format` arguments behave as described for
    [`dumps()`]. The `encode()` method behaves like `dumps()` without needing
    to pass the arguments for every call.

    [`dumps()`]: `luaserialize.dumps`

    Parameters
    ----------
    encode_steps
        The sequence of encode steps that control how the `value` is converted
        to Lua types.
    number_format
        The text format of float values and float table keys.
    """

    encode_steps: Sequence[EncodeStep]
    number_format: NumberFormat

    def __init__(
        self,
        *,
        encode_steps: Iterable[EncodeStep] | None = default_encode_steps,
        number_format: NumberFormat = NumberFormat.Hex,
    ) -> None:
        self.encode_steps = (
            default_encode_steps if encode_steps is None else tuple(encode_steps)
        )
        self.number_format = number_format

    def encode(self, value: object) -> bytes:
        """
        Encode a value graph in the luaserialize format.

        Parameters
        ----------
        value
            The root of the value graph to encode.

        Returns
        -------
        :
            The encoded records.
        """
        ctx = DefaultEncodeContext(
            stream=WritableRecordStream(number_format=self.number_format),
            encode_steps=self.encode_steps,
        )
        try:
            ctx.encode_object(value)
        except RecursionError as e:
            recursion_limit = sys.getrecursionlimit()
            logger.debug(
                "Encoding aborted after %d bytes: recursion limit %d reached",
                ctx.stream.pos,
                recursion_limit,
            )
            raise RecursionDepthEncodeLuaSerializeError(
                "Value graph is nested too deeply to encode",
                recursion_limit=recursion_limit,
            ) from e
        except ResourceExhaustedEncodeLuaSerializeError as e:
            logger.debug("Encoding aborted after %d bytes: %s", ctx.stream.pos, e)
            raise

        logger.debug(
            "Encoded %s as %d bytes with %d objects and %d upvalues",
            type(value).__name__,
            ctx.stream.pos,
            len(ctx.stream.objects),
            len(ctx.stream.upvalues),
        )
        return ctx.stream.data.getvalue()


def dumps(
    value: object,
    *,
    encode_steps: Iterable[EncodeStep] | None = default_encode_steps,
    number_format: NumberFormat = NumberFormat.Hex,
) -> bytes:
    """
    Encode a graph of Python values as Lua values in the luaserialize format.

    Tables and functions are written the first time they're encountered, and
    as `ref` records afterwards, so shared and cyclic references are preserved.
    Upvalues shared between functions are written once, by the first function
    that captures them. Table entries are written in a canonical key order, so
    equal tables are encoded identically regardless of insertion order.

    [encode steps]: `luaserialize.encode.EncodeStep`

    Parameters
    ----------
    value
        The root of the value graph to encode.
    encode_steps
        The sequence of [encode steps] that control how the `value` is converted
        to Lua types.
    number_format
        The text format of float values and float table keys.

    Returns
    -------
    :
        The encoded data.

    Raises
    ------
    UnhandledValueEncodeLuaSerializeError
        When a `value` (or a sub-value within it) is not supported by the
        `encode_steps`.
    UnsupportedKeyEncodeLuaSerializeError
        When a table has a key that is not a bool, int, float or string.
    ResourceExhaustedEncodeLuaSerializeError
        When memory or the interpreter's stack run out.
    EncodeLuaSerializeError
        Is the parent of all data-specific errors thrown when encoding.

    Examples
    --------
    >>> from luaserialize.luatypes import LuaTable
    >>> t = LuaTable(name="t")
    >>> t["self"] = t
    >>> dumps(t)
    b'table 2\\nstring 4\\nname\\nstring 1\\nt\\nstring 4\\nself\\nref 0\\n'
    """
    encoder = Encoder(encode_steps=encode_steps, number_format=number_format)
    return encoder.encode(value)
