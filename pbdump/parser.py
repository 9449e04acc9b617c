# -*- coding: utf-8 -*-

from __future__ import annotations

import io
import logging
from typing import Iterator, List, Sequence, Union

from .core import (
    BaseTypeRepr, CorruptError, FieldDescriptor, UnsupportedError, WireType,
    read_identifier, read_value
)

logger = logging.getLogger(__name__)

GROUP_APOLOGY = (
    "should dump a group here, but we don't know how yet.  sorry."
)

# Inclusive range of octets a LEN payload may hold to be shown as text.
PRINTABLE_MIN = 0x20
PRINTABLE_MAX = 0x7F


class Field:
    def __init__(
        self, field_desc: FieldDescriptor, field_repr: BaseTypeRepr
    ) -> None:
        self.field_desc = field_desc
        self.field_repr = field_repr

    def __repr__(self) -> str:
        return (
            f"Field {self.field_desc.field_no}"
            f" - type <{self.field_desc.wire_type}>: {self.field_repr!r}"
        )


class OutOfOrderWarning(BaseTypeRepr):
    """A field number lower than one already seen in the same message."""

    __slots__ = ("field_no", "max_field_seen")

    def __init__(self, field_no: int, max_field_seen: int) -> None:
        self.field_no = field_no
        self.max_field_seen = max_field_seen

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}"
            f"({self.field_no} < {self.max_field_seen})"
        )


Event = Union[Field, OutOfOrderWarning]


class MessageRepr:
    def __init__(self) -> None:
        self._events: List[Event] = []

    def __repr__(self) -> str:
        return "\n".join([repr(event) for event in self._events])

    @property
    def events(self) -> Sequence[Event]:
        return self._events

    @property
    def fields(self) -> Sequence[Field]:
        return [event for event in self._events if isinstance(event, Field)]

    @property
    def warnings(self) -> Sequence[OutOfOrderWarning]:
        return [
            event for event in self._events
            if isinstance(event, OutOfOrderWarning)
        ]

    def add_event(self, event: Event) -> None:
        self._events.append(event)


class VarintRepr(BaseTypeRepr):
    __slots__ = ("_int_repr",)

    def __init__(self, value: int) -> None:
        self._int_repr = value

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.int})"

    @property
    def int(self) -> int:
        return self._int_repr


class FixedRepr(BaseTypeRepr):
    __slots__ = ("_uint_repr",)

    def __init__(self, value: int) -> None:
        self._uint_repr = value

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.uint})"

    @property
    def uint(self) -> int:
        return self._uint_repr


class Fixed32Repr(FixedRepr):
    pass


class Fixed64Repr(FixedRepr):
    pass


class ChunkRepr(BaseTypeRepr):
    """A length-delimited run, possibly cut short by the end of input."""

    __slots__ = ("_length", "_chunk_repr")

    def __init__(self, length: int, value: bytes) -> None:
        self._length = length
        self._chunk_repr = value

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}"
            f"(length={self.length}, chunk={self.chunk!r})"
        )

    @property
    def length(self) -> int:
        return self._length

    @property
    def chunk(self) -> bytes:
        return self._chunk_repr

    @property
    def is_text(self) -> bool:
        return all(
            PRINTABLE_MIN <= b <= PRINTABLE_MAX for b in self._chunk_repr
        )

    @property
    def str(self) -> str:
        return self._chunk_repr.decode("ascii") if self.is_text else None


def parse_varint(value: int) -> VarintRepr:
    return VarintRepr(value)


def parse_fixed32(value: int) -> Fixed32Repr:
    return Fixed32Repr(value)


def parse_fixed64(value: int) -> Fixed64Repr:
    return Fixed64Repr(value)


def parse_chunk(value) -> ChunkRepr:
    length, payload = value
    return ChunkRepr(length, payload)


_handlers = {
    WireType.Varint: parse_varint,
    WireType.Fixed32: parse_fixed32,
    WireType.LengthDelimited: parse_chunk,
    WireType.Fixed64: parse_fixed64,
}


def decode_message(stream) -> Iterator[Event]:
    """Decode fields until `stream` is exhausted, yielding them in order.

    Each event is produced before the next tag is read, so a consumer that
    prints as it iterates keeps everything decoded so far even if a later
    field turns out to be corrupt.
    """
    max_field_seen = 0

    while True:
        proto_id = read_identifier(stream)

        if proto_id is None:
            break

        field_no, wire_type = proto_id
        logger.debug("tag: field %d, wire type %d", field_no, wire_type)

        if field_no < max_field_seen:
            # max_field_seen stays put: every later field below it warns too
            yield OutOfOrderWarning(field_no, max_field_seen)
        else:
            max_field_seen = field_no

        if wire_type == WireType.StartGroup:
            raise UnsupportedError(field_no, GROUP_APOLOGY)

        if wire_type not in _handlers:
            raise CorruptError(
                "invalid tag %d at field %d" % (wire_type, field_no)
            )

        value = read_value(stream, wire_type)
        yield Field(
            FieldDescriptor(proto_id), _handlers[wire_type](value)
        )


def parse_proto(payload: bytes) -> MessageRepr:
    message = MessageRepr()

    for event in decode_message(io.BytesIO(payload)):
        message.add_event(event)

    return message
