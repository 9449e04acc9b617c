import enum
import io
import logging

from collections import namedtuple
from typing import Iterable, Optional, Tuple, Union

# Core parsing. This handles the most low-level deserialization.
# No guessing going on here. Readers return None when the source runs dry
# before the value starts and raise CorruptError when it runs dry inside it.

logger = logging.getLogger(__name__)

ProtoId = namedtuple("ProtoId", ["field_no", "wire_type"])

VARINT_MASK = (1 << 64) - 1

# LEN payloads are collected in pieces of at most this size, so a bogus
# length prefix costs nothing until the bytes actually show up.
_TAKE_CHUNK = 64 * 1024


class ExitCode(enum.IntEnum):
    """Process exit statuses, from sysexits.h."""

    OK = 0
    USAGE = 64
    DATAERR = 65
    NOINPUT = 66
    NOUSER = 67
    NOHOST = 68
    UNAVAILABLE = 69
    SOFTWARE = 70
    OSERR = 71
    OSFILE = 72
    CANTCREAT = 73
    IOERR = 74
    TEMPFAIL = 75
    PROTOCOL = 76
    NOPERM = 77
    CONFIG = 78


class WireType(enum.IntEnum):
    Varint = 0
    Fixed32 = 1
    LengthDelimited = 2
    StartGroup = 3
    EndGroup = 4
    Fixed64 = 5


class DecodeError(ValueError):
    exit_code = ExitCode.DATAERR


class CorruptError(DecodeError):
    """The input cannot be a well-formed message."""


class UnsupportedError(DecodeError, NotImplementedError):
    """The input uses a construct the dumper cannot show (groups)."""

    exit_code = ExitCode.SOFTWARE

    def __init__(self, field_no: int, message: str) -> None:
        super().__init__(message)
        self.field_no = field_no


class ByteSource:
    """Single pass reader over a binary stream with one octet of lookahead."""

    def __init__(self, stream: io.BufferedIOBase) -> None:
        self._stream = stream
        self._pending = b""
        self.offset = 0

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(offset={self.offset})"

    def peek(self) -> Optional[int]:
        if not self._pending:
            self._pending = self._stream.read(1)

        return self._pending[0] if self._pending else None

    def read(self, size: int = -1) -> bytes:
        if size == 0:
            return b""

        head, self._pending = self._pending, b""

        if size < 0:
            data = head + self._stream.read()
        elif len(head) < size:
            data = head + self._stream.read(size - len(head))
        else:
            data = head

        self.offset += len(data)
        return data


class BoundedSource:
    """View of at most `limit` octets of another source.

    Reads past the limit look like end of input, so whatever decodes from
    this view cannot eat into the octets that follow it.
    """

    def __init__(
        self, source: Union[ByteSource, io.BufferedIOBase], limit: int
    ) -> None:
        self._source = source
        self.remaining = limit

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(remaining={self.remaining})"

    def read(self, size: int = -1) -> bytes:
        if size < 0 or size > self.remaining:
            size = self.remaining

        if size == 0:
            return b""

        data = self._source.read(size)
        self.remaining -= len(data)

        return data


def _iter_bytes(stream) -> Iterable[int]:
    byte = stream.read(1)

    while len(byte) != 0:
        yield byte[0]
        byte = stream.read(1)


def _take(stream, length: int) -> bytes:
    pieces = []

    while length > 0:
        piece = stream.read(min(length, _TAKE_CHUNK))

        if not piece:
            break

        pieces.append(piece)
        length -= len(piece)

    return b"".join(pieces)


def read_varint(file) -> Optional[int]:
    """Read a LEB128 varint, wrapping silently at 64 bits.

    Returns None if the source ends before the terminating octet.
    """
    varint = 0
    pos = 0

    for num in _iter_bytes(file):
        varint |= (num & 0b0111_1111) << pos
        pos += 7

        if not num & 0b1000_0000:
            return varint & VARINT_MASK

    return None


def read_identifier(file) -> Optional[ProtoId]:
    # Only the single octet tag form is understood, so field_no <= 31.
    tag = file.read(1)

    if len(tag) == 0:
        return None

    return ProtoId(tag[0] >> 3, tag[0] & 0b111)


def _read_fixed(file, size: int, name: str) -> int:
    c = _take(file, size)

    if len(c) != size:
        raise CorruptError(f"short {name}")

    return int.from_bytes(c, "big")


def read_fixed32(file) -> int:
    return _read_fixed(file, 4, "fixed32")


def read_fixed64(file) -> int:
    return _read_fixed(file, 8, "fixed64")


def read_chunk(file) -> Optional[Tuple[int, bytes]]:
    """Read a length prefix and up to that many octets.

    The declared length is returned alongside the payload; the payload is
    shorter when the source ends early.
    """
    length = read_varint(file)

    if length is None:
        return None

    payload = _take(file, length)

    if len(payload) != length:
        logger.debug(
            "string tag declares %d bytes, only %d available", length,
            len(payload)
        )

    return length, payload


def read_value(file, wire_type: int) -> Union[int, Tuple[int, bytes]]:
    if wire_type == WireType.Varint:
        value = read_varint(file)
        if value is None:
            raise CorruptError("bad varint")
        return value
    elif wire_type == WireType.Fixed32:
        return read_fixed32(file)
    elif wire_type == WireType.LengthDelimited:
        chunk = read_chunk(file)
        if chunk is None:
            raise CorruptError("bad length on string tag")
        return chunk
    elif wire_type == WireType.Fixed64:
        return read_fixed64(file)

    raise CorruptError("Unknown wire type %d" % wire_type)


class BaseProtoPrinter:
    def visit(self, ty: "BaseTypeRepr") -> str:
        raise NotImplementedError


class BaseTypeRepr:
    __slots__ = ()

    def accept(self, printer: BaseProtoPrinter) -> str:
        return printer.visit(self)


class FieldDescriptor(BaseTypeRepr):
    __slots__ = ("_proto_id",)

    def __init__(self, proto_id: ProtoId) -> None:
        self._proto_id = proto_id

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}"
            f"(field_no={self.field_no}, wire_type={self.wire_type})"
        )

    @property
    def proto_id(self) -> ProtoId:
        return self._proto_id

    @property
    def field_no(self) -> int:
        return self._proto_id.field_no

    @property
    def wire_type(self) -> int:
        return self._proto_id.wire_type
