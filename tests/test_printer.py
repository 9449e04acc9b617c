import pytest

from pbdump import core, parser
from pbdump.printer import LinePrinter


def render_all(payload: bytes) -> str:
    printer = LinePrinter()

    return "".join(
        printer.render(event) for event in parser.parse_proto(payload).events
    )


@pytest.mark.parametrize(
    "test_input,expected", [
        (b"\x08\x96\x01", "1: varint 150\n"),
        (b"\x08\xff\xff\xff\xff\xff\xff\xff\xff\xff\x01",
         "1: varint 18446744073709551615\n"),
        (b"\x12\x05hello", "2: 5-byte string: hello\n"),
        (b"\x12\x03\x00\x01\xff", "2: 3-byte string: 0 1 ff \n"),
        (b"\x12\x00", "2: 0-byte string: \n"),
        (b"\x09\x00\x00\x00\x2a", "1: fixed32 42\n"),
        (b"\x0d" + b"\x00" * 7 + b"\x2a", "1: fixed64 42\n"),
        (b"\x0a\x04ab", "1: 4-byte string: ab\n"),
        (b"\x0a\x04a\x00", "1: 4-byte string: 61 0 \n"),
    ]
)
def test_render_field(test_input: bytes, expected: str) -> None:
    assert render_all(test_input) == expected


def test_render_out_of_order() -> None:
    assert render_all(b"\x10\x01\x08\x02") == (
        "2: varint 1\n"
        "Warning: message has out-of-order fields (1 < 2)\n"
        "1: varint 2\n"
    )


def test_render_hex_is_unpadded_lowercase() -> None:
    chunk = parser.ChunkRepr(3, b"\x0a\xab\x7f")

    assert chunk.accept(LinePrinter()) == "3-byte string: a ab 7f "


def test_custom_separator() -> None:
    printer = LinePrinter()
    printer.separator = "\r\n"
    event = parser.Field(
        core.FieldDescriptor(core.ProtoId(1, 0)), parser.VarintRepr(7)
    )

    assert printer.render(event) == "1: varint 7\r\n"


def test_unknown_repr() -> None:
    with pytest.raises(NotImplementedError):
        LinePrinter().visit(core.BaseTypeRepr())
