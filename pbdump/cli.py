# -*- coding: utf-8 -*-

from __future__ import annotations

import enum
import logging
import sys
from typing import Optional, Sequence, TextIO

from .core import (
    BoundedSource, ByteSource, CorruptError, DecodeError, ExitCode,
    UnsupportedError, read_varint
)
from .parser import decode_message
from .printer import LinePrinter

logger = logging.getLogger(__name__)

USAGE = (
    "This tool is very dumb.  Pass the argument \"single\" to read a single "
    "protobuf message, otherwise we try to read a stream of (LEB128) "
    "length-delimited messages.  stdin only."
)


class Mode(enum.Enum):
    STREAM = "stream"
    SINGLE = "single"


class UsageError(ValueError):
    pass


def parse_args(argv: Sequence[str]) -> Mode:
    if len(argv) == 0:
        return Mode.STREAM
    if len(argv) == 1 and argv[0] == "single":
        return Mode.SINGLE

    raise UsageError(USAGE)


def _write_message(stream, out: TextIO, printer: LinePrinter) -> None:
    for event in decode_message(stream):
        out.write(printer.render(event))


def dump_single(
    source: ByteSource, out: TextIO, printer: Optional[LinePrinter] = None
) -> None:
    _write_message(source, out, printer or LinePrinter())


def dump_stream(
    source: ByteSource, out: TextIO, printer: Optional[LinePrinter] = None
) -> None:
    """Dump a sequence of varint length-prefixed messages."""
    printer = printer or LinePrinter()

    while source.peek() is not None:
        offset = source.offset
        length = read_varint(source)

        if length is None:
            raise CorruptError("bad length on message")

        logger.debug("message of %d bytes at offset %d", length, offset)
        _write_message(BoundedSource(source, length), out, printer)


def dump(stream, out: TextIO, mode: Mode = Mode.STREAM) -> ExitCode:
    """Dump everything in the binary `stream` to `out`.

    Decoding errors end the dump with a final line describing them; the
    returned exit code says which kind of failure it was.
    """
    source = ByteSource(stream)
    framer = dump_single if mode is Mode.SINGLE else dump_stream

    try:
        framer(source, out)
    except UnsupportedError as e:
        logger.debug("unsupported construct at offset %d", source.offset)
        out.write(f"{e.field_no}: {e}\n")
        return e.exit_code
    except DecodeError as e:
        logger.debug("corrupt input at offset %d: %s", source.offset, e)
        out.write(f"corrupt: {e}\n")
        return e.exit_code
    finally:
        out.flush()

    return ExitCode.OK


def main(
    argv: Optional[Sequence[str]] = None,
    stdin=None,
    stdout: Optional[TextIO] = None
) -> int:
    logging.basicConfig(
        level=logging.WARNING, stream=sys.stderr,
        format="%(name)s: %(levelname)s: %(message)s"
    )

    if argv is None:
        argv = sys.argv[1:]
    if stdin is None:
        stdin = sys.stdin.buffer
    if stdout is None:
        stdout = sys.stdout

    try:
        mode = parse_args(argv)
    except UsageError as e:
        stdout.write(f"{e}\n")
        return ExitCode.USAGE

    return dump(stdin, stdout, mode)


if __name__ == "__main__":
    sys.exit(main())
