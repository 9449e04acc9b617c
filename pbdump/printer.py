# -*- coding: utf-8 -*-

from __future__ import annotations

from typing import Union

from .core import BaseProtoPrinter, BaseTypeRepr, FieldDescriptor
from .parser import (
    ChunkRepr, Field, Fixed32Repr, Fixed64Repr, OutOfOrderWarning, VarintRepr
)


class LinePrinter(BaseProtoPrinter):
    """Renders decoder events as the dump's text lines."""

    def __init__(self) -> None:
        self.separator = "\n"

    def render(self, event: Union[Field, OutOfOrderWarning]) -> str:
        if isinstance(event, Field):
            return (
                f"{event.field_desc.accept(self)}"
                f"{event.field_repr.accept(self)}{self.separator}"
            )

        return f"{event.accept(self)}{self.separator}"

    def visit(self, ty: BaseTypeRepr) -> str:
        if isinstance(ty, FieldDescriptor):
            return f"{ty.field_no}: "
        elif isinstance(ty, VarintRepr):
            return f"varint {ty.int}"
        elif isinstance(ty, Fixed32Repr):
            return f"fixed32 {ty.uint}"
        elif isinstance(ty, Fixed64Repr):
            return f"fixed64 {ty.uint}"
        elif isinstance(ty, ChunkRepr):
            return self._visit_chunk(ty)
        elif isinstance(ty, OutOfOrderWarning):
            return (
                "Warning: message has out-of-order fields "
                f"({ty.field_no} < {ty.max_field_seen})"
            )

        raise NotImplementedError(f"cannot print {ty!r}")

    @staticmethod
    def _visit_chunk(ty: ChunkRepr) -> str:
        if ty.is_text:
            body = ty.str
        else:
            body = "".join(f"{b:x} " for b in ty.chunk)

        return f"{ty.length}-byte string: {body}"
