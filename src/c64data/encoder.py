"""Pack arbitrary values into the ``DATA`` statements of a BASIC program.

Every item becomes one textual entry of a ``DATA`` list. Items are packed
greedily: the first item on a line is written as ``" <text>"`` and every
following one as ``", <text>"`` until the next item would overflow the line
budget, at which point the line is numbered and closed and a fresh ``DATA``
line opened. Containers never force a line break, so a BASIC ``READ`` loop
sees one flat stream of items regardless of how they were laid out.
"""
from __future__ import annotations

import logging
import math
from enum import Enum, auto
from pathlib import Path
from typing import IO, Any, Optional

from .errors import CapacityError, LineNumberOverflowError, UnsupportedValueError
from .options import Options
from .petscii import PetsciiVariant
from .program import MAX_LINE_NUMBER, BasicLine, BasicProgram
from .tokens import BasicKeyword, Keyword, Raw
from .traversal import CompoundSerializer, serialize

logger = logging.getLogger(__name__)

_QUOTE = '"'
_QUOTE_SUBSTITUTE = "?"


def quote_data_text(text: str, variant: PetsciiVariant) -> str:
    """Return ``text`` as a ``DATA`` item that ``READ`` returns unchanged.

    ``READ`` strips surrounding spaces and splits on commas, and shifted-mode
    capitals only survive inside quotes. BASIC has no escape for an embedded
    quote, so those are replaced with ``?``.
    """

    needs_quotes = (
        not text
        or text[0] == " "
        or text[-1] == " "
        or "," in text
        or _QUOTE in text
        or (variant is PetsciiVariant.SHIFTED and any("A" <= c <= "Z" for c in text))
    )
    if not needs_quotes:
        return text
    return _QUOTE + text.replace(_QUOTE, _QUOTE_SUBSTITUTE) + _QUOTE


def format_float(value: float) -> str:
    """Return the shortest decimal text that reads back as ``value``."""

    if not math.isfinite(value):
        raise UnsupportedValueError(f"BASIC cannot READ the float {value!r}")
    return repr(float(value))


class PackingState(Enum):
    """Whether a ``DATA`` line is currently accepting items."""

    IDLE = auto()
    OPEN = auto()


class _Members:
    """Compound serializer handing container members back to the encoder."""

    __slots__ = ("_encoder",)

    def __init__(self, encoder: "Encoder") -> None:
        self._encoder = encoder

    def serialize_element(self, value: Any, hint: Any = None) -> None:
        serialize(value, self._encoder, hint)

    def serialize_key(self, key: Any, hint: Any = None) -> None:
        serialize(key, self._encoder, hint)

    def serialize_value(self, value: Any, hint: Any = None) -> None:
        serialize(value, self._encoder, hint)

    def serialize_field(self, name: str, value: Any, hint: Any = None) -> None:
        serialize(value, self._encoder, hint)

    def end(self) -> None:
        pass


class Encoder:
    """Single-use serializer that accumulates a :class:`BasicProgram`."""

    def __init__(self, options: Optional[Options] = None) -> None:
        self.options = options or Options()
        self.program = BasicProgram(variant=self.options.encoding_variant)
        self.state = PackingState.IDLE
        self._line: Optional[BasicLine] = None
        self._line_number_next = self.options.line_number_start
        self._finished = False

    # Run control -----------------------------------------------------------

    def encode(self, value: Any, hint: Any = None) -> None:
        """Append the items of ``value`` to the program."""

        self._require_active()
        serialize(value, self, hint)

    def finish(self) -> BasicProgram:
        """Close the open line and return the completed program."""

        self._require_active()
        self.flush()
        self._finished = True
        logger.debug(
            "encoded %d DATA lines starting at line %d",
            len(self.program.lines),
            self.options.line_number_start,
        )
        return self.program

    def _require_active(self) -> None:
        if self._finished:
            raise RuntimeError("encoder already finished; create a new Encoder")

    # Packing -----------------------------------------------------------------

    def emit(self, text: str) -> None:
        """Place one item, opening or closing lines as capacity requires."""

        self._require_active()
        if self.state is PackingState.OPEN:
            assert self._line is not None
            if self._line.push(Raw(f", {text}")):
                return
            self._finalize_line()
        self._push_first(text)

    def flush(self) -> None:
        """Number and store the open line, if any."""

        if self.state is PackingState.OPEN:
            self._finalize_line()

    def _push_first(self, text: str) -> None:
        line = BasicLine(capacity=self.options.line_length)
        token = Raw(f" {text}")
        if not (line.push(Keyword(BasicKeyword.DATA)) and line.push(token)):
            raise CapacityError(text, 1 + token.size, self.options.line_length)
        self._line = line
        self.state = PackingState.OPEN

    def _finalize_line(self) -> None:
        assert self._line is not None
        if self._line_number_next > MAX_LINE_NUMBER:
            raise LineNumberOverflowError(self._line_number_next)
        self._line.number = self._line_number_next
        self.program.append(self._line)
        logger.debug("line %d closed at %d bytes", self._line.number, self._line.size())
        self._line_number_next += self.options.line_number_increment
        self._line = None
        self.state = PackingState.IDLE

    def _emit_text(self, text: str) -> None:
        self.emit(quote_data_text(text, self.options.encoding_variant))

    def _emit_discriminant(self, index: int, variant: str) -> None:
        if self.options.emit_enum_names:
            self._emit_text(variant)
        else:
            self.emit(str(index))

    def _emit_prefix(self, enabled: bool, length: Optional[int]) -> None:
        if enabled:
            self.emit(str(length or 0))

    # Serializer protocol -------------------------------------------------------

    def serialize_bool(self, value: bool) -> None:
        self.emit("1" if value else "0")

    def serialize_int(self, value: int) -> None:
        self.emit(str(int(value)))

    def serialize_float(self, value: float) -> None:
        self.emit(format_float(value))

    def serialize_char(self, value: str) -> None:
        self._emit_text(value)

    def serialize_str(self, value: str) -> None:
        self._emit_text(value)

    def serialize_bytes(self, value: bytes) -> None:
        self._emit_prefix(self.options.byte_slice_length, len(value))
        for byte in value:
            self.emit(str(byte))

    def serialize_none(self) -> None:
        self.emit("0")

    def serialize_some(self, value: Any, hint: Any = None) -> None:
        self.emit("1")
        serialize(value, self, hint)

    def serialize_unit(self) -> None:
        pass

    def serialize_unit_struct(self, name: str) -> None:
        pass

    def serialize_unit_variant(self, name: str, index: int, variant: str) -> None:
        self._emit_discriminant(index, variant)

    def serialize_newtype_struct(self, name: str, value: Any, hint: Any = None) -> None:
        serialize(value, self, hint)

    def serialize_newtype_variant(
        self, name: str, index: int, variant: str, value: Any, hint: Any = None
    ) -> None:
        self._emit_discriminant(index, variant)
        serialize(value, self, hint)

    def serialize_seq(self, length: Optional[int]) -> CompoundSerializer:
        self._emit_prefix(self.options.sequence_length, length)
        return _Members(self)

    def serialize_map(self, length: Optional[int]) -> CompoundSerializer:
        self._emit_prefix(self.options.map_length, length)
        return _Members(self)

    def serialize_tuple(self, length: int) -> CompoundSerializer:
        self._emit_prefix(self.options.tuple_length, length)
        return _Members(self)

    def serialize_tuple_struct(self, name: str, length: int) -> CompoundSerializer:
        self._emit_prefix(self.options.tuple_length, length)
        return _Members(self)

    def serialize_tuple_variant(
        self, name: str, index: int, variant: str, length: int
    ) -> CompoundSerializer:
        self._emit_discriminant(index, variant)
        self._emit_prefix(self.options.tuple_length, length)
        return _Members(self)

    def serialize_struct(self, name: str, length: int) -> CompoundSerializer:
        return _Members(self)

    def serialize_struct_variant(
        self, name: str, index: int, variant: str, length: int
    ) -> CompoundSerializer:
        self._emit_discriminant(index, variant)
        return _Members(self)


def to_program(
    value: Any, options: Optional[Options] = None, *, hint: Any = None
) -> BasicProgram:
    """Encode ``value`` into an in-memory :class:`BasicProgram`."""

    encoder = Encoder(options)
    encoder.encode(value, hint)
    return encoder.finish()


def to_bytes(value: Any, options: Optional[Options] = None, *, hint: Any = None) -> bytes:
    """Encode ``value`` into PRG image bytes."""

    options = options or Options()
    program = to_program(value, options, hint=hint)
    return program.to_bytes(unmappable=options.unmappable)


def to_writer(
    writer: IO[bytes],
    value: Any,
    options: Optional[Options] = None,
    *,
    hint: Any = None,
) -> None:
    """Encode ``value`` and write the PRG image to ``writer`` in one call."""

    writer.write(to_bytes(value, options, hint=hint))


def to_file(
    path: Path | str,
    value: Any,
    options: Optional[Options] = None,
    *,
    hint: Any = None,
) -> None:
    """Encode ``value`` into the PRG file at ``path``."""

    payload = to_bytes(value, options, hint=hint)
    with open(Path(path), "wb") as sink:
        sink.write(payload)


__all__ = [
    "Encoder",
    "PackingState",
    "format_float",
    "quote_data_text",
    "to_bytes",
    "to_file",
    "to_program",
    "to_writer",
]
