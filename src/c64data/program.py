"""BASIC line and program model plus the PRG memory-image framer.

A PRG file starts with its two-byte load address. Each BASIC line follows as
a link to the next line's address, the line number, the tokenised body and a
``0x00`` terminator. A zero link ends the chain::

    01 08 | 0F 08 | 0A 00 | 83 20 31 2C 32 ... | 00 | ... | 00 00
    load    link    line    DATA " 1,2..."        end         end of program
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, Iterable, Iterator, List

from .errors import ProgramLayoutError
from .petscii import PetsciiVariant, UnmappablePolicy
from .tokens import BasicKeyword, Token, as_token

DEFAULT_LOAD_ADDRESS: Final[int] = 0x0801
MAX_LINE_LENGTH: Final[int] = 250
MAX_LINE_NUMBER: Final[int] = 0xFFFF
_LINE_TERMINATOR: Final[bytes] = b"\x00"
_END_OF_PROGRAM: Final[bytes] = b"\x00\x00"


def _word(value: int) -> bytes:
    return value.to_bytes(2, "little")


@dataclass
class BasicLine:
    """A numbered line whose token payload stays within ``capacity`` bytes."""

    number: int = 0
    tokens: List[Token] = field(default_factory=list)
    capacity: int = MAX_LINE_LENGTH

    @classmethod
    def of(
        cls,
        number: int,
        *parts: Token | BasicKeyword | str,
        capacity: int = MAX_LINE_LENGTH,
    ) -> "BasicLine":
        """Build a line from keywords and strings, enforcing ``capacity``."""

        line = cls(number=number, capacity=capacity)
        for part in parts:
            token = as_token(part)
            if not line.push(token):
                raise ProgramLayoutError(
                    f"line {number} exceeds {capacity} bytes at {token!r}"
                )
        return line

    def size(self) -> int:
        return sum(token.size for token in self.tokens)

    def push(self, token: Token) -> bool:
        """Append ``token`` unless it would overflow the line budget."""

        if self.size() + token.size > self.capacity:
            return False
        self.tokens.append(token)
        return True

    def body(
        self,
        variant: PetsciiVariant = PetsciiVariant.UNSHIFTED,
        *,
        unmappable: UnmappablePolicy = UnmappablePolicy.REPLACE,
    ) -> bytes:
        """Return the line number, token bytes and terminator."""

        payload = b"".join(
            token.to_bytes(variant, unmappable=unmappable) for token in self.tokens
        )
        return _word(self.number) + payload + _LINE_TERMINATOR

    def listing_text(self) -> str:
        return "".join(token.listing_text() for token in self.tokens)


@dataclass
class BasicProgram:
    """Ordered BASIC lines placed at ``load_address`` when loaded."""

    lines: List[BasicLine] = field(default_factory=list)
    load_address: int = DEFAULT_LOAD_ADDRESS
    variant: PetsciiVariant = PetsciiVariant.UNSHIFTED

    def append(self, line: BasicLine) -> None:
        if self.lines and line.number <= self.lines[-1].number:
            raise ProgramLayoutError(
                f"line {line.number} does not follow line {self.lines[-1].number}"
            )
        self.lines.append(line)

    def to_bytes(
        self, *, unmappable: UnmappablePolicy = UnmappablePolicy.REPLACE
    ) -> bytes:
        """Render the program as a loadable PRG image."""

        if not 0 <= self.load_address <= 0xFFFF:
            raise ProgramLayoutError(f"load address {self.load_address:#x} out of range")

        image = bytearray(_word(self.load_address))
        next_address = self.load_address
        previous_number = -1
        for line in self.lines:
            if not 0 <= line.number <= MAX_LINE_NUMBER:
                raise ProgramLayoutError(f"line number {line.number} out of range")
            if line.number <= previous_number:
                raise ProgramLayoutError(
                    f"line {line.number} does not follow line {previous_number}"
                )
            previous_number = line.number

            body = line.body(self.variant, unmappable=unmappable)
            next_address += len(body) + 2
            if next_address > 0xFFFF:
                raise ProgramLayoutError(
                    f"line {line.number} ends past the 64 KiB address space"
                )
            image += _word(next_address)
            image += body
        image += _END_OF_PROGRAM
        return bytes(image)

    def listing(self) -> Iterator[tuple[int, str]]:
        """Yield ``(line_number, text)`` pairs in program order."""

        for line in self.lines:
            yield line.number, line.listing_text()


def format_listing(lines: Iterable[tuple[int, str]] | BasicProgram) -> str:
    """Join listing pairs into the text a BASIC ``LIST`` would print."""

    if isinstance(lines, BasicProgram):
        lines = lines.listing()
    rendered = []
    for line_number, text in lines:
        rendered.append(f"{line_number} {text}" if text else str(line_number))
    return "\n".join(rendered) + ("\n" if rendered else "")


__all__ = [
    "BasicLine",
    "BasicProgram",
    "DEFAULT_LOAD_ADDRESS",
    "MAX_LINE_LENGTH",
    "MAX_LINE_NUMBER",
    "format_listing",
]
