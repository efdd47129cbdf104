"""Exception hierarchy raised by the BASIC ``DATA`` encoder."""
from __future__ import annotations

from typing import Any


class C64DataError(Exception):
    """Base class for every failure reported by :mod:`c64data`."""


class CapacityError(C64DataError):
    """Raised when a single item cannot fit an empty BASIC line."""

    def __init__(self, item: str, size: int, line_length: int) -> None:
        super().__init__(
            f"item {item!r} needs {size} bytes but a line holds at most {line_length}"
        )
        self.item = item
        self.size = size
        self.line_length = line_length


class LineNumberOverflowError(C64DataError):
    """Raised when line numbering runs past the 16-bit range."""

    def __init__(self, line_number: int) -> None:
        super().__init__(f"line number {line_number} exceeds 65535")
        self.line_number = line_number


class ProgramLayoutError(C64DataError):
    """Raised when a program cannot be framed as a chained line image."""


class UnrepresentableCharacterError(C64DataError):
    """Raised under the strict policy for characters missing from PETSCII."""

    def __init__(self, char: str, variant: Any) -> None:
        super().__init__(f"character {char!r} has no {variant.value} PETSCII code")
        self.char = char
        self.variant = variant


class UnsupportedValueError(C64DataError, TypeError):
    """Raised when a value cannot be described through the traversal protocol."""


class OptionsError(C64DataError, ValueError):
    """Raised when encoder options or their configuration file fail validation."""


__all__ = [
    "C64DataError",
    "CapacityError",
    "LineNumberOverflowError",
    "OptionsError",
    "ProgramLayoutError",
    "UnrepresentableCharacterError",
    "UnsupportedValueError",
]
