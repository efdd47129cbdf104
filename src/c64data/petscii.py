"""PETSCII encoding tables for the two C64 character-set variants."""
from __future__ import annotations

import logging
from enum import Enum
from types import MappingProxyType
from typing import Final, Mapping

from .errors import UnrepresentableCharacterError

logger = logging.getLogger(__name__)

UNMAPPABLE_BYTE: Final[int] = 0x3F


class PetsciiVariant(Enum):
    """Character ROM selected on the target machine."""

    UNSHIFTED = "unshifted"
    SHIFTED = "shifted"


class UnmappablePolicy(Enum):
    """Handling for characters that have no code in the active table."""

    REPLACE = "replace"
    WARN = "warn"
    STRICT = "strict"


def _build_common_symbols() -> dict[str, int]:
    table = {chr(code): code for code in range(0x20, 0x41)}
    table["["] = 0x5B
    table["£"] = 0x5C
    table["]"] = 0x5D
    table["↑"] = 0x5E
    table["←"] = 0x5F
    return table


def _build_unshifted_table() -> Mapping[str, int]:
    table = _build_common_symbols()
    for offset in range(26):
        table[chr(ord("A") + offset)] = 0x41 + offset
        table[chr(ord("a") + offset)] = 0x41 + offset
    table["♠"] = 0x61
    table["♥"] = 0x73
    table["♣"] = 0x78
    table["♦"] = 0x7A
    table["π"] = 0x7E
    return MappingProxyType(table)


def _build_shifted_table() -> Mapping[str, int]:
    table = _build_common_symbols()
    for offset in range(26):
        table[chr(ord("a") + offset)] = 0x41 + offset
        table[chr(ord("A") + offset)] = 0xC1 + offset
    return MappingProxyType(table)


_TABLES: Final[Mapping[PetsciiVariant, Mapping[str, int]]] = MappingProxyType(
    {
        PetsciiVariant.UNSHIFTED: _build_unshifted_table(),
        PetsciiVariant.SHIFTED: _build_shifted_table(),
    }
)


def petscii_table(variant: PetsciiVariant) -> Mapping[str, int]:
    """Return the read-only character table for ``variant``."""

    return _TABLES[variant]


def encode_petscii(
    text: str,
    variant: PetsciiVariant = PetsciiVariant.UNSHIFTED,
    *,
    unmappable: UnmappablePolicy = UnmappablePolicy.REPLACE,
) -> bytes:
    """Encode ``text`` to one PETSCII byte per character."""

    table = _TABLES[variant]
    encoded = bytearray()
    for char in text:
        code = table.get(char)
        if code is None:
            if unmappable is UnmappablePolicy.STRICT:
                raise UnrepresentableCharacterError(char, variant)
            if unmappable is UnmappablePolicy.WARN:
                logger.warning(
                    "substituting '?' for %r missing from %s PETSCII",
                    char,
                    variant.value,
                )
            code = UNMAPPABLE_BYTE
        encoded.append(code)
    return bytes(encoded)


def is_representable(text: str, variant: PetsciiVariant) -> bool:
    """Return ``True`` when every character of ``text`` has a code."""

    table = _TABLES[variant]
    return all(char in table for char in text)


__all__ = [
    "PetsciiVariant",
    "UNMAPPABLE_BYTE",
    "UnmappablePolicy",
    "encode_petscii",
    "is_representable",
    "petscii_table",
]
