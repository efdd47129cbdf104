"""Encode structured values as Commodore 64 BASIC ``DATA`` programs."""
from __future__ import annotations

from .encoder import Encoder, PackingState, to_bytes, to_file, to_program, to_writer
from .errors import (
    C64DataError,
    CapacityError,
    LineNumberOverflowError,
    OptionsError,
    ProgramLayoutError,
    UnrepresentableCharacterError,
    UnsupportedValueError,
)
from .options import Options, load_options, options_from_mapping
from .petscii import PetsciiVariant, UnmappablePolicy, encode_petscii
from .program import BasicLine, BasicProgram, format_listing
from .tokens import BasicKeyword, Keyword, Raw
from .traversal import UNIT, Char, Some, TaggedUnion, serialize

__version__ = "0.1.0"

__all__ = [
    "BasicKeyword",
    "BasicLine",
    "BasicProgram",
    "C64DataError",
    "CapacityError",
    "Char",
    "Encoder",
    "Keyword",
    "LineNumberOverflowError",
    "Options",
    "OptionsError",
    "PackingState",
    "PetsciiVariant",
    "ProgramLayoutError",
    "Raw",
    "Some",
    "TaggedUnion",
    "UNIT",
    "UnmappablePolicy",
    "UnrepresentableCharacterError",
    "UnsupportedValueError",
    "encode_petscii",
    "format_listing",
    "load_options",
    "options_from_mapping",
    "serialize",
    "to_bytes",
    "to_file",
    "to_program",
    "to_writer",
]
