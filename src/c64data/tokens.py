"""Commodore BASIC V2 tokens: single-byte keywords and raw PETSCII text."""
from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Union

from .petscii import PetsciiVariant, UnmappablePolicy, encode_petscii


class BasicKeyword(IntEnum):
    """Tokenised keyword codes as stored in program memory."""

    END = 0x80
    FOR = 0x81
    NEXT = 0x82
    DATA = 0x83
    INPUT_HASH = 0x84
    INPUT = 0x85
    DIM = 0x86
    READ = 0x87
    LET = 0x88
    GOTO = 0x89
    RUN = 0x8A
    IF = 0x8B
    RESTORE = 0x8C
    GOSUB = 0x8D
    RETURN = 0x8E
    REM = 0x8F
    STOP = 0x90
    ON = 0x91
    WAIT = 0x92
    LOAD = 0x93
    SAVE = 0x94
    VERIFY = 0x95
    DEF = 0x96
    POKE = 0x97
    PRINT_HASH = 0x98
    PRINT = 0x99
    CONT = 0x9A
    LIST = 0x9B
    CLR = 0x9C
    CMD = 0x9D
    SYS = 0x9E
    OPEN = 0x9F
    CLOSE = 0xA0
    GET = 0xA1
    NEW = 0xA2
    TAB = 0xA3
    TO = 0xA4
    FN = 0xA5
    SPC = 0xA6
    THEN = 0xA7
    NOT = 0xA8
    STEP = 0xA9
    OP_ADD = 0xAA
    OP_SUB = 0xAB
    OP_MUL = 0xAC
    OP_DIV = 0xAD
    OP_POW = 0xAE
    AND = 0xAF
    OR = 0xB0
    OP_GREATER = 0xB1
    OP_EQUALS = 0xB2
    OP_LESS = 0xB3
    SGN = 0xB4
    INT = 0xB5
    ABS = 0xB6
    USR = 0xB7
    FRE = 0xB8
    POS = 0xB9
    SQR = 0xBA
    RND = 0xBB
    LOG = 0xBC
    EXP = 0xBD
    COS = 0xBE
    SIN = 0xBF
    TAN = 0xC0
    ATN = 0xC1
    PEEK = 0xC2
    LEN = 0xC3
    STR = 0xC4
    VAL = 0xC5
    ASC = 0xC6
    CHR = 0xC7
    LEFT = 0xC8
    RIGHT = 0xC9
    MID = 0xCA
    GO = 0xCB
    PI = 0xFF

    @property
    def text(self) -> str:
        """Spelling used when the keyword is listed."""

        return _KEYWORD_TEXT.get(self, self.name)


# Keywords whose listing spelling differs from the member name.
_KEYWORD_TEXT: Dict[BasicKeyword, str] = {
    BasicKeyword.INPUT_HASH: "INPUT#",
    BasicKeyword.PRINT_HASH: "PRINT#",
    BasicKeyword.TAB: "TAB(",
    BasicKeyword.SPC: "SPC(",
    BasicKeyword.OP_ADD: "+",
    BasicKeyword.OP_SUB: "-",
    BasicKeyword.OP_MUL: "*",
    BasicKeyword.OP_DIV: "/",
    BasicKeyword.OP_POW: "^",
    BasicKeyword.OP_GREATER: ">",
    BasicKeyword.OP_EQUALS: "=",
    BasicKeyword.OP_LESS: "<",
    BasicKeyword.STR: "STR$",
    BasicKeyword.CHR: "CHR$",
    BasicKeyword.LEFT: "LEFT$",
    BasicKeyword.RIGHT: "RIGHT$",
    BasicKeyword.MID: "MID$",
}


@dataclass(frozen=True)
class Keyword:
    """A keyword stored as its single token byte."""

    keyword: BasicKeyword

    @property
    def size(self) -> int:
        return 1

    def to_bytes(
        self,
        variant: PetsciiVariant = PetsciiVariant.UNSHIFTED,
        *,
        unmappable: UnmappablePolicy = UnmappablePolicy.REPLACE,
    ) -> bytes:
        return bytes((int(self.keyword),))

    def listing_text(self) -> str:
        return self.keyword.text


@dataclass(frozen=True)
class Raw:
    """Literal text copied into the line as PETSCII bytes."""

    text: str

    @property
    def size(self) -> int:
        # One byte per character regardless of variant or substitution.
        return len(self.text)

    def to_bytes(
        self,
        variant: PetsciiVariant = PetsciiVariant.UNSHIFTED,
        *,
        unmappable: UnmappablePolicy = UnmappablePolicy.REPLACE,
    ) -> bytes:
        return encode_petscii(self.text, variant, unmappable=unmappable)

    def listing_text(self) -> str:
        return self.text


Token = Union[Keyword, Raw]


def as_token(value: Token | BasicKeyword | str) -> Token:
    """Coerce a keyword or plain string into a :data:`Token`."""

    if isinstance(value, (Keyword, Raw)):
        return value
    if isinstance(value, BasicKeyword):
        return Keyword(value)
    if isinstance(value, str):
        return Raw(value)
    raise TypeError(f"cannot build a BASIC token from {type(value)!r}")


__all__ = [
    "BasicKeyword",
    "Keyword",
    "Raw",
    "Token",
    "as_token",
]
