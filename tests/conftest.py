"""Pytest configuration to ensure the c64data package is importable."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

_SRC = Path(__file__).resolve().parents[1] / "src"
_src_str = str(_SRC)
if _SRC.exists() and _src_str not in sys.path:
    sys.path.insert(0, _src_str)

from c64data import Options  # noqa: E402  (import after sys.path tweak)


@pytest.fixture
def flat_options() -> Options:
    """Options without container prefixes, numbered 10, 20, 30..."""

    return Options(
        line_number_start=10,
        line_number_increment=10,
        byte_slice_length=False,
        sequence_length=False,
        map_length=False,
        tuple_length=False,
    )
