"""Command-line front end that turns a JSON document into a ``DATA`` PRG."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Sequence

from .encoder import to_program
from .errors import C64DataError
from .options import Options, load_options
from .petscii import PetsciiVariant
from .program import format_listing
from .traversal import UNIT

logger = logging.getLogger(__name__)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Return parsed arguments for the encoder CLI."""

    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("input", type=Path, help="JSON document to encode")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help="Destination PRG file (defaults to INPUT with a .prg suffix)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a TOML file with an [encoder] table",
    )
    parser.add_argument("--line-length", type=int, default=None, help="Bytes per DATA line")
    parser.add_argument("--line-start", type=int, default=None, help="First line number")
    parser.add_argument("--line-step", type=int, default=None, help="Line number increment")
    charset = parser.add_mutually_exclusive_group()
    charset.add_argument(
        "--shifted",
        dest="encoding",
        action="store_const",
        const=PetsciiVariant.SHIFTED,
        help="Encode for the lowercase/uppercase character set",
    )
    charset.add_argument(
        "--unshifted",
        dest="encoding",
        action="store_const",
        const=PetsciiVariant.UNSHIFTED,
        help="Encode for the uppercase/graphics character set",
    )
    parser.add_argument(
        "--enum-names",
        action="store_true",
        default=None,
        help="Emit enum variant names instead of ordinals",
    )
    for flag, dest, help_text in (
        ("--no-byte-length", "byte_slice_length", "Omit byte string lengths"),
        ("--no-sequence-length", "sequence_length", "Omit sequence lengths"),
        ("--no-map-length", "map_length", "Omit map lengths"),
    ):
        parser.add_argument(flag, dest=dest, action="store_false", default=None, help=help_text)
    parser.add_argument(
        "--tuple-length",
        dest="tuple_length",
        action="store_true",
        default=None,
        help="Prefix tuples with their arity",
    )
    parser.add_argument(
        "--listing",
        action="store_true",
        help="Print the generated BASIC listing to stdout",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def resolve_options(args: argparse.Namespace) -> Options:
    """Merge command-line overrides over the configured options."""

    options = load_options(args.config) if args.config else Options()
    overrides: Dict[str, Any] = {
        "line_length": args.line_length,
        "line_number_start": args.line_start,
        "line_number_increment": args.line_step,
        "encoding_variant": args.encoding,
        "emit_enum_names": args.enum_names,
        "byte_slice_length": args.byte_slice_length,
        "sequence_length": args.sequence_length,
        "map_length": args.map_length,
        "tuple_length": args.tuple_length,
    }
    changes = {key: value for key, value in overrides.items() if value is not None}
    return options.evolve(**changes) if changes else options


def unit_nulls(document: Any) -> Any:
    """Replace JSON ``null`` with :data:`UNIT` throughout ``document``.

    JSON has no optional wrapper, so ``null`` encodes as the unit value and
    contributes no items.
    """

    if document is None:
        return UNIT
    if isinstance(document, dict):
        return {key: unit_nulls(value) for key, value in document.items()}
    if isinstance(document, list):
        return [unit_nulls(item) for item in document]
    return document


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    output = args.output or args.input.with_suffix(".prg")
    try:
        options = resolve_options(args)
        with args.input.open("r", encoding="utf-8") as handle:
            document = unit_nulls(json.load(handle))
        program = to_program(document, options)
        payload = program.to_bytes(unmappable=options.unmappable)
        output.write_bytes(payload)
    except (C64DataError, OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    logger.info("wrote %d bytes to %s", len(payload), output)
    if args.listing:
        sys.stdout.write(format_listing(program))
    return 0


if __name__ == "__main__":  # pragma: no cover - manual entry point
    sys.exit(main())
