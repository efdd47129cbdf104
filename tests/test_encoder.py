from __future__ import annotations

import io
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

import pytest

from c64data import encoder as encoder_module
from c64data.encoder import Encoder, PackingState, quote_data_text, to_bytes, to_program, to_writer
from c64data.errors import CapacityError, LineNumberOverflowError, UnsupportedValueError
from c64data.options import Options
from c64data.petscii import PetsciiVariant
from c64data.program import format_listing
from c64data.tokens import BasicKeyword, Keyword
from c64data.traversal import UNIT, Char, Some, TaggedUnion


class CardSuit(Enum):
    DIAMONDS = auto()
    CLUBS = auto()
    HEARTS = auto()
    SPADES = auto()


@dataclass
class Person:
    first_name: str
    last_name: str
    birth_year: int


@dataclass
class Reading:
    label: str
    value: Optional[int]


class Shape(TaggedUnion):
    pass


@dataclass
class Circle(Shape):
    radius: float


@dataclass
class Rect(Shape):
    width: int
    height: int


class Empty(Shape):
    pass


class Duration:
    def __init__(self, secs: int, nanos: int) -> None:
        self.secs = secs
        self.nanos = nanos

    def __c64_serialize__(self, serializer: Any) -> None:
        fields = serializer.serialize_struct("Duration", 2)
        fields.serialize_field("secs", self.secs)
        fields.serialize_field("nanos", self.nanos)
        fields.end()


def listing(value: Any, options: Options | None = None, **changes: Any) -> str:
    options = (options or Options()).evolve(**changes) if changes else options
    return format_listing(to_program(value, options))


@pytest.mark.parametrize(
    "text, variant, expected",
    [
        ("", PetsciiVariant.UNSHIFTED, '""'),
        ("hello", PetsciiVariant.UNSHIFTED, "hello"),
        ("Hello", PetsciiVariant.UNSHIFTED, "Hello"),
        ("Hello", PetsciiVariant.SHIFTED, '"Hello"'),
        ("hello world", PetsciiVariant.SHIFTED, "hello world"),
        ("a,b", PetsciiVariant.UNSHIFTED, '"a,b"'),
        ('say "hi"', PetsciiVariant.UNSHIFTED, '"say ?hi?"'),
        ('"', PetsciiVariant.UNSHIFTED, '"?"'),
        (" lead", PetsciiVariant.UNSHIFTED, '" lead"'),
        ("trail ", PetsciiVariant.UNSHIFTED, '"trail "'),
        (" ", PetsciiVariant.UNSHIFTED, '" "'),
    ],
)
def test_quote_data_text(text: str, variant: PetsciiVariant, expected: str) -> None:
    assert quote_data_text(text, variant) == expected


def test_scalars_render_as_plain_items(flat_options: Options) -> None:
    value = (True, False, -42, 35.7642, "word", Char("x"))

    assert listing(value, flat_options) == "10 DATA 1, 0, -42, 35.7642, word, x\n"


def test_non_finite_floats_are_rejected() -> None:
    with pytest.raises(UnsupportedValueError):
        to_program(float("inf"))
    with pytest.raises(UnsupportedValueError):
        to_program([1.0, float("nan")])


def test_sequence_length_prefix_is_optional() -> None:
    assert listing([7, 8, 9]) == "1000 DATA 3, 7, 8, 9\n"
    assert listing([7, 8, 9], sequence_length=False) == "1000 DATA 7, 8, 9\n"


def test_unknown_length_sequence_prefixes_zero() -> None:
    assert listing(x for x in (1, 2)) == "1000 DATA 0, 1, 2\n"


def test_map_flattens_to_alternating_keys_and_values() -> None:
    cries = {"Dio Brando": "MUDA", "Jotaro Kujo": "ORA ORA"}

    assert listing(cries) == "1000 DATA 2, Dio Brando, MUDA, Jotaro Kujo, ORA ORA\n"
    assert listing(cries, map_length=False) == "1000 DATA Dio Brando, MUDA, Jotaro Kujo, ORA ORA\n"


def test_byte_strings_emit_one_item_per_byte() -> None:
    assert listing(b"\x01\xff\x00") == "1000 DATA 3, 1, 255, 0\n"
    assert listing(bytearray(b"\x02"), byte_slice_length=False) == "1000 DATA 2\n"


def test_tuple_arity_prefix_follows_tuple_length() -> None:
    assert listing((1, "a")) == "1000 DATA 1, a\n"
    assert listing((1, "a"), tuple_length=True) == "1000 DATA 2, 1, a\n"


def test_structs_emit_fields_in_order_without_names() -> None:
    people = [Person("Jonathan", "Joestar", 1868), Person("Jotaro", "Kujo", 1971)]

    assert listing(people) == "1000 DATA 2, Jonathan, Joestar, 1868, Jotaro, Kujo, 1971\n"
    assert listing(people, tuple_length=True) == (
        "1000 DATA 2, Jonathan, Joestar, 1868, Jotaro, Kujo, 1971\n"
    )
    assert listing(people, encoding_variant=PetsciiVariant.SHIFTED) == (
        '1000 DATA 2, "Jonathan", "Joestar", 1868, "Jotaro", "Kujo", 1971\n'
    )


def test_enum_discriminants_as_ordinals_or_names() -> None:
    suits = list(CardSuit)

    assert listing(suits) == "1000 DATA 4, 0, 1, 2, 3\n"
    assert listing(suits, emit_enum_names=True) == (
        "1000 DATA 4, DIAMONDS, CLUBS, HEARTS, SPADES\n"
    )
    assert listing(
        suits, emit_enum_names=True, encoding_variant=PetsciiVariant.SHIFTED
    ) == '1000 DATA 4, "DIAMONDS", "CLUBS", "HEARTS", "SPADES"\n'


def test_optional_fields_emit_presence_discriminant() -> None:
    readings = [Reading("a", 5), Reading("b", None)]

    assert listing(readings) == "1000 DATA 2, a, 1, 5, b, 0\n"


def test_explicit_some_and_none() -> None:
    assert listing([Some("x"), None]) == "1000 DATA 2, 1, x, 0\n"


def test_tagged_union_variants_carry_discriminant_and_payload() -> None:
    shapes = [Circle(1.5), Rect(2, 3), Empty()]

    assert listing(shapes) == "1000 DATA 3, 0, 1.5, 1, 2, 3, 2\n"
    assert listing(shapes, emit_enum_names=True) == (
        "1000 DATA 3, Circle, 1.5, Rect, 2, 3, Empty\n"
    )


def test_unit_values_contribute_no_items(flat_options: Options) -> None:
    units = ((UNIT, (UNIT, UNIT)), (UNIT, UNIT), 1)

    assert listing(units, flat_options) == "10 DATA 1\n"
    assert listing(units, flat_options, tuple_length=True) == "10 DATA 3, 2, 2, 2, 1\n"


def test_value_of_only_units_produces_no_lines() -> None:
    program = to_program(UNIT)

    assert program.lines == []
    assert program.to_bytes() == bytes([0x01, 0x08, 0x00, 0x00])


def test_self_describing_values_use_their_hook() -> None:
    assert listing({"to_be_continued": Duration(603300, 0)}, map_length=False) == (
        "1000 DATA to_be_continued, 603300, 0\n"
    )


class Message:
    def __init__(self, text: str) -> None:
        self.text = text

    def __c64_serialize__(self, serializer: Any) -> None:
        serializer.serialize_newtype_variant("Message", 2, "Text", self.text)


class Point:
    def __c64_serialize__(self, serializer: Any) -> None:
        fields = serializer.serialize_tuple_variant("Geometry", 1, "Point", 2)
        fields.serialize_field("0", 10)
        fields.serialize_field("1", 20)
        fields.end()


def test_newtype_and_tuple_variants_from_hooks() -> None:
    assert listing(Message("hi")) == "1000 DATA 2, hi\n"
    assert listing(Point()) == "1000 DATA 1, 10, 20\n"
    assert listing(Point(), tuple_length=True) == "1000 DATA 1, 2, 10, 20\n"
    assert listing(Point(), emit_enum_names=True) == "1000 DATA Point, 10, 20\n"


class Meters:
    def __init__(self, value: int) -> None:
        self.value = value

    def __c64_serialize__(self, serializer: Any) -> None:
        serializer.serialize_newtype_struct("Meters", self.value)


def test_newtype_struct_emits_only_its_payload() -> None:
    assert listing(Meters(5)) == "1000 DATA 5\n"
    assert listing([Meters(5), Meters(12)]) == "1000 DATA 2, 5, 12\n"


class Exploding:
    def __c64_serialize__(self, serializer: Any) -> None:
        raise KeyError("missing field")


def test_adapter_errors_propagate_unchanged() -> None:
    with pytest.raises(KeyError, match="missing field"):
        to_program([1, Exploding()])


def test_unsupported_values_raise() -> None:
    with pytest.raises(UnsupportedValueError):
        to_program(object())


def test_containers_share_lines_without_flushing() -> None:
    assert listing([[1, 2], [3]]) == "1000 DATA 2, 2, 1, 2, 1, 3\n"


def test_greedy_packing_with_small_line_budget(flat_options: Options) -> None:
    program = to_program([1, 22, 333, 4444, 5, 6], flat_options.evolve(line_length=10))

    assert list(program.listing()) == [
        (10, "DATA 1, 22"),
        (20, "DATA 333"),
        (30, "DATA 4444, 5"),
        (40, "DATA 6"),
    ]
    for line in program.lines:
        assert line.size() <= 10
        assert line.tokens[0] == Keyword(BasicKeyword.DATA)


def test_item_exactly_filling_a_line_is_accepted(flat_options: Options) -> None:
    program = to_program("abcdefgh", flat_options.evolve(line_length=10))

    assert [line.size() for line in program.lines] == [10]


def test_item_larger_than_a_line_raises_capacity_error(flat_options: Options) -> None:
    with pytest.raises(CapacityError) as excinfo:
        to_program([1, "abcdefghi"], flat_options.evolve(line_length=10))

    assert excinfo.value.item == "abcdefghi"
    assert excinfo.value.size == 11
    assert excinfo.value.line_length == 10


def test_line_budget_holds_for_every_line() -> None:
    value = {
        "people": [Person("Josuke", "Higashikata", 1983), Person("Giorno", "Giovanna", 1985)],
        "route": [("Tokyo", (35.7642, 140.3849)), ("Hong Kong", (22.2948, 114.1661))],
        "escapes": ["", '"', '""', 'a"a', " padded "],
        "suits": list(CardSuit),
        "blob": bytes(range(40)),
    }
    options = Options(line_length=24, encoding_variant=PetsciiVariant.SHIFTED)

    program = to_program(value, options)

    assert len(program.lines) > 5
    assert all(line.size() <= 24 for line in program.lines)
    numbers = [line.number for line in program.lines]
    assert numbers == list(range(1000, 1000 + len(numbers)))


def test_line_number_overflow_is_reported(flat_options: Options) -> None:
    options = flat_options.evolve(line_number_start=65535, line_length=5)

    assert [line.number for line in to_program([1], options).lines] == [65535]
    with pytest.raises(LineNumberOverflowError) as excinfo:
        to_program([1, 2], options)
    assert excinfo.value.line_number == 65536


def test_encoder_state_machine_and_single_use(flat_options: Options) -> None:
    encoder = Encoder(flat_options)
    assert encoder.state is PackingState.IDLE

    encoder.encode([1, 2])
    assert encoder.state is PackingState.OPEN

    program = encoder.finish()
    assert encoder.state is PackingState.IDLE
    assert format_listing(program) == "10 DATA 1, 2\n"

    with pytest.raises(RuntimeError):
        encoder.encode(3)
    with pytest.raises(RuntimeError):
        encoder.finish()


def test_to_bytes_produces_prg_image() -> None:
    payload = to_bytes(7, Options(line_number_start=10))

    assert payload == bytes([0x01, 0x08, 0x09, 0x08, 0x0A, 0x00, 0x83, 0x20, 0x37, 0x00, 0x00, 0x00])


class RecordingWriter(io.BytesIO):
    def __init__(self) -> None:
        super().__init__()
        self.calls = 0

    def write(self, data: Any) -> int:
        self.calls += 1
        return super().write(data)


def test_to_writer_performs_one_bulk_write() -> None:
    writer = RecordingWriter()

    to_writer(writer, list(range(300)), Options(line_length=40))

    assert writer.calls == 1
    assert writer.getvalue() == to_bytes(list(range(300)), Options(line_length=40))


def test_to_file_writes_prg(tmp_path: Any) -> None:
    target = tmp_path / "out.prg"

    encoder_module.to_file(target, [1, 2, 3])

    assert target.read_bytes() == to_bytes([1, 2, 3])
