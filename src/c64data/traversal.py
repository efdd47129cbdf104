"""Generic traversal protocol through which values describe their shape.

A :class:`Serializer` receives one observation per value shape. Values reach
it through :func:`serialize`, which switches on the runtime type of the value
and, where the value alone is ambiguous (an ``Optional`` field holding a
present value), on the type hint supplied by the enclosing container.

Types that need a different description implement ``__c64_serialize__``::

    class Duration:
        def __c64_serialize__(self, serializer):
            fields = serializer.serialize_struct("Duration", 2)
            fields.serialize_field("secs", self.secs)
            fields.serialize_field("nanos", self.nanos)
            fields.end()
"""
from __future__ import annotations

import dataclasses
import types
from collections.abc import Iterable, Mapping, Sized
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    ClassVar,
    Optional,
    Protocol,
    Tuple,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    runtime_checkable,
)

from .errors import UnsupportedValueError


class CompoundSerializer(Protocol):
    """Receives the members of a sequence, map, tuple or struct."""

    def serialize_element(self, value: Any, hint: Any = None) -> None:
        ...

    def serialize_key(self, key: Any, hint: Any = None) -> None:
        ...

    def serialize_value(self, value: Any, hint: Any = None) -> None:
        ...

    def serialize_field(self, name: str, value: Any, hint: Any = None) -> None:
        ...

    def end(self) -> None:
        ...


class Serializer(Protocol):
    """One callback per value shape."""

    def serialize_bool(self, value: bool) -> None:
        ...

    def serialize_int(self, value: int) -> None:
        ...

    def serialize_float(self, value: float) -> None:
        ...

    def serialize_char(self, value: str) -> None:
        ...

    def serialize_str(self, value: str) -> None:
        ...

    def serialize_bytes(self, value: bytes) -> None:
        ...

    def serialize_none(self) -> None:
        ...

    def serialize_some(self, value: Any, hint: Any = None) -> None:
        ...

    def serialize_unit(self) -> None:
        ...

    def serialize_unit_struct(self, name: str) -> None:
        ...

    def serialize_unit_variant(self, name: str, index: int, variant: str) -> None:
        ...

    def serialize_newtype_struct(self, name: str, value: Any, hint: Any = None) -> None:
        ...

    def serialize_newtype_variant(
        self, name: str, index: int, variant: str, value: Any, hint: Any = None
    ) -> None:
        ...

    def serialize_seq(self, length: Optional[int]) -> CompoundSerializer:
        ...

    def serialize_map(self, length: Optional[int]) -> CompoundSerializer:
        ...

    def serialize_tuple(self, length: int) -> CompoundSerializer:
        ...

    def serialize_tuple_struct(self, name: str, length: int) -> CompoundSerializer:
        ...

    def serialize_tuple_variant(
        self, name: str, index: int, variant: str, length: int
    ) -> CompoundSerializer:
        ...

    def serialize_struct(self, name: str, length: int) -> CompoundSerializer:
        ...

    def serialize_struct_variant(
        self, name: str, index: int, variant: str, length: int
    ) -> CompoundSerializer:
        ...


@runtime_checkable
class SupportsC64Serialize(Protocol):
    """Values that describe themselves to a :class:`Serializer`."""

    def __c64_serialize__(self, serializer: Serializer) -> None:
        ...


class Char(str):
    """A single character, reported through ``serialize_char``."""

    def __new__(cls, value: str) -> "Char":
        if len(value) != 1:
            raise ValueError(f"Char requires exactly one character, received {value!r}")
        return super().__new__(cls, value)


class _Unit:
    _instance: ClassVar[Optional["_Unit"]] = None

    def __new__(cls) -> "_Unit":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNIT"


UNIT = _Unit()


@dataclass(frozen=True)
class Some:
    """A present optional value outside an ``Optional`` annotation."""

    value: Any


class TaggedUnion:
    """Base for sum types whose direct subclasses are the variants.

    Variants are numbered in definition order. A dataclass variant with fields
    is reported as a struct variant, anything else as a unit variant::

        class Shape(TaggedUnion):
            pass

        @dataclass
        class Circle(Shape):
            radius: float

        class Empty(Shape):
            pass
    """

    __c64_variants__: ClassVar[Tuple[type, ...]] = ()

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if TaggedUnion in cls.__bases__:
            cls.__c64_variants__ = ()
            return
        root = union_root(cls)
        if root not in cls.__bases__:
            return
        registered = root.__c64_variants__
        # dataclass(slots=True) recreates the class; keep its original slot.
        for position, existing in enumerate(registered):
            if (existing.__module__, existing.__qualname__) == (
                cls.__module__,
                cls.__qualname__,
            ):
                root.__c64_variants__ = (
                    registered[:position] + (cls,) + registered[position + 1 :]
                )
                return
        root.__c64_variants__ = registered + (cls,)


def union_root(cls: type) -> type:
    """Return the class that declares the union ``cls`` belongs to."""

    for klass in cls.__mro__:
        if TaggedUnion in klass.__bases__:
            return klass
    raise TypeError(f"{cls.__name__} is not part of a TaggedUnion")


def variant_of(cls: type) -> tuple[type, int]:
    """Return the variant class and its ordinal for a union member class."""

    variants = union_root(cls).__c64_variants__
    for klass in cls.__mro__:
        if klass in variants:
            return klass, variants.index(klass)
    raise TypeError(f"{cls.__name__} is the union itself, not one of its variants")


def enum_ordinal(member: Enum) -> int:
    """Return the zero-based position of ``member`` within its enumeration."""

    return list(type(member)).index(member)


def serialize(value: Any, serializer: Serializer, hint: Any = None) -> None:
    """Describe ``value`` to ``serializer`` by its runtime shape."""

    optional, inner_hint = _optional_hint(hint)
    if optional:
        if value is None:
            serializer.serialize_none()
        else:
            if isinstance(value, Some):
                value = value.value
            serializer.serialize_some(value, inner_hint)
        return

    if isinstance(value, SupportsC64Serialize):
        value.__c64_serialize__(serializer)
        return

    if value is None:
        serializer.serialize_none()
    elif isinstance(value, Some):
        serializer.serialize_some(value.value)
    elif value is UNIT:
        serializer.serialize_unit()
    elif isinstance(value, bool):
        serializer.serialize_bool(value)
    elif isinstance(value, Enum):
        serializer.serialize_unit_variant(
            type(value).__name__, enum_ordinal(value), value.name
        )
    elif isinstance(value, int):
        serializer.serialize_int(value)
    elif isinstance(value, float):
        serializer.serialize_float(value)
    elif isinstance(value, Char) or (
        hint is Char and isinstance(value, str) and len(value) == 1
    ):
        serializer.serialize_char(str(value))
    elif isinstance(value, str):
        serializer.serialize_str(value)
    elif isinstance(value, (bytes, bytearray, memoryview)):
        serializer.serialize_bytes(bytes(value))
    elif isinstance(value, TaggedUnion):
        _serialize_variant(value, serializer)
    elif dataclasses.is_dataclass(value) and not isinstance(value, type):
        _serialize_struct(value, serializer)
    elif isinstance(value, tuple) and hasattr(type(value), "_fields"):
        _serialize_named_tuple(value, serializer)
    elif isinstance(value, tuple):
        _serialize_tuple(value, serializer, hint)
    elif isinstance(value, Mapping):
        _serialize_map(value, serializer, hint)
    elif isinstance(value, Iterable):
        _serialize_seq(value, serializer, hint)
    else:
        raise UnsupportedValueError(
            f"cannot describe {type(value).__name__} values; "
            "implement __c64_serialize__"
        )


def _optional_hint(hint: Any) -> tuple[bool, Any]:
    if get_origin(hint) not in (Union, types.UnionType):
        return False, None
    args = get_args(hint)
    if type(None) not in args:
        return False, None
    remaining = [arg for arg in args if arg is not type(None)]
    if len(remaining) == 1:
        return True, remaining[0]
    return True, Union[tuple(remaining)]


def _hint_args(hint: Any) -> tuple[Any, ...]:
    return get_args(hint) if hint is not None else ()


def _serialize_struct(value: Any, serializer: Serializer) -> None:
    cls = type(value)
    members = dataclasses.fields(value)
    if not members:
        serializer.serialize_unit_struct(cls.__name__)
        return
    hints = get_type_hints(cls)
    struct = serializer.serialize_struct(cls.__name__, len(members))
    for member in members:
        struct.serialize_field(
            member.name, getattr(value, member.name), hints.get(member.name)
        )
    struct.end()


def _serialize_variant(value: TaggedUnion, serializer: Serializer) -> None:
    variant_cls, index = variant_of(type(value))
    union_name = union_root(type(value)).__name__
    members = dataclasses.fields(value) if dataclasses.is_dataclass(value) else ()
    if not members:
        serializer.serialize_unit_variant(union_name, index, variant_cls.__name__)
        return
    hints = get_type_hints(type(value))
    struct = serializer.serialize_struct_variant(
        union_name, index, variant_cls.__name__, len(members)
    )
    for member in members:
        struct.serialize_field(
            member.name, getattr(value, member.name), hints.get(member.name)
        )
    struct.end()


def _serialize_named_tuple(value: tuple, serializer: Serializer) -> None:
    cls = type(value)
    hints = get_type_hints(cls)
    fields = serializer.serialize_tuple_struct(cls.__name__, len(value))
    for name, item in zip(cls._fields, value):
        fields.serialize_field(name, item, hints.get(name))
    fields.end()


def _serialize_tuple(value: tuple, serializer: Serializer, hint: Any) -> None:
    args = _hint_args(hint)
    if len(args) == 2 and args[1] is Ellipsis:
        item_hints: list[Any] = [args[0]] * len(value)
    elif len(args) == len(value):
        item_hints = list(args)
    else:
        item_hints = [None] * len(value)
    elements = serializer.serialize_tuple(len(value))
    for item, item_hint in zip(value, item_hints):
        elements.serialize_element(item, item_hint)
    elements.end()


def _serialize_map(value: Mapping, serializer: Serializer, hint: Any) -> None:
    args = _hint_args(hint)
    key_hint, value_hint = args if len(args) == 2 else (None, None)
    entries = serializer.serialize_map(len(value))
    for key, item in value.items():
        entries.serialize_key(key, key_hint)
        entries.serialize_value(item, value_hint)
    entries.end()


def _serialize_seq(value: Iterable, serializer: Serializer, hint: Any) -> None:
    args = _hint_args(hint)
    item_hint = args[0] if len(args) == 1 else None
    length = len(value) if isinstance(value, Sized) else None
    elements = serializer.serialize_seq(length)
    for item in value:
        elements.serialize_element(item, item_hint)
    elements.end()


__all__ = [
    "Char",
    "CompoundSerializer",
    "Serializer",
    "Some",
    "SupportsC64Serialize",
    "TaggedUnion",
    "UNIT",
    "enum_ordinal",
    "serialize",
    "union_root",
    "variant_of",
]
