"""Encoder options and their TOML configuration loader."""
from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping

import tomllib

from .errors import OptionsError
from .petscii import PetsciiVariant, UnmappablePolicy
from .program import MAX_LINE_LENGTH, MAX_LINE_NUMBER


_FLAG_FIELDS = (
    "byte_slice_length",
    "sequence_length",
    "map_length",
    "tuple_length",
    "emit_enum_names",
)


@dataclass(frozen=True)
class Options:
    """Per-call configuration consumed by :class:`c64data.encoder.Encoder`."""

    line_length: int = MAX_LINE_LENGTH
    line_number_start: int = 1000
    line_number_increment: int = 1
    encoding_variant: PetsciiVariant = PetsciiVariant.UNSHIFTED
    # Leading count/arity items per container kind.
    byte_slice_length: bool = True
    sequence_length: bool = True
    map_length: bool = True
    tuple_length: bool = False
    emit_enum_names: bool = False
    unmappable: UnmappablePolicy = UnmappablePolicy.REPLACE

    def __post_init__(self) -> None:
        for name in ("line_length", "line_number_start", "line_number_increment"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise OptionsError(f"{name} must be an integer, received {value!r}")
        if self.line_length < 1:
            raise OptionsError("line_length must be at least 1")
        if not 0 <= self.line_number_start <= MAX_LINE_NUMBER:
            raise OptionsError(
                f"line_number_start {self.line_number_start} outside 0-{MAX_LINE_NUMBER}"
            )
        if not 1 <= self.line_number_increment <= MAX_LINE_NUMBER:
            raise OptionsError(
                f"line_number_increment {self.line_number_increment} outside 1-{MAX_LINE_NUMBER}"
            )
        for name in _FLAG_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise OptionsError(f"{name} must be a boolean, received {value!r}")
        if not isinstance(self.encoding_variant, PetsciiVariant):
            raise OptionsError("encoding_variant must be a PetsciiVariant")
        if not isinstance(self.unmappable, UnmappablePolicy):
            raise OptionsError("unmappable must be an UnmappablePolicy")

    def evolve(self, **changes: Any) -> "Options":
        """Return a copy with ``changes`` applied and validated."""

        return replace(self, **changes)


_SCALAR_KEYS: Dict[str, type] = {
    "line_length": int,
    "line_number_start": int,
    "line_number_increment": int,
    "emit_enum_names": bool,
}

_PREFIX_KEYS = ("byte_slice_length", "sequence_length", "map_length", "tuple_length")

_VARIANT_NAMES: Dict[str, PetsciiVariant] = {
    variant.value: variant for variant in PetsciiVariant
}
_POLICY_NAMES: Dict[str, UnmappablePolicy] = {
    policy.value: policy for policy in UnmappablePolicy
}


def load_options(config_path: Path, *, base: Options | None = None) -> Options:
    """Parse the ``[encoder]`` table of the TOML file at ``config_path``."""

    with config_path.open("rb") as stream:
        try:
            data = tomllib.load(stream)
        except tomllib.TOMLDecodeError as exc:
            raise OptionsError(f"{config_path}: {exc}") from exc

    section = data.get("encoder")
    if section is None:
        raise OptionsError("encoder configuration requires an [encoder] table")
    return options_from_mapping(section, base=base)


def options_from_mapping(
    data: Mapping[str, Any], *, base: Options | None = None
) -> Options:
    """Build :class:`Options` from a configuration mapping."""

    if not isinstance(data, Mapping):
        raise OptionsError("[encoder] section must be a mapping")

    changes: Dict[str, Any] = {}
    for key, value in data.items():
        if key in _SCALAR_KEYS:
            changes[key] = _coerce(key, value, _SCALAR_KEYS[key])
        elif key == "encoding":
            changes["encoding_variant"] = _lookup(key, value, _VARIANT_NAMES)
        elif key == "unmappable":
            changes["unmappable"] = _lookup(key, value, _POLICY_NAMES)
        elif key == "prefixes":
            changes.update(_parse_prefixes(value))
        else:
            raise OptionsError(f"unknown encoder option {key!r}")

    return replace(base or Options(), **changes)


def _parse_prefixes(section: Any) -> Dict[str, bool]:
    if not isinstance(section, Mapping):
        raise OptionsError("[encoder.prefixes] must be a mapping")
    parsed: Dict[str, bool] = {}
    for key, value in section.items():
        if key not in _PREFIX_KEYS:
            raise OptionsError(f"unknown prefix option {key!r}")
        parsed[key] = _coerce(f"prefixes.{key}", value, bool)
    return parsed


def _coerce(key: str, value: Any, expected: type) -> Any:
    # bool is an int subclass; keep the two apart.
    if expected is int and isinstance(value, bool):
        raise OptionsError(f"{key} must be an integer")
    if not isinstance(value, expected):
        raise OptionsError(
            f"{key} must be {'a boolean' if expected is bool else 'an integer'}, "
            f"received {value!r}"
        )
    return value


def _lookup(key: str, value: Any, choices: Mapping[str, Any]) -> Any:
    if not isinstance(value, str) or value.strip().lower() not in choices:
        allowed = ", ".join(sorted(choices))
        raise OptionsError(f"{key} must be one of {allowed}, received {value!r}")
    return choices[value.strip().lower()]


__all__ = [
    "Options",
    "load_options",
    "options_from_mapping",
]
