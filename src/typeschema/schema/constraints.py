"""Constraint extraction from field tags.

Field tags are plain string key/value annotations (``minimum``, ``maximum``,
``minLength``, ``maxLength``, ``enums``, ``set``). Each scalar kind has one pure
extractor turning the raw tags into schema attribute values. Values that do
not parse are logged and skipped; they never abort synthesis.
"""

from __future__ import annotations

import logging
import struct
from typing import Any, Callable, Mapping

from typeschema.descriptor import TypeDescriptor, TypeKind
from typeschema.schema.types import Schema

__all__ = [
    "TAG_MINIMUM",
    "TAG_MAXIMUM",
    "TAG_MIN_LENGTH",
    "TAG_MAX_LENGTH",
    "TAG_ENUMS",
    "TAG_SET",
    "extract_constraints",
    "apply_constraints",
    "set_pattern",
]

logger = logging.getLogger(__name__)

TAG_MINIMUM = "minimum"
TAG_MAXIMUM = "maximum"
TAG_MIN_LENGTH = "minLength"
TAG_MAX_LENGTH = "maxLength"
TAG_ENUMS = "enums"
TAG_SET = "set"

Extractor = Callable[[Mapping[str, Any], TypeDescriptor], dict[str, Any]]


def _tag(tags: Mapping[str, Any], key: str) -> str:
    value = tags.get(key)
    if value is None:
        return ""
    return str(value)


def _parse_int(raw: str) -> int:
    return int(raw, 0)


def _parse_float(raw: str, bits: int) -> float:
    value = float(raw)
    if bits == 32:
        value = struct.unpack("f", struct.pack("f", value))[0]
    return value


def set_pattern(tokens: str) -> str:
    """Compile a comma separated vocabulary into a pattern for comma separated subsets.

    ``"foo,bar"`` accepts ``"foo"``, ``"bar,foo"`` and ``"foo, bar"``.
    """
    alternatives = "|".join(tokens.split(","))
    return f"^({alternatives})(, {{0,1}}({alternatives}))*$"


def _numeric_constraints(tags: Mapping[str, Any], descriptor: TypeDescriptor) -> dict[str, Any]:
    if descriptor.kind == TypeKind.INT:
        parse: Callable[[str], int | float] = _parse_int
    else:
        bits = descriptor.bits or 64
        parse = lambda raw: _parse_float(raw, bits)  # noqa: E731

    result: dict[str, Any] = {}
    for tag in (TAG_MINIMUM, TAG_MAXIMUM):
        raw = _tag(tags, tag)
        if not raw:
            continue
        try:
            result[tag] = parse(raw)
        except ValueError as e:
            logger.warning("Could not convert %s value %r of '%s': %s", tag, raw, descriptor, e)

    raw_enum = _tag(tags, TAG_ENUMS)
    if raw_enum:
        try:
            result["enum"] = [parse(v) for v in raw_enum.split(",")]
        except ValueError as e:
            logger.warning("Could not convert enum values %r of '%s': %s", raw_enum, descriptor, e)
    return result


def _string_constraints(tags: Mapping[str, Any], descriptor: TypeDescriptor) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for tag, attr in ((TAG_MIN_LENGTH, "min_length"), (TAG_MAX_LENGTH, "max_length")):
        raw = _tag(tags, tag)
        if not raw:
            continue
        try:
            result[attr] = int(raw)
        except ValueError as e:
            logger.warning("Could not convert %s value %r of '%s': %s", tag, raw, descriptor, e)

    raw_enum = _tag(tags, TAG_ENUMS)
    if raw_enum:
        result["enum"] = raw_enum.split(",")

    raw_set = _tag(tags, TAG_SET)
    if raw_set:
        result["pattern"] = set_pattern(raw_set)
    return result


_EXTRACTORS: dict[TypeKind, Extractor] = {
    TypeKind.INT: _numeric_constraints,
    TypeKind.FLOAT: _numeric_constraints,
    TypeKind.STRING: _string_constraints,
}


def extract_constraints(tags: Mapping[str, Any], descriptor: TypeDescriptor) -> dict[str, Any]:
    """Return schema attribute values derived from *tags* for a field of type *descriptor*.

    Optional fields take the constraints of their target kind.
    """
    if descriptor.kind == TypeKind.OPTIONAL and descriptor.elem is not None:
        return extract_constraints(tags, descriptor.elem)
    extractor = _EXTRACTORS.get(descriptor.kind)
    if extractor is None:
        return {}
    return extractor(tags, descriptor)


def apply_constraints(schema: Schema, constraints: Mapping[str, Any]) -> None:
    for attr, value in constraints.items():
        setattr(schema, attr, value)
