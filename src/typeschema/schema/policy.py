"""Referencing policy: inline a schema at each use, or refer to a shared definition."""

from __future__ import annotations

from typeschema.schema.types import Schema, SchemaRef, SchemaType

__all__ = ["RESERVED_PRIMITIVE_NAMES", "is_reserved_name", "should_reference", "schema_ref_or_value"]

# Canonical names of builtin scalars. Structurally equal wherever they occur,
# so they are never memoized or promoted to definitions.
RESERVED_PRIMITIVE_NAMES = frozenset({"bool", "int", "float", "str"})


def is_reserved_name(name: str) -> bool:
    return name in RESERVED_PRIMITIVE_NAMES


def should_reference(schema: Schema) -> bool:
    """Records and enumerations are shared; arrays, maps and scalars are inlined."""
    if schema.is_type(SchemaType.OBJECT) and schema.additional_properties is None:
        return True
    return bool(schema.enum)


def schema_ref_or_value(name: str, schema: Schema) -> SchemaRef:
    """Build the slot for a use site of *schema* registered under *name*."""
    if not is_reserved_name(name) and should_reference(schema):
        return SchemaRef(ref=name)
    return SchemaRef(value=schema)
