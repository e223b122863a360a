"""Per-call customization options for ``ModelRegistry.register``.

Each option is a callable that mutates the schema being registered; options
run after the global customizers and the type's own ``apply_custom_schema``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from typeschema.lookup import EnumConstantLookup, EnumMemberLookup
from typeschema.schema.types import Schema, SchemaType

__all__ = [
    "ModelOption",
    "with_nullable",
    "with_description",
    "with_example",
    "with_enum_values",
    "with_enum_constants",
]

ModelOption = Callable[[Schema], None]


def _enum_schema_type(values: list[Any]) -> SchemaType:
    if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
        return SchemaType.INTEGER
    return SchemaType.STRING


def with_nullable() -> ModelOption:
    """Mark the schema as nullable."""

    def apply(schema: Schema) -> None:
        schema.nullable = True

    return apply


def with_description(description: str) -> ModelOption:
    """Set the schema description."""

    def apply(schema: Schema) -> None:
        schema.description = description

    return apply


def with_example(example: Any) -> ModelOption:
    """Set the schema example."""

    def apply(schema: Schema) -> None:
        schema.example = example

    return apply


def with_enum_values(*values: Any) -> ModelOption:
    """Make the schema an enumeration of *values*.

    Enum members are replaced by their values. The schema type becomes
    ``integer`` when every value is an integer, ``string`` otherwise.
    """
    plain = [v.value if isinstance(v, Enum) else v for v in values]

    def apply(schema: Schema) -> None:
        if not plain:
            return
        schema.type = _enum_schema_type(plain)
        schema.enum = (schema.enum or []) + plain

    return apply


def with_enum_constants(py_type: Any, lookup: EnumConstantLookup | None = None) -> ModelOption:
    """Make the schema an enumeration of the constants discovered for *py_type*.

    Raises:
        EnumLookupError: When applied, if the lookup cannot resolve *py_type*.
    """
    resolver = lookup if lookup is not None else EnumMemberLookup()

    def apply(schema: Schema) -> None:
        values = list(resolver.get(py_type))
        schema.type = _enum_schema_type(values)
        schema.enum = values

    return apply
