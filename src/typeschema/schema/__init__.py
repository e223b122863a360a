"""Schema nodes, referencing policy, field constraints and customization options.

Example usage::

    from typeschema.schema import Schema, SchemaRef, with_nullable
    from typeschema.schema import schema_ref_or_value
"""

from __future__ import annotations

from typeschema.schema.constraints import apply_constraints, extract_constraints, set_pattern
from typeschema.schema.options import (
    ModelOption,
    with_description,
    with_enum_constants,
    with_enum_values,
    with_example,
    with_nullable,
)
from typeschema.schema.policy import (
    RESERVED_PRIMITIVE_NAMES,
    is_reserved_name,
    schema_ref_or_value,
    should_reference,
)
from typeschema.schema.types import DEFAULT_REF_PREFIX, Schema, SchemaRef, SchemaType

__all__ = [
    "DEFAULT_REF_PREFIX",
    "RESERVED_PRIMITIVE_NAMES",
    "ModelOption",
    "Schema",
    "SchemaRef",
    "SchemaType",
    "apply_constraints",
    "extract_constraints",
    "is_reserved_name",
    "schema_ref_or_value",
    "set_pattern",
    "should_reference",
    "with_description",
    "with_enum_constants",
    "with_enum_values",
    "with_example",
    "with_nullable",
]
