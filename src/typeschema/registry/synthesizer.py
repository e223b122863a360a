"""Kind-by-kind construction of schema nodes.

The synthesizer never decides persistence; nested types are resolved through
the registry so that memoization and cycle detection apply at every level.
Optional types never reach it: the registry resolves them to their target.
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING

from typeschema.descriptor import FieldDescriptor, TypeDescriptor, TypeKind
from typeschema.errors import (
    InvalidInputError,
    InvalidMapKeyError,
    SchemaSynthesisError,
    TypeSchemaError,
    UnsupportedTypeError,
)
from typeschema.registry.naming import use_site_name
from typeschema.schema.constraints import apply_constraints, extract_constraints
from typeschema.schema.options import ModelOption, with_nullable
from typeschema.schema.policy import is_reserved_name, schema_ref_or_value, should_reference
from typeschema.schema.types import Schema, SchemaRef

if TYPE_CHECKING:
    from typeschema.registry.registry import ModelRegistry

logger = logging.getLogger(__name__)

__all__ = ["SchemaSynthesizer", "TAG_NAME", "TAG_VALIDATE", "TAG_TYPE_OVERRIDE"]

TAG_NAME = "json"
TAG_VALIDATE = "validate"
TAG_TYPE_OVERRIDE = "swaggertype"

_OMIT_EMPTY = "omitempty"

_SCALAR_FACTORIES = {
    TypeKind.STRING: Schema.string,
    TypeKind.INT: Schema.integer,
    TypeKind.FLOAT: Schema.number,
    TypeKind.BOOL: Schema.boolean,
}

_TYPE_OVERRIDES = {
    "string": TypeKind.STRING,
    "integer": TypeKind.INT,
    "number": TypeKind.FLOAT,
    "boolean": TypeKind.BOOL,
}


class SchemaSynthesizer:
    """Builds the schema of one type descriptor."""

    def __init__(self, registry: ModelRegistry) -> None:
        self._registry = registry

    def synthesize(self, descriptor: TypeDescriptor, name: str, visiting: set[str]) -> Schema:
        """Build the schema of *descriptor*, registered under the canonical *name*."""
        kind = descriptor.kind
        if kind in _SCALAR_FACTORIES:
            return _SCALAR_FACTORIES[kind]()
        if kind == TypeKind.ARRAY:
            return self._array(descriptor, visiting)
        if kind == TypeKind.MAP:
            return self._map(descriptor, visiting)
        if kind == TypeKind.RECORD:
            return self._record(descriptor, name, visiting)
        if kind == TypeKind.OPTIONAL:
            raise InvalidInputError(message=f"Optional type '{descriptor}' must be resolved through the registry")
        raise UnsupportedTypeError(type_name=descriptor.type_name)

    def _array(self, descriptor: TypeDescriptor, visiting: set[str]) -> Schema:
        if descriptor.elem is None:
            raise InvalidInputError(message=f"Array type '{descriptor}' has no element type")
        try:
            elem_name, elem_schema = self._registry.resolve(descriptor.elem, [], visiting)
        except TypeSchemaError as e:
            raise SchemaSynthesisError(
                type_name=descriptor.type_name,
                context=f"array element '{descriptor.elem}'",
                cause=e,
            ) from e
        schema = Schema.array()
        schema.nullable = True
        schema.items = schema_ref_or_value(elem_name, elem_schema)
        return schema

    def _map(self, descriptor: TypeDescriptor, visiting: set[str]) -> Schema:
        if descriptor.key is None or descriptor.elem is None:
            raise InvalidInputError(message=f"Map type '{descriptor}' needs both a key and a value type")
        if descriptor.key.kind != TypeKind.STRING:
            raise InvalidMapKeyError(type_name=descriptor.type_name, key_type=descriptor.key.type_name)
        try:
            value_name, value_schema = self._registry.resolve(descriptor.elem, [], visiting)
        except TypeSchemaError as e:
            raise SchemaSynthesisError(
                type_name=descriptor.type_name,
                context=f"map value '{descriptor.elem}'",
                cause=e,
            ) from e
        schema = Schema.object()
        schema.nullable = True
        schema.additional_properties = schema_ref_or_value(value_name, value_schema)
        return schema

    def _record(self, descriptor: TypeDescriptor, name: str, visiting: set[str]) -> Schema:
        namespace, type_name = descriptor.namespace, descriptor.name
        schema = Schema.object()
        schema.description, schema.deprecated = self._registry.comment_for(namespace, f"{namespace}.{type_name}")
        properties: dict[str, SchemaRef] = {}

        for f in descriptor.fields:
            if not f.exported:
                continue
            field_type = self._effective_type(f)
            json_name = f.tag(TAG_NAME).split(",")[0] or f.name

            options: list[ModelOption] = []
            if _OMIT_EMPTY in f.tag(TAG_VALIDATE).split(","):
                options.append(with_nullable())

            target = field_type
            if field_type.kind == TypeKind.OPTIONAL and field_type.elem is not None:
                target = field_type.elem
            already_exists = self._registry.has_definition(self._registry.model_name(target))
            try:
                field_name, field_schema = self._registry.resolve(field_type, options, visiting)
            except TypeSchemaError as e:
                raise SchemaSynthesisError(
                    type_name=descriptor.type_name,
                    context=f"field '{json_name}' of type '{field_type}'",
                    cause=e,
                ) from e

            # Field constraints belong to this use site only, never to a shared definition.
            constraints = extract_constraints(f.tags, field_type)
            if constraints:
                if self._registry.get_definition(field_name) is field_schema:
                    field_schema = copy.deepcopy(field_schema)
                apply_constraints(field_schema, constraints)

            if f.embedded:
                if not already_exists:
                    self._registry.unregister(field_name)
                logger.debug("Splicing embedded '%s' into '%s'", field_name, descriptor.type_name)
                properties.update(field_schema.properties or {})
                schema.required.extend(field_schema.required)
                continue

            comment_key = f"{namespace}.{type_name}.{f.name}"
            if constraints and not is_reserved_name(field_name) and should_reference(field_schema):
                # A constrained named type stays referenced, through its own field-specific definition.
                field_name = use_site_name(name, json_name)
                self._attach_comment(field_schema, namespace, comment_key)
                self._registry.store_use_site(field_name, field_schema)
                ref = SchemaRef(ref=field_name)
            elif constraints:
                ref = SchemaRef(value=field_schema)
            else:
                ref = schema_ref_or_value(field_name, field_schema)
            if ref.value is not None:
                self._attach_comment(ref.value, namespace, comment_key)
            properties[json_name] = ref

        schema.properties = properties
        return schema

    def _attach_comment(self, schema: Schema, namespace: str, key: str) -> None:
        comment, deprecated = self._registry.comment_for(namespace, key)
        if comment:
            schema.description = comment
            schema.deprecated = deprecated

    def _effective_type(self, f: FieldDescriptor) -> TypeDescriptor:
        override = _TYPE_OVERRIDES.get(f.tag(TAG_TYPE_OVERRIDE))
        if override is not None:
            return TypeDescriptor.scalar(override)
        return f.descriptor
