"""typeschema - OpenAPI schema synthesis from Python types."""

from __future__ import annotations

# Core
from typeschema.descriptor import FieldDescriptor, TypeDescriptor, TypeKind, describe
from typeschema.registry import ModelRegistry
from typeschema.schema.types import Schema, SchemaRef, SchemaType
from typeschema.schema.policy import schema_ref_or_value, should_reference

# Options
from typeschema.schema.options import (
    ModelOption,
    with_description,
    with_enum_constants,
    with_enum_values,
    with_example,
    with_nullable,
)

# Lookups
from typeschema.lookup import CommentLookup, DocstringCommentLookup, EnumConstantLookup, EnumMemberLookup

# Config
from typeschema.config import Config

# Errors
from typeschema.errors import (
    CommentLookupError,
    ConfigError,
    ConfigNotFoundError,
    EnumLookupError,
    ErrorCodes,
    InvalidInputError,
    InvalidMapKeyError,
    SchemaSynthesisError,
    TypeSchemaError,
    UnsupportedTypeError,
)

# Documents
from typeschema.document import PathParam, PrimitiveType, QueryParam, Route, build_document
from typeschema.export import dump_document, export_definitions

__version__ = "0.1.0"

__all__ = [
    # Core
    "FieldDescriptor",
    "TypeDescriptor",
    "TypeKind",
    "describe",
    "ModelRegistry",
    "Schema",
    "SchemaRef",
    "SchemaType",
    "schema_ref_or_value",
    "should_reference",
    # Options
    "ModelOption",
    "with_description",
    "with_enum_constants",
    "with_enum_values",
    "with_example",
    "with_nullable",
    # Lookups
    "CommentLookup",
    "DocstringCommentLookup",
    "EnumConstantLookup",
    "EnumMemberLookup",
    # Config
    "Config",
    # Errors
    "CommentLookupError",
    "ConfigError",
    "ConfigNotFoundError",
    "EnumLookupError",
    "ErrorCodes",
    "InvalidInputError",
    "InvalidMapKeyError",
    "SchemaSynthesisError",
    "TypeSchemaError",
    "UnsupportedTypeError",
    # Documents
    "PathParam",
    "PrimitiveType",
    "QueryParam",
    "Route",
    "build_document",
    "dump_document",
    "export_definitions",
]
