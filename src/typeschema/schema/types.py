"""Schema node and schema reference data structures."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from typeschema.errors import InvalidInputError

__all__ = [
    "SchemaType",
    "Schema",
    "SchemaRef",
    "DEFAULT_REF_PREFIX",
]

DEFAULT_REF_PREFIX = "#/components/schemas/"


class SchemaType(str, Enum):
    """Kind tag of a synthesized schema."""

    OBJECT = "object"
    ARRAY = "array"
    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass
class Schema:
    """In-memory schema node for one type.

    Mutable until the registry hands it out; customization stages edit it in
    place. ``extensions`` holds any keyword without a dedicated attribute
    (``x-*`` vendor keys, ``title``, ...) and is merged last when rendering.
    """

    type: SchemaType | None = None
    format: str | None = None
    description: str = ""
    deprecated: bool = False
    nullable: bool = False
    example: Any = None
    enum: list[Any] | None = None
    minimum: int | float | None = None
    maximum: int | float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    properties: dict[str, SchemaRef] | None = None
    required: list[str] = field(default_factory=list)
    items: SchemaRef | None = None
    additional_properties: SchemaRef | None = None
    extensions: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def string(cls) -> Schema:
        return cls(type=SchemaType.STRING)

    @classmethod
    def integer(cls) -> Schema:
        return cls(type=SchemaType.INTEGER)

    @classmethod
    def number(cls) -> Schema:
        return cls(type=SchemaType.NUMBER)

    @classmethod
    def boolean(cls) -> Schema:
        return cls(type=SchemaType.BOOLEAN)

    @classmethod
    def object(cls) -> Schema:
        return cls(type=SchemaType.OBJECT, properties={})

    @classmethod
    def array(cls) -> Schema:
        return cls(type=SchemaType.ARRAY)

    def is_type(self, schema_type: SchemaType) -> bool:
        return self.type == schema_type

    def to_dict(self, ref_prefix: str = DEFAULT_REF_PREFIX) -> dict[str, Any]:
        """Render as an OpenAPI 3.0 style mapping, omitting unset keywords."""
        result: dict[str, Any] = {}
        if self.type is not None:
            result["type"] = self.type.value
        if self.format:
            result["format"] = self.format
        if self.description:
            result["description"] = self.description
        if self.deprecated:
            result["deprecated"] = True
        if self.nullable:
            result["nullable"] = True
        if self.example is not None:
            result["example"] = self.example
        if self.enum:
            result["enum"] = list(self.enum)
        if self.minimum is not None:
            result["minimum"] = self.minimum
        if self.maximum is not None:
            result["maximum"] = self.maximum
        if self.min_length is not None:
            result["minLength"] = self.min_length
        if self.max_length is not None:
            result["maxLength"] = self.max_length
        if self.pattern:
            result["pattern"] = self.pattern
        if self.properties:
            result["properties"] = {
                name: self.properties[name].to_dict(ref_prefix) for name in sorted(self.properties)
            }
        if self.required:
            result["required"] = list(self.required)
        if self.items is not None:
            result["items"] = self.items.to_dict(ref_prefix)
        if self.additional_properties is not None:
            result["additionalProperties"] = self.additional_properties.to_dict(ref_prefix)
        result.update(self.extensions)
        return result


@dataclass
class SchemaRef:
    """Either an inline schema or the name of a shared definition, never both."""

    ref: str | None = None
    value: Schema | None = None

    def __post_init__(self) -> None:
        if (self.ref is None) == (self.value is None):
            raise InvalidInputError(message="SchemaRef requires exactly one of 'ref' or 'value'")

    @property
    def is_reference(self) -> bool:
        return self.ref is not None

    def to_dict(self, ref_prefix: str = DEFAULT_REF_PREFIX) -> dict[str, Any]:
        if self.ref is not None:
            return {"$ref": f"{ref_prefix}{self.ref}"}
        assert self.value is not None
        return self.value.to_dict(ref_prefix)
