"""Assembly of a complete interface document from already-declared routes.

Routing itself lives elsewhere; callers hand in :class:`Route` values and get
back an OpenAPI 3.0 style mapping whose request and response bodies point into
the registry's shared definitions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable

from typeschema.config import Config
from typeschema.errors import InvalidInputError
from typeschema.registry.registry import ModelRegistry
from typeschema.schema.policy import schema_ref_or_value
from typeschema.schema.types import Schema, SchemaType

logger = logging.getLogger(__name__)

__all__ = [
    "PrimitiveType",
    "QueryParam",
    "PathParam",
    "Route",
    "primitive_schema",
    "build_document",
]

JSON_MEDIA_TYPE = "application/json"


class PrimitiveType(str, Enum):
    """Scalar type of a path or query parameter."""

    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    NUMBER = "number"


@dataclass
class QueryParam:
    """A query string parameter of a route."""

    description: str = ""
    required: bool = False
    allow_empty: bool = False
    regexp: str = ""
    type: PrimitiveType = PrimitiveType.STRING
    apply_custom_schema: Callable[[dict[str, Any]], None] | None = None


@dataclass
class PathParam:
    """A path segment parameter of a route. Path parameters are always required."""

    description: str = ""
    regexp: str = ""
    type: PrimitiveType = PrimitiveType.STRING
    apply_custom_schema: Callable[[dict[str, Any]], None] | None = None


@dataclass
class Route:
    """One operation: an HTTP method on a path pattern, with its models."""

    method: str
    pattern: str
    query_params: dict[str, QueryParam] = field(default_factory=dict)
    path_params: dict[str, PathParam] = field(default_factory=dict)
    request_model: Any = None
    responses: dict[int, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    operation_id: str = ""
    description: str = ""


def primitive_schema(param_type: PrimitiveType | str) -> Schema:
    """Schema for a parameter of *param_type*; an empty type means string."""
    if not param_type:
        return Schema.string()
    try:
        primitive = PrimitiveType(param_type)
    except ValueError as e:
        raise InvalidInputError(message=f"Unsupported parameter type: {param_type}") from e
    return Schema(type=SchemaType(primitive.value))


def build_document(
    routes: Iterable[Route],
    registry: ModelRegistry | None = None,
    config: Config | None = None,
    title: str | None = None,
) -> dict[str, Any]:
    """Build the document for *routes*.

    Models are registered in *registry* (a fresh one when omitted); every
    definition it holds afterwards is published under ``components.schemas``.
    """
    config = config if config is not None else Config()
    if registry is None:
        registry = ModelRegistry(config=config)

    paths: dict[str, dict[str, Any]] = {}
    for route in routes:
        path_item = paths.setdefault(route.pattern, {})
        path_item[route.method.lower()] = _build_operation(route, registry)

    schemas = {name: registry.definitions[name].to_dict(registry.ref_prefix) for name in sorted(registry.definitions)}
    logger.debug("Built document with %d paths and %d schemas", len(paths), len(schemas))
    return {
        "openapi": config.get("document.openapi", "3.0.0"),
        "info": {
            "title": title if title is not None else config.get("document.title", "API"),
            "version": config.get("document.version", "0.0.0"),
        },
        "paths": paths,
        "components": {"schemas": schemas},
    }


def _build_operation(route: Route, registry: ModelRegistry) -> dict[str, Any]:
    operation: dict[str, Any] = {}

    parameters: list[dict[str, Any]] = []
    for name in sorted(route.query_params):
        param = route.query_params[name]
        parameter = _parameter(name, "query", param.type, param.regexp, param.description, registry)
        if param.required:
            parameter["required"] = True
        if param.allow_empty:
            parameter["allowEmptyValue"] = True
        if param.apply_custom_schema is not None:
            param.apply_custom_schema(parameter)
        parameters.append(parameter)

    for name in sorted(route.path_params):
        path_param = route.path_params[name]
        parameter = _parameter(name, "path", path_param.type, path_param.regexp, path_param.description, registry)
        parameter["required"] = True
        if path_param.apply_custom_schema is not None:
            path_param.apply_custom_schema(parameter)
        parameters.append(parameter)

    if parameters:
        operation["parameters"] = parameters

    if route.request_model is not None:
        operation["requestBody"] = {"content": _json_content(route.request_model, registry)}

    responses: dict[str, Any] = {}
    for status, model in route.responses.items():
        responses[str(status)] = {"description": "", "content": _json_content(model, registry)}
    operation["responses"] = responses

    if route.tags:
        operation["tags"] = list(route.tags)
    if route.operation_id:
        operation["operationId"] = route.operation_id
    if route.description:
        operation["description"] = route.description
    return operation


def _parameter(
    name: str,
    location: str,
    param_type: PrimitiveType | str,
    regexp: str,
    description: str,
    registry: ModelRegistry,
) -> dict[str, Any]:
    schema = primitive_schema(param_type)
    if regexp:
        schema.pattern = regexp
    parameter: dict[str, Any] = {"name": name, "in": location}
    if description:
        parameter["description"] = description
    parameter["schema"] = schema.to_dict(registry.ref_prefix)
    return parameter


def _json_content(model: Any, registry: ModelRegistry) -> dict[str, Any]:
    name, schema = registry.register(model)
    ref = schema_ref_or_value(name, schema)
    return {JSON_MEDIA_TYPE: {"schema": ref.to_dict(registry.ref_prefix)}}
