"""Serialization of documents and definitions to JSON or YAML text."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Mapping

import yaml

from typeschema.errors import InvalidInputError

if TYPE_CHECKING:
    from typeschema.registry.registry import ModelRegistry

__all__ = ["dump_document", "export_definitions", "SUPPORTED_FORMATS"]

SUPPORTED_FORMATS = ("json", "yaml")


def dump_document(document: Mapping[str, Any], format: str = "json") -> str:
    """Serialize an assembled document."""
    return _serialize(dict(document), format)


def export_definitions(registry: ModelRegistry, format: str = "json") -> str:
    """Serialize every shared definition of *registry*, keyed by name."""
    definitions = {
        name: registry.definitions[name].to_dict(registry.ref_prefix) for name in sorted(registry.definitions)
    }
    return _serialize(definitions, format)


def _serialize(data: Any, format: str) -> str:
    """Serialize data to JSON or YAML string."""
    if format not in SUPPORTED_FORMATS:
        raise InvalidInputError(message=f"Unsupported export format: {format}. Must be one of {SUPPORTED_FORMATS}")
    if format == "yaml":
        return yaml.dump(data, default_flow_style=False)
    return json.dumps(data, indent=2)
