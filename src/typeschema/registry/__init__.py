"""Model registry: naming, memoization and synthesis of shared definitions.

Usage::

    from typeschema.registry import ModelRegistry

    registry = ModelRegistry(strip_namespaces=["myapp.models"])
    name, schema = registry.register(User)
"""

from __future__ import annotations

from typeschema.registry.naming import ModelNamer, normalize_type_name
from typeschema.registry.registry import DEFAULT_KNOWN_TYPES, Customizer, ModelRegistry
from typeschema.registry.synthesizer import SchemaSynthesizer

__all__ = [
    "DEFAULT_KNOWN_TYPES",
    "Customizer",
    "ModelNamer",
    "ModelRegistry",
    "SchemaSynthesizer",
    "normalize_type_name",
]
