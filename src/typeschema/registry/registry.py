"""Model registry: canonical names, memoization, cycle breaking and persistence."""

from __future__ import annotations

import copy
import datetime
import logging
import uuid
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Sequence

from typeschema.config import Config
from typeschema.descriptor import TypeDescriptor, TypeKind, describe
from typeschema.errors import CommentLookupError
from typeschema.lookup import CommentLookup, DocstringCommentLookup, is_deprecated
from typeschema.registry.naming import ModelNamer
from typeschema.registry.synthesizer import SchemaSynthesizer
from typeschema.schema.options import ModelOption, with_nullable
from typeschema.schema.policy import is_reserved_name, should_reference
from typeschema.schema.types import DEFAULT_REF_PREFIX, Schema, SchemaType

logger = logging.getLogger(__name__)

__all__ = ["ModelRegistry", "Customizer", "DEFAULT_KNOWN_TYPES"]

Customizer = tuple[Callable[[TypeDescriptor], bool], Callable[[TypeDescriptor, Schema], None]]

DEFAULT_KNOWN_TYPES: dict[Any, Schema] = {
    datetime.datetime: Schema(type=SchemaType.STRING, format="date-time"),
    datetime.date: Schema(type=SchemaType.STRING, format="date"),
    uuid.UUID: Schema(type=SchemaType.STRING, format="uuid"),
}


class ModelRegistry:
    """Synthesizes schemas for types and keeps the shared definitions.

    One registry backs one generated document. It is not safe for concurrent
    use; synthesize independent documents with independent registries.
    """

    def __init__(
        self,
        config: Config | None = None,
        strip_namespaces: Iterable[str] | None = None,
        known_types: Mapping[Any, Schema] | None = None,
        customizers: Sequence[Customizer] | None = None,
        comment_lookup: CommentLookup | None = None,
        ref_prefix: str | None = None,
    ) -> None:
        """Initialize the ModelRegistry.

        Args:
            config: Optional Config; explicit arguments take precedence over it.
            strip_namespaces: Namespace prefixes omitted from canonical names.
            known_types: Pre-built schemas by Python type, replacing the defaults.
            customizers: Ordered ``(predicate, mutator)`` pairs run for every
                synthesized type whose descriptor satisfies the predicate.
            comment_lookup: Source of type and field comments.
            ref_prefix: Prefix used when rendering references to definitions.
        """
        self._config = config if config is not None else Config()
        if strip_namespaces is None:
            strip_namespaces = self._config.get("registry.strip_namespaces", []) or []
        self._namer = ModelNamer(strip_namespaces)
        self.ref_prefix: str = (
            ref_prefix if ref_prefix is not None else self._config.get("registry.ref_prefix", DEFAULT_REF_PREFIX)
        )
        self._known_types: dict[Any, Schema] = dict(DEFAULT_KNOWN_TYPES if known_types is None else known_types)
        self._customizers: list[Customizer] = list(customizers or [])
        self._comment_lookup: CommentLookup = comment_lookup if comment_lookup is not None else DocstringCommentLookup()

        # Internal state
        self._definitions: dict[str, Schema] = {}
        self._comments: dict[str, Mapping[str, str]] = {}
        self._synthesizer = SchemaSynthesizer(self)

    # ----- Registration -----

    def register(self, model: Any, *options: ModelOption) -> tuple[str, Schema]:
        """Synthesize the schema of *model* and return ``(name, schema)``.

        Args:
            model: A Python type or a TypeDescriptor.
            options: Customizations applied after the global customizers and
                the type's own ``apply_custom_schema``.

        Raises:
            UnsupportedTypeError: If the type has no schema representation.
            InvalidMapKeyError: If a map type has a non-string key.
            CommentLookupError: If comments of a namespace cannot be resolved.
            SchemaSynthesisError: If a nested type fails; wraps the cause.
        """
        return self.resolve(describe(model), options, visiting=set())

    def resolve(
        self,
        descriptor: TypeDescriptor,
        options: Sequence[ModelOption],
        visiting: set[str],
    ) -> tuple[str, Schema]:
        """Registration step shared by top-level calls and nested synthesis.

        *visiting* holds the names of records being synthesized on the current
        call path; it is owned by the top-level ``register`` call.

        An optional type resolves to its target, which carries the nullability.
        Customizers and options then run once, on the target, and only when the
        target is synthesized by this call; a stored definition is never edited.
        """
        if descriptor.kind == TypeKind.OPTIONAL and descriptor.elem is not None:
            return self.resolve(descriptor.elem, [with_nullable(), *options], visiting)

        name = self._namer.name_of(descriptor)
        reserved = is_reserved_name(name)

        if not reserved and name in self._definitions:
            logger.debug("Reusing definition '%s'", name)
            return name, self._definitions[name]

        known = self._known_types.get(descriptor.identity)
        if known is not None:
            schema = copy.deepcopy(known)
            if not reserved and should_reference(schema):
                self._definitions[name] = schema
            return name, schema

        if descriptor.kind == TypeKind.RECORD:
            if name in visiting:
                logger.debug("Recursion detected for '%s', returning placeholder", name)
                return name, Schema(type=SchemaType.OBJECT)
            visiting.add(name)
            try:
                schema = self._synthesizer.synthesize(descriptor, name, visiting)
            finally:
                visiting.discard(name)
        else:
            schema = self._synthesizer.synthesize(descriptor, name, visiting)

        self._customize(descriptor, schema, options)

        if not reserved and should_reference(schema):
            logger.debug("Storing definition '%s'", name)
            self._definitions[name] = schema
        return name, schema

    def store_use_site(self, name: str, schema: Schema) -> None:
        """Store a field-specific variant of a definition under its own *name*."""
        logger.debug("Storing use-site definition '%s'", name)
        self._definitions[name] = schema

    def _customize(self, descriptor: TypeDescriptor, schema: Schema, options: Sequence[ModelOption]) -> None:
        for predicate, mutator in self._customizers:
            if predicate(descriptor):
                mutator(descriptor, schema)

        hook = getattr(descriptor.py_type, "apply_custom_schema", None)
        if callable(hook):
            hook(schema)

        for option in options:
            option(schema)

    # ----- Query Methods -----

    @property
    def definitions(self) -> Mapping[str, Schema]:
        """Read-only view of the shared definitions by canonical name."""
        return MappingProxyType(self._definitions)

    def get_definition(self, name: str) -> Schema | None:
        return self._definitions.get(name)

    def has_definition(self, name: str) -> bool:
        return name in self._definitions

    def model_name(self, model: Any) -> str:
        """Canonical name of a Python type or TypeDescriptor."""
        return self._namer.name_of(describe(model))

    def unregister(self, name: str) -> bool:
        """Remove a definition. Returns False if it did not exist."""
        return self._definitions.pop(name, None) is not None

    def clear(self) -> None:
        """Drop all definitions and cached comments."""
        self._definitions.clear()
        self._comments.clear()

    # ----- Comments -----

    def comment_for(self, namespace: str, key: str) -> tuple[str, bool]:
        """Return ``(comment, deprecated)`` for a type or field key of *namespace*."""
        if not namespace:
            return "", False
        comment = self._namespace_comments(namespace).get(key, "")
        return comment, is_deprecated(comment)

    def _namespace_comments(self, namespace: str) -> Mapping[str, str]:
        if namespace in self._comments:
            return self._comments[namespace]
        try:
            comments = self._comment_lookup.get(namespace)
        except CommentLookupError:
            raise
        except Exception as e:
            raise CommentLookupError(namespace=namespace, reason=str(e), cause=e) from e
        self._comments[namespace] = comments
        return comments
