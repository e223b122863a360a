"""Canonical model names."""

from __future__ import annotations

from typing import Any, Iterable

from typeschema.descriptor import TypeDescriptor, TypeKind

__all__ = ["normalize_type_name", "use_site_name", "ModelNamer", "POINTER_SUFFIX", "ANONYMOUS_PREFIX"]

POINTER_SUFFIX = "Ptr"
ANONYMOUS_PREFIX = "AnonymousType"

_NORMALIZER = str.maketrans({"/": "_", ".": "_", "[": "_", "]": "_"})


def normalize_type_name(namespace: str, name: str, strip_namespaces: Iterable[str] = ()) -> str:
    """Join *namespace* and *name* into a reference-safe name.

    The namespace is dropped when it is empty or starts with one of
    *strip_namespaces*.
    """
    omit = any(namespace.startswith(prefix) for prefix in strip_namespaces)
    if omit or not namespace:
        return name.translate(_NORMALIZER)
    return f"{namespace}/{name}".translate(_NORMALIZER)


def use_site_name(container: str, field: str) -> str:
    """Name of the field-specific definition of *field* in the model *container*."""
    return f"{container}_{field}".translate(_NORMALIZER)


class ModelNamer:
    """Assigns canonical names to type descriptors.

    Anonymous types get ``AnonymousType<N>`` in order of first appearance; the
    same anonymous identity always maps to the same name.
    """

    def __init__(self, strip_namespaces: Iterable[str] = ()) -> None:
        self._strip_namespaces = tuple(strip_namespaces)
        self._anonymous: dict[Any, str] = {}

    @property
    def strip_namespaces(self) -> tuple[str, ...]:
        return self._strip_namespaces

    def name_of(self, descriptor: TypeDescriptor) -> str:
        namespace, name = descriptor.namespace, descriptor.name
        if descriptor.kind == TypeKind.OPTIONAL and descriptor.elem is not None:
            namespace = descriptor.elem.namespace
            name = descriptor.elem.name + POINTER_SUFFIX if descriptor.elem.name else ""
        if not name:
            return self._anonymous_name(descriptor)
        return normalize_type_name(namespace, name, self._strip_namespaces)

    def _anonymous_name(self, descriptor: TypeDescriptor) -> str:
        key = descriptor.identity
        if key not in self._anonymous:
            self._anonymous[key] = f"{ANONYMOUS_PREFIX}{len(self._anonymous)}"
        return self._anonymous[key]
