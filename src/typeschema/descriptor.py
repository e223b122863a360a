"""Type descriptors: structural descriptions of Python types.

A :class:`TypeDescriptor` is the only thing the registry looks at. It can be
built by hand (for anonymous records, or types that have no Python class) or
derived from a Python type with :func:`describe`, which understands builtin
scalars, generic containers, ``Optional``, enums, ``NewType``, dataclasses and
pydantic models.
"""

from __future__ import annotations

import collections.abc
import dataclasses
import enum
import types
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Union, get_args, get_origin

from pydantic import BaseModel

from typeschema.errors import InvalidInputError

__all__ = [
    "TypeKind",
    "SCALAR_KINDS",
    "FieldDescriptor",
    "TypeDescriptor",
    "describe",
]


class TypeKind(str, enum.Enum):
    """The structural kind of a described type."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"
    MAP = "map"
    OPTIONAL = "optional"
    RECORD = "record"
    UNSUPPORTED = "unsupported"


SCALAR_KINDS = frozenset({TypeKind.BOOL, TypeKind.INT, TypeKind.FLOAT, TypeKind.STRING})

_BUILTIN_SCALARS: dict[type, TypeKind] = {
    bool: TypeKind.BOOL,
    int: TypeKind.INT,
    float: TypeKind.FLOAT,
    str: TypeKind.STRING,
}

_SEQUENCE_ORIGINS = frozenset(
    {
        list,
        set,
        frozenset,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Set,
        collections.abc.MutableSet,
        collections.abc.Iterable,
        collections.abc.Collection,
    }
)

_MAPPING_ORIGINS = frozenset({dict, collections.abc.Mapping, collections.abc.MutableMapping})


@dataclass(eq=False)
class FieldDescriptor:
    """One field of a record type.

    ``type`` may be a :class:`TypeDescriptor` or a Python type; Python types are
    described on first access of :attr:`descriptor`.
    """

    name: str
    type: Any
    tags: Mapping[str, Any] = field(default_factory=dict)
    embedded: bool = False

    @property
    def exported(self) -> bool:
        """Whether the field is visible to schema consumers."""
        return not self.name.startswith("_")

    @property
    def descriptor(self) -> TypeDescriptor:
        if not isinstance(self.type, TypeDescriptor):
            self.type = describe(self.type)
        return self.type

    def tag(self, key: str) -> str:
        """Return the tag value for *key* as a string, ``""`` when absent."""
        value = self.tags.get(key)
        if value is None:
            return ""
        return str(value)


@dataclass(eq=False)
class TypeDescriptor:
    """Structural description of one type.

    Attributes:
        kind: Structural kind.
        name: Local type name, empty for anonymous types.
        namespace: Declaring module path, empty for builtins and anonymous types.
        elem: Array element, map value, or optional target.
        key: Map key.
        bits: Floating point width (32 or 64); 0 for non-float kinds.
        py_type: The Python object the descriptor was derived from, if any.
        field_loader: Callable producing the record fields on first access.
        declared_fields: Record fields given up front.
    """

    kind: TypeKind
    name: str = ""
    namespace: str = ""
    elem: TypeDescriptor | None = None
    key: TypeDescriptor | None = None
    bits: int = 0
    py_type: Any = None
    field_loader: Callable[[], list[FieldDescriptor]] | None = field(default=None, repr=False)
    declared_fields: list[FieldDescriptor] | None = field(default=None, repr=False)

    @classmethod
    def scalar(cls, kind: TypeKind, name: str = "", namespace: str = "", py_type: Any = None) -> TypeDescriptor:
        if kind not in SCALAR_KINDS:
            raise InvalidInputError(message=f"Not a scalar kind: {kind.value}")
        bits = 64 if kind == TypeKind.FLOAT else 0
        return cls(kind=kind, name=name or _DEFAULT_SCALAR_NAMES[kind], namespace=namespace, bits=bits, py_type=py_type)

    @classmethod
    def record(
        cls,
        name: str,
        fields: list[FieldDescriptor],
        namespace: str = "",
        py_type: Any = None,
    ) -> TypeDescriptor:
        return cls(kind=TypeKind.RECORD, name=name, namespace=namespace, py_type=py_type, declared_fields=list(fields))

    @classmethod
    def array(cls, elem: TypeDescriptor, py_type: Any = None) -> TypeDescriptor:
        return cls(kind=TypeKind.ARRAY, name=f"list[{elem.name}]", elem=elem, py_type=py_type)

    @classmethod
    def map(cls, key: TypeDescriptor, value: TypeDescriptor, py_type: Any = None) -> TypeDescriptor:
        return cls(kind=TypeKind.MAP, name=f"map[{key.name}]{value.name}", key=key, elem=value, py_type=py_type)

    @classmethod
    def optional(cls, elem: TypeDescriptor, py_type: Any = None) -> TypeDescriptor:
        return cls(kind=TypeKind.OPTIONAL, name=elem.name, namespace=elem.namespace, elem=elem, py_type=py_type)

    @property
    def fields(self) -> list[FieldDescriptor]:
        if self.declared_fields is None:
            self.declared_fields = self.field_loader() if self.field_loader is not None else []
        return self.declared_fields

    @property
    def identity(self) -> Any:
        """Key used for known-type lookup and anonymous naming."""
        if self.py_type is None:
            return self
        try:
            hash(self.py_type)
        except TypeError:
            return self
        return self.py_type

    @property
    def type_name(self) -> str:
        """Human readable, namespace-qualified name used in errors and logs."""
        if self.namespace and self.name:
            return f"{self.namespace}.{self.name}"
        return self.name or f"<anonymous {self.kind.value}>"

    def __str__(self) -> str:
        return self.type_name


_DEFAULT_SCALAR_NAMES: dict[TypeKind, str] = {
    TypeKind.BOOL: "bool",
    TypeKind.INT: "int",
    TypeKind.FLOAT: "float",
    TypeKind.STRING: "str",
}


def describe(tp: Any) -> TypeDescriptor:
    """Derive a :class:`TypeDescriptor` from a Python type."""
    if isinstance(tp, TypeDescriptor):
        return tp

    origin = get_origin(tp)
    args = get_args(tp)

    if origin is typing.Annotated:
        return describe(args[0])

    if origin is Union or origin is types.UnionType:
        non_none = [a for a in args if a is not type(None)]
        if len(non_none) == 1 and len(args) == 2:
            return TypeDescriptor.optional(describe(non_none[0]), py_type=tp)
        return _unsupported(tp)

    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            return TypeDescriptor.array(describe(args[0]), py_type=tp)
        return _unsupported(tp)

    if origin in _SEQUENCE_ORIGINS:
        if len(args) != 1:
            return _unsupported(tp)
        return TypeDescriptor.array(describe(args[0]), py_type=tp)

    if origin in _MAPPING_ORIGINS:
        if len(args) != 2:
            return _unsupported(tp)
        return TypeDescriptor.map(describe(args[0]), describe(args[1]), py_type=tp)

    supertype = getattr(tp, "__supertype__", None)
    if supertype is not None:
        # typing.NewType: a named alias of its supertype.
        base = describe(supertype)
        return dataclasses.replace(base, name=tp.__name__, namespace=_namespace_of(tp), py_type=tp)

    if not isinstance(tp, type):
        return _unsupported(tp)

    if tp in _BUILTIN_SCALARS:
        return TypeDescriptor.scalar(_BUILTIN_SCALARS[tp], py_type=tp)

    if tp in (bytes, bytearray):
        # A byte sequence, published as integers unless overridden to text.
        return TypeDescriptor(
            kind=TypeKind.ARRAY,
            name=tp.__name__,
            elem=TypeDescriptor.scalar(TypeKind.INT, py_type=int),
            py_type=tp,
        )

    if issubclass(tp, enum.Enum):
        return _describe_enum(tp)

    if dataclasses.is_dataclass(tp):
        return TypeDescriptor(
            kind=TypeKind.RECORD,
            name=tp.__name__,
            namespace=_namespace_of(tp),
            py_type=tp,
            field_loader=lambda: _dataclass_fields(tp),
        )

    if issubclass(tp, BaseModel):
        return TypeDescriptor(
            kind=TypeKind.RECORD,
            name=tp.__name__,
            namespace=_namespace_of(tp),
            py_type=tp,
            field_loader=lambda: _pydantic_fields(tp),
        )

    for scalar_type, kind in _BUILTIN_SCALARS.items():
        if issubclass(tp, scalar_type):
            return TypeDescriptor.scalar(kind, name=tp.__name__, namespace=_namespace_of(tp), py_type=tp)

    return _unsupported(tp)


def _unsupported(tp: Any) -> TypeDescriptor:
    name = getattr(tp, "__name__", None) or repr(tp)
    namespace = _namespace_of(tp) if isinstance(tp, type) else ""
    return TypeDescriptor(kind=TypeKind.UNSUPPORTED, name=name, namespace=namespace, py_type=tp)


def _namespace_of(tp: Any) -> str:
    module = getattr(tp, "__module__", "") or ""
    if module == "builtins":
        return ""
    return module


def _describe_enum(tp: type[enum.Enum]) -> TypeDescriptor:
    if issubclass(tp, bool):
        kind = TypeKind.BOOL
    elif issubclass(tp, int):
        kind = TypeKind.INT
    elif issubclass(tp, str):
        kind = TypeKind.STRING
    elif issubclass(tp, float):
        kind = TypeKind.FLOAT
    else:
        values = [member.value for member in tp]
        if values and all(isinstance(v, int) and not isinstance(v, bool) for v in values):
            kind = TypeKind.INT
        elif values and all(isinstance(v, str) for v in values):
            kind = TypeKind.STRING
        else:
            return _unsupported(tp)
    return TypeDescriptor.scalar(kind, name=tp.__name__, namespace=_namespace_of(tp), py_type=tp)


def _annotated_tags(hint: Any) -> dict[str, Any]:
    """Collect mapping extras from ``Annotated[X, {...}]``."""
    if get_origin(hint) is not typing.Annotated:
        return {}
    tags: dict[str, Any] = {}
    for extra in get_args(hint)[1:]:
        if isinstance(extra, Mapping):
            tags.update(extra)
    return tags


def _resolve_hints(tp: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(tp, include_extras=True)
    except NameError as exc:
        raise InvalidInputError(message=f"Cannot resolve type hints of '{tp.__qualname__}': {exc}") from exc


def _dataclass_fields(tp: type) -> list[FieldDescriptor]:
    hints = _resolve_hints(tp)
    result: list[FieldDescriptor] = []
    for f in dataclasses.fields(tp):
        hint = hints.get(f.name, f.type)
        tags = dict(f.metadata)
        tags.update(_annotated_tags(hint))
        result.append(FieldDescriptor(name=f.name, type=hint, tags=tags, embedded=bool(tags.get("embedded"))))
    return result


def _pydantic_fields(tp: type[BaseModel]) -> list[FieldDescriptor]:
    result: list[FieldDescriptor] = []
    for name, info in tp.model_fields.items():
        tags: dict[str, Any] = {}
        if isinstance(info.json_schema_extra, dict):
            tags.update(info.json_schema_extra)
        for extra in info.metadata:
            if isinstance(extra, Mapping):
                tags.update(extra)
        if info.alias:
            tags.setdefault("json", info.alias)
        result.append(
            FieldDescriptor(name=name, type=info.annotation, tags=tags, embedded=bool(tags.get("embedded")))
        )
    return result
