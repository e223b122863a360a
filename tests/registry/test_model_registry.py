"""Tests for ModelRegistry registration, memoization and persistence."""

from __future__ import annotations

import datetime
import enum
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, NewType, Optional

import pytest

from typeschema.config import Config
from typeschema.descriptor import FieldDescriptor, TypeDescriptor, TypeKind
from typeschema.errors import (
    CommentLookupError,
    InvalidMapKeyError,
    SchemaSynthesisError,
    UnsupportedTypeError,
)
from typeschema.registry.registry import ModelRegistry
from typeschema.schema.options import with_description, with_enum_constants, with_enum_values
from typeschema.schema.types import Schema, SchemaType

UserId = NewType("UserId", int)


@dataclass
class Pet:
    """A pet in the store."""

    name: str
    """Pet name."""

    age: int = 0


@dataclass
class Owner:
    first: Optional[Pet] = None
    second: Optional[Pet] = None


@dataclass
class Node:
    value: int
    next: Optional[Node] = None
    children: list[Node] = field(default_factory=list)


@dataclass
class Left:
    right: Optional[Right] = None


@dataclass
class Right:
    left: Optional[Left] = None


class Species(str, enum.Enum):
    CAT = "cat"
    DOG = "dog"


class Mood(str):
    @classmethod
    def apply_custom_schema(cls, schema: Schema) -> None:
        with_enum_values("happy", "sad")(schema)


@dataclass
class Animal:
    species: Species
    mood: Mood


@dataclass
class Inventory:
    counts: dict[str, int]
    pets: dict[str, Pet] = field(default_factory=dict)
    names: list[str] = field(default_factory=list)


@dataclass
class Event:
    at: datetime.datetime
    id: uuid.UUID


@dataclass
class Ordered:
    x: int = 0

    @staticmethod
    def apply_custom_schema(schema: Schema) -> None:
        schema.extensions.setdefault("x-steps", []).append("self")


@dataclass
class Broken:
    callback: Callable[[], int]


@dataclass
class BadKeys:
    lookup: dict[int, str]


def enum_customizer() -> tuple[Callable[[TypeDescriptor], bool], Callable[[TypeDescriptor, Schema], None]]:
    def is_enum(descriptor: TypeDescriptor) -> bool:
        return isinstance(descriptor.py_type, type) and issubclass(descriptor.py_type, enum.Enum)

    def add_values(descriptor: TypeDescriptor, schema: Schema) -> None:
        with_enum_constants(descriptor.py_type)(schema)

    return is_enum, add_values


class TestRegister:
    def test_record(self, registry: ModelRegistry) -> None:
        name, schema = registry.register(Pet)
        assert name == "Pet"
        assert schema.to_dict() == {
            "type": "object",
            "description": "A pet in the store.",
            "properties": {
                "age": {"type": "integer"},
                "name": {"type": "string", "description": "Pet name."},
            },
        }
        assert registry.get_definition("Pet") is schema

    def test_scalar_not_persisted(self, registry: ModelRegistry) -> None:
        name, schema = registry.register(int)
        assert name == "int"
        assert schema.is_type(SchemaType.INTEGER)
        assert registry.definitions == {}

    def test_named_scalar_not_persisted(self, registry: ModelRegistry) -> None:
        name, schema = registry.register(UserId)
        assert name == "UserId"
        assert schema.is_type(SchemaType.INTEGER)
        assert not registry.has_definition("UserId")

    def test_options_applied(self, registry: ModelRegistry) -> None:
        _, schema = registry.register(Pet, with_description("Overridden"))
        assert schema.description == "Overridden"

    def test_optional_top_level(self, registry: ModelRegistry) -> None:
        name, schema = registry.register(Optional[Pet])
        assert name == "Pet"
        assert schema.nullable
        assert registry.get_definition("Pet") is schema

    def test_optional_scalar(self, registry: ModelRegistry) -> None:
        name, schema = registry.register(Optional[int])
        assert name == "int"
        assert schema.nullable
        assert registry.definitions == {}

    def test_hand_built_anonymous_record(self, registry: ModelRegistry) -> None:
        descriptor = TypeDescriptor.record("", [FieldDescriptor("a", int)])
        name, schema = registry.register(descriptor)
        assert name == "AnonymousType0"
        assert registry.get_definition(name) is schema
        assert registry.register(descriptor)[0] == "AnonymousType0"


class TestMemoization:
    def test_same_instance(self, registry: ModelRegistry) -> None:
        first = registry.register(Pet)
        second = registry.register(Pet)
        assert first[1] is second[1]
        assert list(registry.definitions) == ["Pet"]

    def test_memo_hit_skips_options(self, registry: ModelRegistry) -> None:
        registry.register(Pet)
        _, schema = registry.register(Pet, with_description("ignored"))
        assert schema.description == "A pet in the store."

    def test_scalars_rebuilt(self, registry: ModelRegistry) -> None:
        assert registry.register(str)[1] is not registry.register(str)[1]


class TestCycles:
    def test_self_reference(self, registry: ModelRegistry) -> None:
        _, schema = registry.register(Node)
        rendered = schema.to_dict()
        assert rendered["properties"]["next"] == {"$ref": "#/components/schemas/Node"}
        assert rendered["properties"]["children"] == {
            "type": "array",
            "nullable": True,
            "items": {"$ref": "#/components/schemas/Node"},
        }
        assert list(registry.definitions) == ["Node"]
        assert registry.get_definition("Node") is schema

    def test_mutual_reference(self, registry: ModelRegistry) -> None:
        registry.register(Left)
        assert sorted(registry.definitions) == ["Left", "Right"]
        left = registry.definitions["Left"].to_dict()
        right = registry.definitions["Right"].to_dict()
        assert left["properties"]["right"] == {"$ref": "#/components/schemas/Right"}
        assert right["properties"]["left"] == {"$ref": "#/components/schemas/Left"}

    def test_registering_other_side_reuses(self, registry: ModelRegistry) -> None:
        registry.register(Left)
        right_schema = registry.definitions["Right"]
        assert registry.register(Right)[1] is right_schema

    def test_independent_calls_do_not_share_state(self, registry: ModelRegistry) -> None:
        registry.register(Node)
        registry.clear()
        _, schema = registry.register(Node)
        assert schema.properties is not None and set(schema.properties) == {"value", "next", "children"}


class TestEnumerations:
    def test_customizer_promotes_enum(self, module_namespace: str) -> None:
        registry = ModelRegistry(strip_namespaces=[module_namespace], customizers=[enum_customizer()])
        _, schema = registry.register(Animal)
        assert schema.to_dict()["properties"]["species"] == {"$ref": "#/components/schemas/Species"}
        assert registry.definitions["Species"].to_dict() == {"type": "string", "enum": ["cat", "dog"]}

    def test_self_customization_promotes_enum(self, registry: ModelRegistry) -> None:
        _, schema = registry.register(Animal)
        assert schema.to_dict()["properties"]["mood"] == {"$ref": "#/components/schemas/Mood"}
        assert registry.definitions["Mood"].enum == ["happy", "sad"]

    def test_plain_enum_class_stays_inline(self, registry: ModelRegistry) -> None:
        _, schema = registry.register(Animal)
        assert schema.to_dict()["properties"]["species"] == {"type": "string"}
        assert not registry.has_definition("Species")

    def test_enum_option_persists_named_scalar(self, registry: ModelRegistry) -> None:
        name, schema = registry.register(Species, with_enum_constants(Species))
        assert name == "Species"
        assert registry.get_definition("Species") is schema


class TestInlining:
    def test_map_and_array_inline(self, registry: ModelRegistry) -> None:
        _, schema = registry.register(Inventory)
        props = schema.to_dict()["properties"]
        assert props["counts"] == {
            "type": "object",
            "nullable": True,
            "additionalProperties": {"type": "integer"},
        }
        assert props["pets"]["additionalProperties"] == {"$ref": "#/components/schemas/Pet"}
        assert props["names"] == {"type": "array", "nullable": True, "items": {"type": "string"}}
        assert sorted(registry.definitions) == ["Inventory", "Pet"]

    def test_top_level_map_not_persisted(self, registry: ModelRegistry) -> None:
        name, schema = registry.register(dict[str, int])
        assert name == "map_str_int"
        assert schema.nullable
        assert registry.definitions == {}


class TestKnownTypes:
    def test_defaults(self, registry: ModelRegistry) -> None:
        _, schema = registry.register(Event)
        props = schema.to_dict()["properties"]
        assert props["at"] == {"type": "string", "format": "date-time"}
        assert props["id"] == {"type": "string", "format": "uuid"}
        assert list(registry.definitions) == ["Event"]

    def test_returns_copies(self, registry: ModelRegistry) -> None:
        first = registry.register(datetime.datetime)[1]
        first.description = "mutated"
        assert registry.register(datetime.datetime)[1].description == ""

    def test_custom_object_known_type_persisted(self, module_namespace: str) -> None:
        money = Schema.object()
        money.extensions["x-money"] = True
        registry = ModelRegistry(strip_namespaces=[module_namespace], known_types={Pet: money})
        name, schema = registry.register(Pet)
        assert name == "Pet"
        assert schema is not money
        assert schema.extensions == {"x-money": True}
        assert registry.get_definition("Pet") is schema

    def test_known_type_skips_options(self, registry: ModelRegistry) -> None:
        _, schema = registry.register(uuid.UUID, with_description("ignored"))
        assert schema.description == ""


class TestCustomization:
    def test_order(self, module_namespace: str) -> None:
        def global_step(descriptor: TypeDescriptor, schema: Schema) -> None:
            schema.extensions.setdefault("x-steps", []).append("global")

        def option(schema: Schema) -> None:
            schema.extensions.setdefault("x-steps", []).append("option")

        registry = ModelRegistry(
            strip_namespaces=[module_namespace],
            customizers=[(lambda d: d.py_type is Ordered, global_step)],
        )
        _, schema = registry.register(Ordered, option)
        assert schema.extensions["x-steps"] == ["global", "self", "option"]

    def test_predicate_filters(self, module_namespace: str) -> None:
        seen: list[str] = []
        registry = ModelRegistry(
            strip_namespaces=[module_namespace],
            customizers=[(lambda d: False, lambda d, s: seen.append(d.name))],
        )
        registry.register(Pet)
        assert seen == []

    def test_customizer_runs_for_nested_types(self, module_namespace: str) -> None:
        seen: list[str] = []
        registry = ModelRegistry(
            strip_namespaces=[module_namespace],
            customizers=[(lambda d: True, lambda d, s: seen.append(d.name))],
        )
        registry.register(Pet)
        assert seen == ["str", "int", "Pet"]

    def test_customizer_runs_once_per_type(self, module_namespace: str) -> None:
        seen: list[str] = []
        registry = ModelRegistry(
            strip_namespaces=[module_namespace],
            customizers=[(lambda d: True, lambda d, s: seen.append(d.name))],
        )
        registry.register(Owner)
        assert seen == ["str", "int", "Pet", "Owner"]

    def test_optional_fields_customize_target_once(self, module_namespace: str) -> None:
        def require_name(descriptor: TypeDescriptor, schema: Schema) -> None:
            schema.required.append("name")

        registry = ModelRegistry(
            strip_namespaces=[module_namespace],
            customizers=[(lambda d: d.kind == TypeKind.RECORD and d.py_type is Pet, require_name)],
        )
        registry.register(Owner)
        assert registry.definitions["Pet"].required == ["name"]
        assert registry.definitions["Owner"].to_dict()["properties"]["second"] == {"$ref": "#/components/schemas/Pet"}

    def test_optional_registration_leaves_definition_unchanged(self, registry: ModelRegistry) -> None:
        _, pet = registry.register(Pet)
        before = pet.to_dict()
        name, schema = registry.register(Optional[Pet], with_description("only for this call"))
        assert name == "Pet"
        assert schema is pet
        assert registry.definitions["Pet"].to_dict() == before
        assert registry.definitions["Pet"].description == "A pet in the store."


class TestErrors:
    def test_unsupported_top_level(self, registry: ModelRegistry) -> None:
        with pytest.raises(UnsupportedTypeError):
            registry.register(Callable[[], int])

    def test_unsupported_field_wrapped(self, registry: ModelRegistry) -> None:
        with pytest.raises(SchemaSynthesisError) as exc_info:
            registry.register(Broken)
        err = exc_info.value
        assert err.type_name == f"{__name__}.Broken"
        assert "field 'callback'" in err.message
        assert isinstance(err.root_cause, UnsupportedTypeError)
        assert not registry.has_definition("Broken")

    def test_non_string_map_key(self, registry: ModelRegistry) -> None:
        with pytest.raises(InvalidMapKeyError):
            registry.register(dict[int, str])
        with pytest.raises(SchemaSynthesisError) as exc_info:
            registry.register(BadKeys)
        assert isinstance(exc_info.value.root_cause, InvalidMapKeyError)

    def test_comment_lookup_failure(self, module_namespace: str) -> None:
        class FailingLookup:
            def get(self, namespace: str) -> Any:
                raise OSError("source not available")

        registry = ModelRegistry(strip_namespaces=[module_namespace], comment_lookup=FailingLookup())
        with pytest.raises(CommentLookupError) as exc_info:
            registry.register(Pet)
        assert exc_info.value.namespace == __name__
        assert isinstance(exc_info.value.cause, OSError)


class TestComments:
    def test_cached_per_namespace(self, module_namespace: str, static_comments) -> None:
        registry = ModelRegistry(strip_namespaces=[module_namespace], comment_lookup=static_comments)
        registry.register(Pet)
        registry.register(Inventory)
        assert static_comments.calls == [__name__]

    def test_comment_for_without_namespace(self, static_comments) -> None:
        registry = ModelRegistry(comment_lookup=static_comments)
        assert registry.comment_for("", "anything") == ("", False)
        assert static_comments.calls == []

    def test_comment_for_deprecated(self, static_comments) -> None:
        static_comments.comments["pkg.Old"] = "Old.\n\nDeprecated: use New."
        registry = ModelRegistry(comment_lookup=static_comments)
        assert registry.comment_for("pkg", "pkg.Old") == ("Old.\n\nDeprecated: use New.", True)


class TestConfiguration:
    def test_config_values(self, module_namespace: str) -> None:
        config = Config({"registry": {"strip_namespaces": [module_namespace], "ref_prefix": "#/definitions/"}})
        registry = ModelRegistry(config=config)
        assert registry.ref_prefix == "#/definitions/"
        assert registry.register(Pet)[0] == "Pet"

    def test_explicit_arguments_win(self) -> None:
        config = Config({"registry": {"strip_namespaces": ["elsewhere"], "ref_prefix": "#/definitions/"}})
        registry = ModelRegistry(config=config, strip_namespaces=[], ref_prefix="#/x/")
        assert registry.ref_prefix == "#/x/"
        assert registry.model_name(Pet) == f"{__name__}.Pet".replace(".", "_")

    def test_defaults(self) -> None:
        assert ModelRegistry().ref_prefix == "#/components/schemas/"


class TestQueryMethods:
    def test_definitions_read_only(self, registry: ModelRegistry) -> None:
        registry.register(Pet)
        with pytest.raises(TypeError):
            registry.definitions["Other"] = Schema.object()  # type: ignore[index]

    def test_unregister(self, registry: ModelRegistry) -> None:
        registry.register(Pet)
        assert registry.unregister("Pet") is True
        assert registry.unregister("Pet") is False
        assert registry.get_definition("Pet") is None

    def test_clear(self, registry: ModelRegistry) -> None:
        registry.register(Inventory)
        registry.clear()
        assert registry.definitions == {}

    def test_model_name(self, registry: ModelRegistry) -> None:
        assert registry.model_name(Pet) == "Pet"
        assert registry.model_name(Optional[Pet]) == "PetPtr"
