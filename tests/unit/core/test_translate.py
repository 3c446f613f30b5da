"""Tests for promptcast.core.translate."""

from __future__ import annotations

from jsonschema import Draft202012Validator
from pydantic import BaseModel, RootModel

from promptcast.core.descriptors import array, boolean, enum, integer, number, object_, string
from promptcast.core.translate import ENVELOPE_FIELD, build_function_schema, requires_envelope, translate


class Person(BaseModel):
    name: str
    age: int


class Colors(RootModel[list[str]]):
    pass


class Team(RootModel[list[Person]]):
    pass


def test_translate_primitives() -> None:
    assert translate(string()) == {"type": "string"}
    assert translate(number()) == {"type": "number"}
    assert translate(integer()) == {"type": "integer"}
    assert translate(boolean()) == {"type": "boolean"}


def test_translate_enum_keeps_values_verbatim() -> None:
    """Allowed values keep their exact spelling, case and order."""
    schema = translate(enum("AC/DC", "Guns N' Roses", "led zeppelin"))

    assert schema == {"type": "string", "enum": ["AC/DC", "Guns N' Roses", "led zeppelin"]}


def test_translate_array_carries_bounds_and_description() -> None:
    schema = translate(array(enum("a", "b"), min_items=0, max_items=2, description="letters"))

    assert schema == {
        "type": "array",
        "items": {"type": "string", "enum": ["a", "b"]},
        "minItems": 0,
        "maxItems": 2,
        "description": "letters",
    }


def test_translate_nested_object() -> None:
    descriptor = object_(
        {"name": string(), "nickname": string(), "pets": array(object_({"species": string()}))},
        optional=("nickname",),
    )

    schema = translate(descriptor)

    assert schema["type"] == "object"
    assert schema["required"] == ["name", "pets"]
    assert schema["properties"]["pets"]["items"] == {
        "type": "object",
        "properties": {"species": {"type": "string"}},
        "required": ["species"],
    }
    Draft202012Validator.check_schema(schema)


def test_translate_is_deterministic() -> None:
    """Repeated translation of one descriptor yields identical documents."""
    descriptor = object_({"colors": array(enum("red", "green"), max_items=3), "count": integer()})

    assert translate(descriptor) == translate(descriptor)
    assert build_function_schema(descriptor) == build_function_schema(descriptor)


def test_non_object_descriptors_are_wrapped() -> None:
    """Bare primitives, arrays and enums are enveloped in ``{"value": ...}``."""
    for descriptor in (number(), array(string()), enum("x")):
        function_schema = build_function_schema(descriptor)

        assert function_schema.wrapped is True
        assert requires_envelope(descriptor) is True
        assert function_schema.parameters["type"] == "object"
        assert function_schema.parameters["required"] == [ENVELOPE_FIELD]
        inner = function_schema.parameters["properties"][ENVELOPE_FIELD]
        assert inner["type"] == translate(descriptor)["type"]


def test_envelope_keeps_the_caller_description() -> None:
    function_schema = build_function_schema(array(string(), description="favorite colors"))

    assert function_schema.parameters["properties"]["value"]["description"] == "favorite colors"


def test_object_descriptors_are_not_wrapped() -> None:
    descriptor = object_({"name": string(), "age": number()})

    function_schema = build_function_schema(descriptor)

    assert function_schema.wrapped is False
    assert function_schema.parameters == translate(descriptor)


def test_pydantic_models_use_their_own_schema() -> None:
    function_schema = build_function_schema(Person)

    assert function_schema.wrapped is False
    assert requires_envelope(Person) is False
    assert function_schema.parameters == Person.model_json_schema()


def test_root_models_over_non_objects_are_wrapped() -> None:
    function_schema = build_function_schema(Colors)

    assert requires_envelope(Colors) is True
    assert function_schema.wrapped is True
    parameters = function_schema.parameters
    assert parameters["type"] == "object"
    assert parameters["required"] == [ENVELOPE_FIELD]
    assert parameters["properties"][ENVELOPE_FIELD]["type"] == "array"
    assert parameters["properties"][ENVELOPE_FIELD]["items"] == {"type": "string"}


def test_wrapped_model_definitions_move_to_the_root() -> None:
    parameters = build_function_schema(Team).parameters

    assert "Person" in parameters["$defs"]
    assert "$defs" not in parameters["properties"][ENVELOPE_FIELD]
    validator = Draft202012Validator(parameters)
    assert validator.is_valid({"value": [{"name": "jose", "age": 42}]})
    assert not validator.is_valid({"value": [{"name": "jose"}]})
