"""Translate type descriptors into JSON Schema function parameter documents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from jsonschema import Draft202012Validator
from pydantic import BaseModel

from .descriptors import ArrayType, EnumType, ObjectType, PrimitiveType, TypeDescriptor

ENVELOPE_FIELD = "value"
_ENVELOPE_DESCRIPTION = "The value to return."


@dataclass(frozen=True)
class FunctionSchema:
    """The parameters document sent to the model together with the envelope decision."""

    parameters: dict[str, Any]
    wrapped: bool


def translate(descriptor: TypeDescriptor) -> dict[str, Any]:
    """Return the JSON Schema fragment describing *descriptor*."""
    schema: dict[str, Any]
    match descriptor:
        case PrimitiveType(type=primitive):
            schema = {"type": primitive}
        case EnumType(values=values):
            schema = {"type": "string", "enum": list(values)}
        case ArrayType(items=items, min_items=min_items, max_items=max_items):
            schema = {"type": "array", "items": translate(items)}
            if min_items is not None:
                schema["minItems"] = min_items
            if max_items is not None:
                schema["maxItems"] = max_items
        case ObjectType(properties=properties):
            schema = {
                "type": "object",
                "properties": {name: translate(child) for name, child in properties.items()},
                "required": descriptor.required,
            }
        case _:
            message = f"Unsupported type descriptor: {descriptor!r}"
            raise TypeError(message)

    if descriptor.description:
        schema["description"] = descriptor.description
    return schema


def requires_envelope(descriptor: TypeDescriptor | type[BaseModel]) -> bool:
    """Return ``True`` when *descriptor* must be wrapped in a ``{"value": ...}`` object.

    Models are judged by their generated schema, so a ``RootModel`` over a
    list or a scalar is wrapped like any other non-object type.
    """
    if isinstance(descriptor, type):
        return descriptor.model_json_schema().get("type") != "object"
    return descriptor.kind != "object"


def _envelope(inner: dict[str, Any]) -> dict[str, Any]:
    definitions = inner.pop("$defs", None)
    inner.setdefault("description", _ENVELOPE_DESCRIPTION)
    parameters: dict[str, Any] = {
        "type": "object",
        "required": [ENVELOPE_FIELD],
        "properties": {ENVELOPE_FIELD: inner},
    }
    # "#/$defs/..." references resolve against the document root.
    if definitions:
        parameters["$defs"] = definitions
    return parameters


def build_function_schema(descriptor: TypeDescriptor | type[BaseModel]) -> FunctionSchema:
    """Build the top-level function parameters document for *descriptor*."""
    schema = descriptor.model_json_schema() if isinstance(descriptor, type) else translate(descriptor)
    wrapped = requires_envelope(descriptor)
    parameters = _envelope(schema) if wrapped else schema

    Draft202012Validator.check_schema(parameters)
    return FunctionSchema(parameters=parameters, wrapped=wrapped)


__all__ = [
    "ENVELOPE_FIELD",
    "FunctionSchema",
    "build_function_schema",
    "requires_envelope",
    "translate",
]
