"""Type descriptors describing the shape of a value expected from the model."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Literal, Self

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, model_validator

PrimitiveName = Literal["string", "number", "integer", "boolean"]


class _Descriptor(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    description: str | None = None


class PrimitiveType(_Descriptor):
    """A JSON scalar: string, number, integer or boolean."""

    kind: Literal["primitive"] = "primitive"
    type: PrimitiveName


class ObjectType(_Descriptor):
    """An object with named fields; every field not listed in ``optional`` is required."""

    kind: Literal["object"] = "object"
    properties: dict[str, TypeDescriptor]
    optional: tuple[str, ...] = ()

    @model_validator(mode="after")
    def _check_optional_fields(self) -> Self:
        unknown = sorted(set(self.optional) - self.properties.keys())
        if unknown:
            message = f"optional fields are not declared as properties: {', '.join(unknown)}"
            raise ValueError(message)
        return self

    @property
    def required(self) -> list[str]:
        """Return the required field names in declaration order."""
        return [name for name in self.properties if name not in self.optional]


class ArrayType(_Descriptor):
    """A homogeneous array, optionally bounded in length."""

    kind: Literal["array"] = "array"
    items: TypeDescriptor
    min_items: int | None = Field(default=None, ge=0)
    max_items: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> Self:
        if (
            self.min_items is not None
            and self.max_items is not None
            and self.min_items > self.max_items
        ):
            message = "min_items must not exceed max_items"
            raise ValueError(message)
        return self

    def unbounded(self) -> ArrayType:
        """Return a copy of this descriptor without length bounds."""
        return self.model_copy(update={"min_items": None, "max_items": None})


class EnumType(_Descriptor):
    """A string restricted to an exact, case-sensitive set of allowed values."""

    kind: Literal["enum"] = "enum"
    values: tuple[str, ...] = Field(min_length=1)


TypeDescriptor = Annotated[
    PrimitiveType | ObjectType | ArrayType | EnumType,
    Field(discriminator="kind"),
]

ObjectType.model_rebuild()
ArrayType.model_rebuild()

_DESCRIPTOR_ADAPTER: TypeAdapter[TypeDescriptor] = TypeAdapter(TypeDescriptor)


def load_descriptor(payload: object) -> TypeDescriptor:
    """Validate a JSON-compatible mapping into a type descriptor."""
    return _DESCRIPTOR_ADAPTER.validate_python(payload)


def string(*, description: str | None = None) -> PrimitiveType:
    return PrimitiveType(type="string", description=description)


def number(*, description: str | None = None) -> PrimitiveType:
    return PrimitiveType(type="number", description=description)


def integer(*, description: str | None = None) -> PrimitiveType:
    return PrimitiveType(type="integer", description=description)


def boolean(*, description: str | None = None) -> PrimitiveType:
    return PrimitiveType(type="boolean", description=description)


def object_(
    properties: Mapping[str, TypeDescriptor],
    *,
    optional: tuple[str, ...] = (),
    description: str | None = None,
) -> ObjectType:
    """Describe an object whose fields are given by *properties*."""
    return ObjectType(properties=dict(properties), optional=optional, description=description)


def array(
    items: TypeDescriptor,
    *,
    min_items: int | None = None,
    max_items: int | None = None,
    description: str | None = None,
) -> ArrayType:
    """Describe an array of *items*."""
    return ArrayType(items=items, min_items=min_items, max_items=max_items, description=description)


def enum(*values: str, description: str | None = None) -> EnumType:
    """Describe a string that must be one of *values*."""
    return EnumType(values=values, description=description)


__all__ = [
    "ArrayType",
    "EnumType",
    "ObjectType",
    "PrimitiveName",
    "PrimitiveType",
    "TypeDescriptor",
    "array",
    "boolean",
    "enum",
    "integer",
    "load_descriptor",
    "number",
    "object_",
    "string",
]
