"""Core domain modules for promptcast."""

from .config import PromptSettings
from .descriptors import (
    ArrayType,
    EnumType,
    ObjectType,
    PrimitiveType,
    TypeDescriptor,
    array,
    boolean,
    enum,
    integer,
    load_descriptor,
    number,
    object_,
    string,
)
from .errors import (
    CardinalityError,
    CompletionFormatError,
    DecodeError,
    PreconditionError,
    PromptcastError,
    ResponseValidationError,
)
from .translate import ENVELOPE_FIELD, FunctionSchema, build_function_schema, requires_envelope, translate

__all__ = [
    "ENVELOPE_FIELD",
    "ArrayType",
    "CardinalityError",
    "CompletionFormatError",
    "DecodeError",
    "EnumType",
    "FunctionSchema",
    "ObjectType",
    "PreconditionError",
    "PrimitiveType",
    "PromptSettings",
    "PromptcastError",
    "ResponseValidationError",
    "TypeDescriptor",
    "array",
    "boolean",
    "build_function_schema",
    "enum",
    "integer",
    "load_descriptor",
    "number",
    "object_",
    "requires_envelope",
    "string",
    "translate",
]
