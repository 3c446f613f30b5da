"""Turn natural-language prompts into typed values using schema-constrained LLM calls."""

from .core.config import PromptSettings
from .core.descriptors import (
    ArrayType,
    EnumType,
    ObjectType,
    PrimitiveType,
    TypeDescriptor,
    array,
    boolean,
    enum,
    integer,
    number,
    object_,
    string,
)
from .core.errors import (
    CardinalityError,
    CompletionFormatError,
    DecodeError,
    PreconditionError,
    PromptcastError,
    ResponseValidationError,
)
from .llm.client import LLMClient
from .parsers import PromptParser, as_bool, as_list, as_string, as_type, categorize, get_default_parser

__version__ = "0.1.0"

__all__ = [
    "ArrayType",
    "CardinalityError",
    "CompletionFormatError",
    "DecodeError",
    "EnumType",
    "LLMClient",
    "ObjectType",
    "PreconditionError",
    "PrimitiveType",
    "PromptParser",
    "PromptSettings",
    "PromptcastError",
    "ResponseValidationError",
    "TypeDescriptor",
    "__version__",
    "array",
    "as_bool",
    "as_list",
    "as_string",
    "as_type",
    "boolean",
    "categorize",
    "enum",
    "get_default_parser",
    "integer",
    "number",
    "object_",
    "string",
]
