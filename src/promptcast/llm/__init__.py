"""LLM helpers for the promptcast project."""

from .client import AsyncOpenAIClientProtocol, LLMClient
from .prompts import (
    ANSWER_FUNCTION_NAME,
    ChatMessage,
    CompletionRequest,
    build_bool_request,
    build_categorize_request,
    build_list_request,
    build_schema_request,
    build_text_request,
)
from .structured import Cardinality, ResponseDecoder, parse_arguments, validate_instance

__all__ = [
    "ANSWER_FUNCTION_NAME",
    "AsyncOpenAIClientProtocol",
    "Cardinality",
    "ChatMessage",
    "CompletionRequest",
    "LLMClient",
    "ResponseDecoder",
    "build_bool_request",
    "build_categorize_request",
    "build_list_request",
    "build_schema_request",
    "build_text_request",
    "parse_arguments",
    "validate_instance",
]
