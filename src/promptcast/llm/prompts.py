"""Prompt builders producing the chat request for each kind of typed answer."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from promptcast.core.descriptors import ArrayType, array, boolean, enum, string
from promptcast.core.translate import FunctionSchema, build_function_schema

if TYPE_CHECKING:
    from pydantic import BaseModel

    from promptcast.core.descriptors import TypeDescriptor

ANSWER_FUNCTION_NAME = "answer"
ANSWER_FUNCTION_DESCRIPTION = "Answer the user's question"

BOOL_SYSTEM_PROMPT = "Answer the following question with a true or false."
TEXT_SYSTEM_PROMPT = (
    "Answer the following question directly. Reproduce the answer verbatim "
    "without greetings, commentary or other conversational filler."
)
_EXACT_SPELLING = "You MUST use the exact spelling and capitalization of the values."


@dataclass(frozen=True)
class ChatMessage:
    """A single entry of the chat transcript sent to the model."""

    role: Literal["system", "user"]
    content: str

    def as_payload(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class CompletionRequest:
    """Everything needed to issue one chat completion; never mutated after construction."""

    model: str
    messages: tuple[ChatMessage, ...]
    temperature: float = 0.0
    function_schema: FunctionSchema | None = None
    function_name: str | None = None
    function_description: str = ANSWER_FUNCTION_DESCRIPTION

    def __post_init__(self) -> None:
        if self.function_schema is not None and self.function_name is None:
            object.__setattr__(self, "function_name", ANSWER_FUNCTION_NAME)

    def to_openai_kwargs(self) -> dict[str, Any]:
        """Render the request as keyword arguments for ``chat.completions.create``."""
        kwargs: dict[str, Any] = {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [message.as_payload() for message in self.messages],
        }
        if self.function_schema is not None:
            kwargs["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": self.function_name,
                        "description": self.function_description,
                        "parameters": self.function_schema.parameters,
                    },
                },
            ]
            kwargs["tool_choice"] = {"type": "function", "function": {"name": self.function_name}}
        return kwargs


def _with_system(system_prompt: str, prompt: str) -> tuple[ChatMessage, ...]:
    return (ChatMessage(role="system", content=system_prompt), ChatMessage(role="user", content=prompt))


def format_allowed_values(allowed_values: Sequence[str]) -> str:
    """Join allowed values exactly as supplied, preserving order and spelling."""
    return ", ".join(allowed_values)


def build_bool_request(prompt: str, *, model: str, temperature: float = 0.0) -> CompletionRequest:
    """Build the request asking for a single true/false answer."""
    descriptor = boolean(description="The boolean value to return.")
    return CompletionRequest(
        model=model,
        temperature=temperature,
        messages=_with_system(BOOL_SYSTEM_PROMPT, prompt),
        function_schema=build_function_schema(descriptor),
    )


def build_categorize_system_prompt(allowed_values: Sequence[str]) -> str:
    return (
        "Answer the following question with one of the following allowed values: "
        f"{format_allowed_values(allowed_values)}. {_EXACT_SPELLING}"
    )


def build_categorize_request(
    prompt: str,
    allowed_values: Sequence[str],
    *,
    model: str,
    temperature: float = 0.0,
) -> CompletionRequest:
    """Build the request asking for exactly one of *allowed_values*."""
    descriptor = enum(
        *allowed_values,
        description="The value to use, MUST be one of the allowed values",
    )
    return CompletionRequest(
        model=model,
        temperature=temperature,
        messages=_with_system(build_categorize_system_prompt(allowed_values), prompt),
        function_schema=build_function_schema(descriptor),
    )


def build_list_descriptor(
    allowed_values: Sequence[str] | None,
    min_values: int,
    max_values: int,
) -> ArrayType:
    """Describe a bounded list whose items are restricted to *allowed_values* when given."""
    items = enum(*allowed_values) if allowed_values is not None else string()
    return array(
        items,
        min_items=min_values,
        max_items=max_values,
        description="The values to use, MUST be from the list of allowed values",
    )


def build_list_system_prompt(
    allowed_values: Sequence[str] | None,
    min_values: int,
    max_values: int,
) -> str:
    """Describe the count bounds and, when present, the allowed set of values."""
    bounds = f"Answer the following question with AT LEAST {min_values} and AT MOST {max_values}"
    if allowed_values is None:
        parts = [f"{bounds} values. There is no restriction on which values you may use."]
    else:
        parts = [
            f"{bounds} of the following allowed values: {format_allowed_values(allowed_values)}.",
            _EXACT_SPELLING,
        ]
    if min_values > 1:
        parts.append("You may also answer with multiple values.")
    elif min_values == 0:
        parts.append("You may also answer with no values.")
    return " ".join(parts)


def build_list_request(
    prompt: str,
    allowed_values: Sequence[str] | None,
    min_values: int,
    max_values: int,
    *,
    model: str,
    temperature: float = 0.0,
) -> CompletionRequest:
    """Build the request asking for between *min_values* and *max_values* answers."""
    descriptor = build_list_descriptor(allowed_values, min_values, max_values)
    return CompletionRequest(
        model=model,
        temperature=temperature,
        messages=_with_system(build_list_system_prompt(allowed_values, min_values, max_values), prompt),
        function_schema=build_function_schema(descriptor),
    )


def build_schema_request(
    prompt: str,
    descriptor: TypeDescriptor | type[BaseModel],
    *,
    model: str,
    temperature: float = 0.0,
) -> CompletionRequest:
    """Build the request for an arbitrary caller-supplied type; no system message is added."""
    return CompletionRequest(
        model=model,
        temperature=temperature,
        messages=(ChatMessage(role="user", content=prompt),),
        function_schema=build_function_schema(descriptor),
    )


def build_text_request(prompt: str, *, model: str, temperature: float = 0.0) -> CompletionRequest:
    """Build the free-text request; no function schema is attached."""
    return CompletionRequest(
        model=model,
        temperature=temperature,
        messages=_with_system(TEXT_SYSTEM_PROMPT, prompt),
    )


__all__ = [
    "ANSWER_FUNCTION_NAME",
    "BOOL_SYSTEM_PROMPT",
    "TEXT_SYSTEM_PROMPT",
    "ChatMessage",
    "CompletionRequest",
    "build_bool_request",
    "build_categorize_request",
    "build_categorize_system_prompt",
    "build_list_descriptor",
    "build_list_request",
    "build_list_system_prompt",
    "build_schema_request",
    "build_text_request",
    "format_allowed_values",
]
