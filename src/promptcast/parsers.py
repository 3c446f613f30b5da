"""Typed parsers turning natural-language prompts into validated Python values."""

from __future__ import annotations

import functools
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, TypeVar, overload

from pydantic import BaseModel

from promptcast.core.config import PromptSettings
from promptcast.core.descriptors import boolean, enum
from promptcast.core.errors import PreconditionError
from promptcast.llm.client import LLMClient
from promptcast.llm.prompts import (
    build_bool_request,
    build_categorize_request,
    build_list_descriptor,
    build_list_request,
    build_schema_request,
    build_text_request,
)
from promptcast.llm.structured import Cardinality, ResponseDecoder

if TYPE_CHECKING:
    from promptcast.core.descriptors import TypeDescriptor
    from promptcast.llm.prompts import CompletionRequest

_logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _is_blank(prompt: str) -> bool:
    return not prompt or not prompt.strip()


def check_list_bounds(min_values: int, max_values: int) -> None:
    """Reject list bounds that can never be satisfied."""
    if min_values >= max_values:
        message = f"min_values must be less than max_values (got {min_values} and {max_values})"
        raise PreconditionError(message)
    if min_values < 0:
        message = f"min_values must not be negative (got {min_values})"
        raise PreconditionError(message)


class PromptParser:
    """Bind an :class:`LLMClient` and :class:`PromptSettings` to the five typed operations.

    Instances hold no per-call state, so one parser can serve any number of
    concurrent calls.
    """

    def __init__(self, client: LLMClient | None = None, settings: PromptSettings | None = None) -> None:
        self._settings = settings or PromptSettings()
        self._client = client or LLMClient.from_settings(self._settings)

    @property
    def settings(self) -> PromptSettings:
        return self._settings

    @property
    def client(self) -> LLMClient:
        return self._client

    def _model(self, high_capability_model: bool) -> str:
        return self._settings.select_model(high_capability_model=high_capability_model)

    async def _call(self, request: CompletionRequest, decoder: ResponseDecoder) -> Any:
        raw_arguments = await self._client.call_function(request)
        return decoder.decode(raw_arguments)

    @overload
    async def as_type(
        self, prompt: str, descriptor: type[M], *, high_capability_model: bool = False,
    ) -> M: ...

    @overload
    async def as_type(
        self, prompt: str, descriptor: TypeDescriptor, *, high_capability_model: bool = False,
    ) -> Any: ...

    async def as_type(
        self,
        prompt: str,
        descriptor: TypeDescriptor | type[BaseModel],
        *,
        high_capability_model: bool = False,
    ) -> Any:
        """Answer *prompt* with a value matching *descriptor*.

        A blank prompt is not sent; the empty string is validated against
        the descriptor instead, so it succeeds only for string-like types.
        """
        decoder = ResponseDecoder(descriptor)
        if _is_blank(prompt):
            return decoder.validate_value("")
        request = build_schema_request(
            prompt,
            descriptor,
            model=self._model(high_capability_model),
            temperature=self._settings.temperature,
        )
        return await self._call(request, decoder)

    async def as_bool(self, prompt: str, *, high_capability_model: bool = False) -> bool:
        """Answer *prompt* with ``True`` or ``False``; a blank prompt is ``False``."""
        if _is_blank(prompt):
            return False
        request = build_bool_request(
            prompt,
            model=self._model(high_capability_model),
            temperature=self._settings.temperature,
        )
        return await self._call(request, ResponseDecoder(boolean()))

    async def categorize(
        self,
        prompt: str,
        allowed_values: Sequence[str],
        *,
        high_capability_model: bool = False,
    ) -> str:
        """Classify *prompt* as exactly one of *allowed_values* (case-sensitive)."""
        if _is_blank(prompt):
            message = "Prompt is required to categorize"
            raise PreconditionError(message)
        if not allowed_values:
            message = "At least one allowed value is required to categorize"
            raise PreconditionError(message)
        request = build_categorize_request(
            prompt,
            allowed_values,
            model=self._model(high_capability_model),
            temperature=self._settings.temperature,
        )
        return await self._call(request, ResponseDecoder(enum(*allowed_values)))

    async def as_list(
        self,
        prompt: str,
        allowed_values: Sequence[str] | None = None,
        min_values: int = 1,
        max_values: int = 5,
        *,
        high_capability_model: bool = False,
    ) -> list[str]:
        """Answer *prompt* with between *min_values* and *max_values* strings.

        Answers longer than *max_values* are truncated to their first
        *max_values* entries; shorter than *min_values* raise
        :class:`~promptcast.core.errors.CardinalityError`. A blank prompt
        returns an empty list without contacting the model, whatever
        *min_values* is.
        """
        check_list_bounds(min_values, max_values)
        if allowed_values is not None and not allowed_values:
            message = "allowed_values must contain at least one value when given"
            raise PreconditionError(message)
        if _is_blank(prompt):
            if min_values > 0:
                _logger.warning(
                    "Blank prompt answered with an empty list below the requested minimum",
                    extra={"min_values": min_values},
                )
            return []
        request = build_list_request(
            prompt,
            allowed_values,
            min_values,
            max_values,
            model=self._model(high_capability_model),
            temperature=self._settings.temperature,
        )
        decoder = ResponseDecoder(
            build_list_descriptor(allowed_values, min_values, max_values),
            cardinality=Cardinality(min_values=min_values, max_values=max_values),
        )
        return await self._call(request, decoder)

    async def as_string(self, prompt: str, *, high_capability_model: bool = False) -> str:
        """Return the model's free-text answer to *prompt* without any validation."""
        if _is_blank(prompt):
            return ""
        request = build_text_request(
            prompt,
            model=self._model(high_capability_model),
            temperature=self._settings.temperature,
        )
        return await self._client.complete_text(request)


@functools.cache
def get_default_parser() -> PromptParser:
    """Return the process-wide parser configured from the environment on first use."""
    return PromptParser(settings=PromptSettings.from_environment())


async def as_type(prompt: str, descriptor: TypeDescriptor | type[BaseModel], *, high_capability_model: bool = False) -> Any:
    """Module-level shortcut for :meth:`PromptParser.as_type` on the default parser."""
    return await get_default_parser().as_type(prompt, descriptor, high_capability_model=high_capability_model)


async def as_bool(prompt: str, *, high_capability_model: bool = False) -> bool:
    return await get_default_parser().as_bool(prompt, high_capability_model=high_capability_model)


async def categorize(prompt: str, allowed_values: Sequence[str], *, high_capability_model: bool = False) -> str:
    return await get_default_parser().categorize(prompt, allowed_values, high_capability_model=high_capability_model)


async def as_list(
    prompt: str,
    allowed_values: Sequence[str] | None = None,
    min_values: int = 1,
    max_values: int = 5,
    *,
    high_capability_model: bool = False,
) -> list[str]:
    return await get_default_parser().as_list(
        prompt,
        allowed_values,
        min_values,
        max_values,
        high_capability_model=high_capability_model,
    )


async def as_string(prompt: str, *, high_capability_model: bool = False) -> str:
    return await get_default_parser().as_string(prompt, high_capability_model=high_capability_model)


__all__ = [
    "PromptParser",
    "as_bool",
    "as_list",
    "as_string",
    "as_type",
    "categorize",
    "check_list_bounds",
    "get_default_parser",
]
