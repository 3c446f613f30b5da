"""Async OpenAI chat client wrapper with exponential-backoff retries and logging."""

from __future__ import annotations

import asyncio
import logging
import typing
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

from openai import AsyncOpenAI
from tenacity import AsyncRetrying, before_sleep_log, stop_after_attempt, wait_exponential

from promptcast.core.errors import CompletionFormatError

if TYPE_CHECKING:
    from promptcast.core.config import PromptSettings

    from .prompts import CompletionRequest

_T = TypeVar("_T")

DEFAULT_MAX_ATTEMPTS = 10
DEFAULT_INITIAL_DELAY = 0.5


class ChatCompletionsEndpoint(Protocol):
    """Protocol describing the OpenAI ``chat.completions`` endpoint."""

    async def create(self, *, model: str, timeout: float, **kwargs: Any) -> Any:
        """Create a chat completion using the configured model."""


class ChatNamespace(Protocol):
    completions: ChatCompletionsEndpoint


class AsyncOpenAIClientProtocol(Protocol):
    """Protocol for the OpenAI client surface used by :class:`LLMClient`."""

    chat: ChatNamespace


class LLMClient:
    """Wrapper around the async OpenAI client with retries, logging, and timeouts.

    Every failure of a single attempt is retried the same way: the delay
    starts at ``initial_delay`` seconds and doubles after each failed attempt.
    Once ``max_attempts`` is exhausted the exception raised by the last
    attempt propagates unchanged.
    """

    def __init__(
        self,
        *,
        client: AsyncOpenAIClientProtocol | None = None,
        client_factory: Callable[[], AsyncOpenAIClientProtocol] | None = None,
        timeout: float = 60.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        initial_delay: float = DEFAULT_INITIAL_DELAY,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Initialise the wrapper.

        An explicit *client* is used as is. Otherwise *client_factory*
        (``AsyncOpenAI`` by default) builds one lazily for each event loop; an SDK client is never
        reused across loops.
        """
        if max_attempts < 1:
            error_message = "max_attempts must be at least 1"
            raise ValueError(error_message)
        if initial_delay < 0:
            error_message = "initial_delay must not be negative"
            raise ValueError(error_message)

        self._client = client
        self._client_factory = client_factory or _default_client_factory
        self._loop_client: tuple[asyncio.AbstractEventLoop, AsyncOpenAIClientProtocol] | None = None
        self._timeout = timeout
        self._max_attempts = max_attempts
        self._initial_delay = initial_delay
        self._logger = logger or logging.getLogger(__name__)
        self._sleep = sleep or asyncio.sleep

    @classmethod
    def from_settings(
        cls,
        settings: PromptSettings,
        *,
        client: AsyncOpenAIClientProtocol | None = None,
        logger: logging.Logger | None = None,
    ) -> LLMClient:
        """Create a client using the timeout and retry policy from *settings*."""
        return cls(
            client=client,
            timeout=settings.timeout,
            max_attempts=settings.max_attempts,
            initial_delay=settings.initial_delay,
            logger=logger,
        )

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def _get_client(self) -> AsyncOpenAIClientProtocol:
        if self._client is not None:
            return self._client
        loop = asyncio.get_running_loop()
        if self._loop_client is None or self._loop_client[0] is not loop:
            self._loop_client = (loop, self._client_factory())
        return self._loop_client[1]

    def _build_retrying(self) -> AsyncRetrying:
        """Construct a Tenacity retrying helper for the configured settings."""
        return AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_exponential(multiplier=self._initial_delay, exp_base=2),
            before_sleep=before_sleep_log(self._logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )

    async def run_with_retry(self, func: Callable[[], Awaitable[_T]]) -> _T:
        """Await *func* with the configured retry strategy."""
        retrying = self._build_retrying()
        return await retrying(func)

    async def call_function(self, request: CompletionRequest) -> str:
        """Send *request* and return the raw JSON arguments of the forced function call."""
        if request.function_name is None:
            error_message = "call_function requires a request with a function schema"
            raise ValueError(error_message)

        client = self._get_client()

        async def _invoke() -> str:
            response = await self._dispatch(client, request)
            return self.extract_function_arguments(response, request.function_name)

        return await self.run_with_retry(_invoke)

    async def complete_text(self, request: CompletionRequest) -> str:
        """Send *request* and return the free-text content of the reply."""
        client = self._get_client()

        async def _invoke() -> str:
            response = await self._dispatch(client, request)
            return self.extract_content(response)

        return await self.run_with_retry(_invoke)

    async def _dispatch(self, client: AsyncOpenAIClientProtocol, request: CompletionRequest) -> Any:
        self._logger.debug(
            "Dispatching LLM request",
            extra={"model": request.model, "function": request.function_name, "timeout": self._timeout},
        )
        response: Any = await client.chat.completions.create(
            timeout=self._timeout,
            **request.to_openai_kwargs(),
        )
        self._log_usage(response)
        return response

    def _log_usage(self, response: Any) -> None:
        """Log basic token usage information if available."""
        usage = getattr(response, "usage", None)
        if usage is None:
            return

        usage_payload = {
            "prompt_tokens": _safe_getattr(usage, "prompt_tokens"),
            "completion_tokens": _safe_getattr(usage, "completion_tokens"),
            "total_tokens": _safe_getattr(usage, "total_tokens"),
        }
        self._logger.info("LLM usage", extra=usage_payload)

    @staticmethod
    def extract_function_arguments(response: Any, function_name: str) -> str:
        """Return the argument blob of the call to *function_name* in a chat completion."""
        message = _first_message(response)

        tool_calls = getattr(message, "tool_calls", None) or []
        for tool_call in tool_calls:
            function = getattr(tool_call, "function", None)
            if function is None or getattr(function, "name", None) != function_name:
                continue
            arguments = getattr(function, "arguments", None)
            if isinstance(arguments, str):
                return arguments

        legacy_call = getattr(message, "function_call", None)
        if legacy_call is not None and getattr(legacy_call, "name", function_name) == function_name:
            arguments = getattr(legacy_call, "arguments", None)
            if isinstance(arguments, str):
                return arguments

        error_message = f"LLM response did not contain a call to '{function_name}'"
        raise CompletionFormatError(error_message)

    @staticmethod
    def extract_content(response: Any) -> str:
        """Return the textual content of the first choice in a chat completion."""
        message = _first_message(response)
        content = getattr(message, "content", None)
        if content is None:
            error_message = "LLM response did not contain textual output"
            raise CompletionFormatError(error_message)
        return content


def _default_client_factory() -> AsyncOpenAIClientProtocol:
    return typing.cast("AsyncOpenAIClientProtocol", AsyncOpenAI())


def _first_message(response: Any) -> Any:
    choices = getattr(response, "choices", None)
    if not choices:
        error_message = "LLM response did not contain any choices"
        raise CompletionFormatError(error_message)
    message = getattr(choices[0], "message", None)
    if message is None:
        error_message = "LLM response choice did not contain a message"
        raise CompletionFormatError(error_message)
    return message


def _safe_getattr(obj: Any, name: str) -> Any:
    """Return ``getattr`` value while supporting mapping-like access."""
    if hasattr(obj, name):
        return getattr(obj, name)
    if isinstance(obj, dict):
        typed_obj = typing.cast("dict[str, Any]", obj)
        return typed_obj.get(name)
    return None


__all__ = [
    "AsyncOpenAIClientProtocol",
    "DEFAULT_INITIAL_DELAY",
    "DEFAULT_MAX_ATTEMPTS",
    "LLMClient",
]
