"""Shared fixtures wiring parsers and clients to the OpenAI stub."""

from __future__ import annotations

import typing
from typing import Any

import pytest

from llm_stubs import RecordingSleep, StubAsyncOpenAI
from promptcast.core.config import PromptSettings
from promptcast.llm.client import LLMClient
from promptcast.parsers import PromptParser

if typing.TYPE_CHECKING:
    from promptcast.llm.client import AsyncOpenAIClientProtocol


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_client(recording_sleep: RecordingSleep) -> typing.Callable[..., tuple[LLMClient, StubAsyncOpenAI]]:
    """Return a factory building an :class:`LLMClient` over a stub replaying *outcomes*."""

    def _factory(outcomes: list[Any], *, max_attempts: int = 10) -> tuple[LLMClient, StubAsyncOpenAI]:
        stub = StubAsyncOpenAI(outcomes)
        client = LLMClient(
            client=typing.cast("AsyncOpenAIClientProtocol", stub),
            max_attempts=max_attempts,
            sleep=recording_sleep,
        )
        return client, stub

    return _factory


@pytest.fixture
def make_parser(
    make_client: typing.Callable[..., tuple[LLMClient, StubAsyncOpenAI]],
) -> typing.Callable[..., tuple[PromptParser, StubAsyncOpenAI]]:
    """Return a factory building a :class:`PromptParser` over a stub replaying *outcomes*."""

    def _factory(outcomes: list[Any], **settings: Any) -> tuple[PromptParser, StubAsyncOpenAI]:
        client, stub = make_client(outcomes)
        return PromptParser(client=client, settings=PromptSettings(**settings)), stub

    return _factory
