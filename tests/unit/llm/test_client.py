"""Tests for the retrying LLM client wrapper."""

from __future__ import annotations

import asyncio
import logging
import typing
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any

import pytest
from openai import OpenAIError

from llm_stubs import StubAsyncOpenAI, text_response, tool_response
from promptcast.core.config import PromptSettings
from promptcast.core.errors import CompletionFormatError
from promptcast.llm.client import LLMClient
from promptcast.llm.prompts import build_bool_request, build_text_request

if TYPE_CHECKING:
    from collections.abc import Callable

    from llm_stubs import RecordingSleep
    from promptcast.llm.client import AsyncOpenAIClientProtocol


@pytest.mark.asyncio
async def test_call_function_sends_forced_tool_call(make_client: Callable[..., Any]) -> None:
    """The request forces the ``answer`` tool and returns its raw arguments."""
    client, stub = make_client([tool_response({"value": True})])
    request = build_bool_request("Is the sky blue?", model="gpt-test")

    raw = await client.call_function(request)

    assert raw == '{"value": true}'
    call = stub.calls[0]
    assert call["model"] == "gpt-test"
    assert call["temperature"] == 0.0
    assert call["tool_choice"] == {"type": "function", "function": {"name": "answer"}}
    assert call["tools"][0]["function"]["parameters"]["required"] == ["value"]
    assert call["messages"][-1] == {"role": "user", "content": "Is the sky blue?"}


@pytest.mark.asyncio
async def test_transient_failures_are_retried_with_doubling_delay(
    make_client: Callable[..., Any], recording_sleep: RecordingSleep,
) -> None:
    client, stub = make_client(
        [RuntimeError("rate limited"), ConnectionError("reset"), RuntimeError("again"), tool_response({"value": 1})],
    )

    raw = await client.call_function(build_bool_request("q", model="m"))

    assert raw == '{"value": 1}'
    assert stub.call_count == 4
    assert recording_sleep.delays == [0.5, 1.0, 2.0]


@pytest.mark.asyncio
async def test_last_failure_propagates_unchanged(
    make_client: Callable[..., Any], recording_sleep: RecordingSleep,
) -> None:
    """After the retry budget the original exception object reaches the caller."""
    failures = [RuntimeError(f"failure {index}") for index in range(10)]
    client, stub = make_client(list(failures))

    with pytest.raises(RuntimeError) as excinfo:
        await client.call_function(build_bool_request("q", model="m"))

    assert excinfo.value is failures[-1]
    assert stub.call_count == 10
    assert recording_sleep.delays == [0.5 * 2**index for index in range(9)]


@pytest.mark.asyncio
async def test_max_attempts_bounds_the_number_of_calls(make_client: Callable[..., Any]) -> None:
    client, stub = make_client([RuntimeError("one"), RuntimeError("two")], max_attempts=2)

    with pytest.raises(RuntimeError, match="two"):
        await client.call_function(build_bool_request("q", model="m"))

    assert stub.call_count == 2


@pytest.mark.asyncio
async def test_response_without_tool_call_is_retried(make_client: Callable[..., Any]) -> None:
    client, stub = make_client([text_response("I think yes"), tool_response({"value": True})])

    raw = await client.call_function(build_bool_request("q", model="m"))

    assert raw == '{"value": true}'
    assert stub.call_count == 2


@pytest.mark.asyncio
async def test_missing_tool_call_surfaces_after_budget(make_client: Callable[..., Any]) -> None:
    client, _ = make_client([text_response("nope")], max_attempts=1)

    with pytest.raises(CompletionFormatError, match="answer"):
        await client.call_function(build_bool_request("q", model="m"))


def test_extract_function_arguments_accepts_legacy_function_call() -> None:
    message = SimpleNamespace(
        content=None,
        tool_calls=None,
        function_call=SimpleNamespace(name="answer", arguments='{"value": false}'),
    )
    response = SimpleNamespace(choices=[SimpleNamespace(message=message)])

    assert LLMClient.extract_function_arguments(response, "answer") == '{"value": false}'


def test_extract_function_arguments_ignores_other_functions() -> None:
    response = tool_response({"value": 1}, name="something_else")

    with pytest.raises(CompletionFormatError):
        LLMClient.extract_function_arguments(response, "answer")


def test_extract_content_requires_choices() -> None:
    with pytest.raises(CompletionFormatError, match="choices"):
        LLMClient.extract_content(SimpleNamespace(choices=[]))


@pytest.mark.asyncio
async def test_complete_text_returns_content_verbatim(make_client: Callable[..., Any]) -> None:
    client, stub = make_client([text_response("  Paris.\n")])

    content = await client.complete_text(build_text_request("Capital of France?", model="m"))

    assert content == "  Paris.\n"
    assert "tools" not in stub.calls[0]


@pytest.mark.asyncio
async def test_usage_is_logged(make_client: Callable[..., Any], caplog: pytest.LogCaptureFixture) -> None:
    usage = SimpleNamespace(prompt_tokens=12, completion_tokens=3, total_tokens=15)
    client, _ = make_client([tool_response({"value": True}, usage=usage)])

    with caplog.at_level(logging.INFO, logger="promptcast.llm.client"):
        await client.call_function(build_bool_request("q", model="m"))

    records = [record for record in caplog.records if record.getMessage() == "LLM usage"]
    assert records
    assert records[0].total_tokens == 15  # type: ignore[attr-defined]


def test_rejects_non_positive_attempts() -> None:
    with pytest.raises(ValueError, match="max_attempts"):
        LLMClient(max_attempts=0)


def test_from_settings_copies_retry_policy() -> None:
    client = LLMClient.from_settings(PromptSettings(max_attempts=4))

    assert client.max_attempts == 4


@pytest.mark.asyncio
async def test_missing_credential_fails_on_first_call_not_construction(
    monkeypatch: pytest.MonkeyPatch, recording_sleep: RecordingSleep,
) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    client = LLMClient(sleep=recording_sleep)

    with pytest.raises(OpenAIError):
        await client.call_function(build_bool_request("q", model="m"))

    assert recording_sleep.delays == []


def test_sdk_client_is_created_once_per_event_loop(recording_sleep: RecordingSleep) -> None:
    """Separate ``asyncio.run`` calls never share an SDK client."""
    created: list[StubAsyncOpenAI] = []

    def factory() -> AsyncOpenAIClientProtocol:
        stub = StubAsyncOpenAI([tool_response({"value": True}), tool_response({"value": False})])
        created.append(stub)
        return typing.cast("AsyncOpenAIClientProtocol", stub)

    client = LLMClient(client_factory=factory, sleep=recording_sleep)
    request = build_bool_request("q", model="m")

    async def ask_twice() -> list[str]:
        return [await client.call_function(request), await client.call_function(request)]

    first = asyncio.run(ask_twice())
    second = asyncio.run(ask_twice())

    assert first == second == ['{"value": true}', '{"value": false}']
    assert len(created) == 2
    assert [stub.call_count for stub in created] == [2, 2]
