"""Unit tests for the Messages API adapter."""
from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest
from tenacity import wait_none

from exceptions import LLMConnectionError, LLMError, LLMResponseError
from llm_client import LLMClient

REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


@pytest.fixture
def sdk_client():
    client = MagicMock()
    client.beta.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[], stop_reason="end_turn")
    )
    return client


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr(LLMClient.create_message.retry, "wait", wait_none())


def _call_kwargs(**overrides):
    kwargs = dict(
        model="claude-sonnet-4-20250514",
        system=[{"type": "text", "text": "sys"}],
        messages=[{"role": "user", "content": "hi"}],
        tools=[],
        betas=["computer-use-2025-01-24"],
        max_tokens=1024,
    )
    kwargs.update(overrides)
    return kwargs


class TestCreateMessage:

    @pytest.mark.asyncio
    async def test_forwards_request(self, sdk_client):
        client = LLMClient(client=sdk_client)
        response = await client.create_message(**_call_kwargs())

        assert response.stop_reason == "end_turn"
        sent = sdk_client.beta.messages.create.await_args.kwargs
        assert sent["betas"] == ["computer-use-2025-01-24"]
        assert "thinking" not in sent

    @pytest.mark.asyncio
    async def test_thinking_budget(self, sdk_client):
        client = LLMClient(client=sdk_client)
        await client.create_message(**_call_kwargs(thinking_budget=2048))

        sent = sdk_client.beta.messages.create.await_args.kwargs
        assert sent["thinking"] == {"type": "enabled", "budget_tokens": 2048}

    @pytest.mark.asyncio
    async def test_connection_errors_are_retried(self, sdk_client):
        sdk_client.beta.messages.create.side_effect = [
            anthropic.APIConnectionError(request=REQUEST),
            SimpleNamespace(content=[], stop_reason="end_turn"),
        ]
        client = LLMClient(client=sdk_client)

        response = await client.create_message(**_call_kwargs())

        assert response.stop_reason == "end_turn"
        assert sdk_client.beta.messages.create.await_count == 2

    @pytest.mark.asyncio
    async def test_connection_errors_surface_after_retries(self, sdk_client):
        sdk_client.beta.messages.create.side_effect = anthropic.APIConnectionError(request=REQUEST)
        client = LLMClient(client=sdk_client)

        with pytest.raises(LLMConnectionError):
            await client.create_message(**_call_kwargs())
        assert sdk_client.beta.messages.create.await_count == 3

    @pytest.mark.asyncio
    async def test_status_errors_are_not_retried(self, sdk_client):
        response = httpx.Response(500, request=REQUEST)
        sdk_client.beta.messages.create.side_effect = anthropic.InternalServerError(
            "overloaded", response=response, body=None
        )
        client = LLMClient(client=sdk_client)

        with pytest.raises(LLMError) as exc_info:
            await client.create_message(**_call_kwargs())
        assert "500" in str(exc_info.value)
        assert sdk_client.beta.messages.create.await_count == 1

    @pytest.mark.asyncio
    async def test_missing_content(self, sdk_client):
        sdk_client.beta.messages.create.return_value = SimpleNamespace(content=None, stop_reason=None)
        client = LLMClient(client=sdk_client)

        with pytest.raises(LLMResponseError):
            await client.create_message(**_call_kwargs())
