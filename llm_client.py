"""Thin async adapter over the Anthropic beta Messages API."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import anthropic
from anthropic import AsyncAnthropic
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from exceptions import LLMConnectionError, LLMError, LLMResponseError
from message_types import Message

logger = logging.getLogger("computer_use.llm")


class LLMClient:
    """Send one sampling request and return the raw beta message.

    The SDK client retries transient HTTP failures itself (``max_retries``);
    connection failures that survive those retries get a few more attempts
    with exponential backoff before surfacing as ``LLMConnectionError``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        max_retries: int = 4,
        client: Optional[AsyncAnthropic] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.client = client or AsyncAnthropic(api_key=api_key, max_retries=max_retries)
        self.logger = logger or logging.getLogger("computer_use.llm")

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=2.0, min=2.0, max=10),
        retry=retry_if_exception_type(LLMConnectionError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def create_message(
        self,
        *,
        model: str,
        system: List[Dict[str, Any]],
        messages: List[Message],
        tools: List[Dict[str, Any]],
        betas: List[str],
        max_tokens: int,
        thinking_budget: Optional[int] = None,
    ) -> Any:
        """Call ``beta.messages.create``; the response has ``content`` and ``stop_reason``."""
        create_kwargs: Dict[str, Any] = {
            "model": model,
            "system": system,
            "messages": messages,
            "tools": tools,
            "betas": betas,
            "max_tokens": max_tokens,
        }
        if thinking_budget:
            create_kwargs["thinking"] = {"type": "enabled", "budget_tokens": thinking_budget}

        try:
            response = await self.client.beta.messages.create(**create_kwargs)
        except anthropic.APIConnectionError as e:
            raise LLMConnectionError(f"Could not reach the reasoning service: {e}") from e
        except anthropic.APIStatusError as e:
            raise LLMError(f"Model call failed with status {e.status_code}: {e.message}") from e

        if response.content is None:
            raise LLMResponseError("Response carried no content")
        return response
