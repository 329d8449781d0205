"""Computer-use agent: one instruction in, one answer out."""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, List, Optional, TypeVar, overload

from playwright.async_api import Page
from pydantic import TypeAdapter, ValidationError as SchemaValidationError

from config.models import AgentConfig, ComputerUseConfig, ToolConfig
from exceptions import LLMResponseError, StructuredResultError
from llm_client import LLMClient
from loop import SamplingLoop
from message_types import Message, extract_text, user_message

T = TypeVar("T")

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*\n?([\s\S]*?)\n?```")
_BRACED_OBJECT = re.compile(r"\{[\s\S]*\}")


def build_structured_query(query: str, json_schema: dict[str, Any]) -> str:
    """Append the schema and a JSON-only directive to ``query``."""
    return (
        f"{query}\n\n"
        "Please respond with a valid JSON object that matches this JSON Schema:\n"
        f"```json\n{json.dumps(json_schema, indent=2)}\n```\n\n"
        "Respond ONLY with the JSON object, no additional text."
    )


def parse_json_response(response: str) -> Any:
    """Extract a JSON value from free-form model text.

    Tries, in order: the first fenced code block, the widest ``{...}`` span,
    then the whole trimmed text. The first candidate that parses wins.
    """
    strategies: List[Callable[[str], Optional[str]]] = [
        _fenced_block,
        _braced_object,
        lambda text: text.strip(),
    ]
    for strategy in strategies:
        candidate = strategy(response)
        if not candidate:
            continue
        try:
            return json.loads(candidate)
        except ValueError:
            continue
    raise StructuredResultError("Response does not contain valid JSON", raw_text=response)


def _fenced_block(text: str) -> Optional[str]:
    match = _FENCED_BLOCK.search(text)
    return match.group(1).strip() if match else None


def _braced_object(text: str) -> Optional[str]:
    match = _BRACED_OBJECT.search(text)
    return match.group(0) if match else None


def last_assistant_text(messages: List[Message]) -> str:
    for message in reversed(messages):
        if message.get("role") == "assistant":
            return extract_text(message)
    raise LLMResponseError("No response received")


class ComputerUseAgent:
    """Execute natural-language tasks on a Playwright page.

    ``execute`` returns the model's final text, or, when a result type is
    given, the final JSON validated against that type. Any type pydantic's
    ``TypeAdapter`` accepts works: a model class, ``list[Model]``,
    ``dict[str, int]`` and so on.
    """

    def __init__(
        self,
        page: Page,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        config: Optional[ComputerUseConfig] = None,
        client: Optional[LLMClient] = None,
        logger: Optional[logging.Logger] = None,
    ):
        config = config or ComputerUseConfig()
        overrides = {key: value for key, value in (("api_key", api_key), ("model", model)) if value}
        self.agent_config: AgentConfig = config.agent.model_copy(update=overrides)
        self.tool_config: ToolConfig = config.tools
        self.page = page
        self.logger = logger or logging.getLogger("computer_use.agent")
        self.client = client or LLMClient(
            api_key=self.agent_config.api_key,
            max_retries=self.agent_config.max_retries,
        )

    @overload
    async def execute(
        self,
        query: str,
        schema: None = None,
        system_prompt_suffix: Optional[str] = None,
        thinking_budget: Optional[int] = None,
    ) -> str: ...

    @overload
    async def execute(
        self,
        query: str,
        schema: type[T],
        system_prompt_suffix: Optional[str] = None,
        thinking_budget: Optional[int] = None,
    ) -> T: ...

    async def execute(
        self,
        query: str,
        schema: Any = None,
        system_prompt_suffix: Optional[str] = None,
        thinking_budget: Optional[int] = None,
    ) -> Any:
        """Run ``query`` to completion and return the answer."""
        adapter = TypeAdapter(schema) if schema is not None else None
        final_query = query
        if adapter is not None:
            final_query = build_structured_query(query, adapter.json_schema())

        self.logger.info(f"Executing task: {query[:200]}")
        loop = SamplingLoop(
            self.page,
            config=self.agent_config,
            tool_config=self.tool_config,
            client=self.client,
            logger=self.logger.getChild("loop"),
        )
        messages = await loop.run(
            [user_message(final_query)],
            system_prompt_suffix=system_prompt_suffix,
            thinking_budget=thinking_budget,
        )
        self.logger.info(f"Task finished after {loop.iterations} iteration(s)")

        response = last_assistant_text(messages)
        if adapter is None:
            return response

        parsed = parse_json_response(response)
        try:
            return adapter.validate_python(parsed)
        except SchemaValidationError as e:
            raise StructuredResultError(
                f"Response does not match the requested shape: {e.error_count()} error(s)",
                raw_text=response,
                errors=e.errors(include_url=False),
            ) from e
