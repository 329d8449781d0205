"""Sampling loop: drive the model through tool use against one Playwright page."""
from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from playwright.async_api import Page

from config.models import AgentConfig, ToolConfig
from exceptions import LoopStalledError, MaxIterationsExceededError
from llm_client import LLMClient
from message_processing import (
    PROMPT_CACHING_BETA_FLAG,
    inject_prompt_caching,
    make_api_tool_result,
    maybe_filter_to_n_most_recent_images,
    response_to_params,
)
from message_types import (
    EPHEMERAL_CACHE_CONTROL,
    ContentBlock,
    Message,
    ToolResultBlock,
    assistant_message,
    user_message,
)
from prompts import get_system_prompt
from tools.collection import ToolCollection, get_tool_group

TOKEN_EFFICIENT_TOOLS_BETA_FLAG = "token-efficient-tools-2025-02-19"

STOP_END_TURN = "end_turn"
STOP_TOOL_USE = "tool_use"


class LoopState(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class SamplingLoop:
    """Run one task to completion against a single page.

    Each iteration sends the whole history to the model, appends its reply,
    executes any tool calls it made and appends their results as one user
    message. The loop ends when the model stops naturally, when a turn has
    neither tool calls nor a pending tool-use stop, or when a tool dispatch
    raises (the error propagates). Iteration and stall caps bound the run.

    The page and the history are owned by this instance for the duration of
    ``run``; nothing here is safe to share between concurrent tasks.
    """

    def __init__(
        self,
        page: Page,
        config: Optional[AgentConfig] = None,
        tool_config: Optional[ToolConfig] = None,
        client: Optional[LLMClient] = None,
        tool_collection: Optional[ToolCollection] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.page = page
        self.config = config or AgentConfig()
        self.tool_config = tool_config or ToolConfig()
        self.logger = logger or logging.getLogger("computer_use.loop")
        self.client = client or LLMClient(
            api_key=self.config.api_key,
            max_retries=self.config.max_retries,
        )
        self.tool_group = get_tool_group(self.config.tool_version)
        self.tool_collection = tool_collection or ToolCollection.for_version(
            page,
            self.config.tool_version,
            tool_options=self.tool_config.tool_options(),
        )
        self.state = LoopState.RUNNING
        self.iterations = 0
        self.messages: List[Message] = []

    def _betas(self) -> List[str]:
        betas = [self.tool_group.beta_flag] if self.tool_group.beta_flag else []
        if self.config.token_efficient_tools_beta:
            betas.append(TOKEN_EFFICIENT_TOOLS_BETA_FLAG)
        if self.config.enable_prompt_caching:
            betas.append(PROMPT_CACHING_BETA_FLAG)
        return betas

    def _system_block(self, system_prompt_suffix: Optional[str]) -> Dict[str, Any]:
        suffix = system_prompt_suffix or self.config.system_prompt_suffix
        system: Dict[str, Any] = {"type": "text", "text": get_system_prompt(suffix)}
        if self.config.enable_prompt_caching:
            system["cache_control"] = dict(EPHEMERAL_CACHE_CONTROL)
        return system

    def _shape_history(self) -> None:
        """Place cache breakpoints, or prune old screenshots when caching is off."""
        if self.config.enable_prompt_caching:
            # Caching bounds growth on its own; image pruning is skipped.
            self.messages = inject_prompt_caching(self.messages)
            return
        keep = self.config.only_n_most_recent_images
        if keep:
            threshold = self.config.image_truncation_threshold or keep
            removed = maybe_filter_to_n_most_recent_images(self.messages, keep, threshold)
            if removed:
                self.logger.info(f"Pruned {removed} old screenshot(s) from the history")

    async def run(
        self,
        messages: List[Message],
        system_prompt_suffix: Optional[str] = None,
        thinking_budget: Optional[int] = None,
    ) -> List[Message]:
        """Run until the model is done and return the full history."""
        self.messages = list(messages)
        self.state = LoopState.RUNNING
        self.iterations = 0
        stalled_turns = 0

        # Architecture and date are read once per task.
        system = self._system_block(system_prompt_suffix)
        tools = self.tool_collection.to_params()
        betas = self._betas()
        if thinking_budget is None:
            thinking_budget = self.config.thinking_budget

        try:
            while True:
                if self.iterations >= self.config.max_iterations:
                    raise MaxIterationsExceededError(self.config.max_iterations)
                self.iterations += 1
                self.logger.info(f"Iteration {self.iterations}/{self.config.max_iterations}")

                self._shape_history()

                response = await self.client.create_message(
                    model=self.config.model,
                    system=[system],
                    messages=self.messages,
                    tools=tools,
                    betas=betas,
                    max_tokens=self.config.max_tokens,
                    thinking_budget=thinking_budget,
                )

                content = response_to_params(response)
                stop_reason = response.stop_reason
                self.logger.info(f"Stop reason: {stop_reason}")
                self.logger.debug(f"Response content: {_loggable_content(content)}")
                self.messages.append(assistant_message(content))

                if stop_reason == STOP_END_TURN:
                    self.logger.info("Model completed its task, ending loop")
                    self.state = LoopState.COMPLETED
                    return self.messages

                tool_results = await self._run_tool_calls(content)

                if tool_results:
                    stalled_turns = 0
                    self.messages.append(user_message(tool_results))
                    continue

                if stop_reason != STOP_TOOL_USE:
                    self.logger.info("No tool calls and not waiting for tool use, ending loop")
                    self.state = LoopState.COMPLETED
                    return self.messages

                stalled_turns += 1
                self.logger.warning(
                    f"Model asked for tool use without a tool call ({stalled_turns}/{self.config.max_stalled_turns})"
                )
                if stalled_turns >= self.config.max_stalled_turns:
                    raise LoopStalledError(stalled_turns)
        except Exception:
            self.state = LoopState.FAILED
            raise

    async def _run_tool_calls(self, content: List[ContentBlock]) -> List[ToolResultBlock]:
        results: List[ToolResultBlock] = []
        for block in content:
            if block.get("type") != "tool_use":
                continue
            try:
                result = await self.tool_collection.run(block["name"], block.get("input") or {})
            except Exception as e:
                self.logger.error(f"Tool {block.get('name')} failed: {e}")
                raise
            results.append(make_api_tool_result(result, block["id"]))
        return results


def _loggable_content(content: List[ContentBlock]) -> List[Dict[str, Any]]:
    loggable = []
    for block in content:
        if block.get("type") == "tool_use":
            loggable.append({"type": "tool_use", "name": block.get("name"), "input": block.get("input")})
        elif block.get("type") == "thinking":
            loggable.append({"type": "thinking", "thinking": block.get("thinking", "")[:200]})
        else:
            loggable.append(block)
    return loggable


async def computer_use_loop(
    query: str,
    page: Page,
    config: Optional[AgentConfig] = None,
    tool_config: Optional[ToolConfig] = None,
    system_prompt_suffix: Optional[str] = None,
    thinking_budget: Optional[int] = None,
    client: Optional[LLMClient] = None,
    logger: Optional[logging.Logger] = None,
) -> List[Message]:
    """Run a single-instruction task and return the conversation history."""
    loop = SamplingLoop(
        page,
        config=config,
        tool_config=tool_config,
        client=client,
        logger=logger,
    )
    return await loop.run(
        [user_message(query)],
        system_prompt_suffix=system_prompt_suffix,
        thinking_budget=thinking_budget,
    )
