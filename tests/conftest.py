"""Pytest fixtures for computer-use agent tests."""
from __future__ import annotations

import copy
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from config import AgentConfig, ToolConfig
from tools.computer import ComputerTool

FAKE_PNG = b"\x89PNG\r\n\x1a\nfake_screenshot_data"


@pytest.fixture
def mock_page() -> MagicMock:
    """Create a mock Playwright page for testing."""
    page = MagicMock()
    page.url = "https://example.com/"
    page.screenshot = AsyncMock(return_value=FAKE_PNG)
    page.wait_for_timeout = AsyncMock()
    page.evaluate = AsyncMock(return_value=None)
    page.goto = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.title = AsyncMock(return_value="Example Domain")

    page.mouse.move = AsyncMock()
    page.mouse.click = AsyncMock()
    page.mouse.dblclick = AsyncMock()
    page.mouse.down = AsyncMock()
    page.mouse.up = AsyncMock()
    page.mouse.wheel = AsyncMock()

    page.keyboard.down = AsyncMock()
    page.keyboard.up = AsyncMock()
    page.keyboard.type = AsyncMock()
    return page


@pytest.fixture
def computer_tool(mock_page: MagicMock) -> ComputerTool:
    """Computer tool with no screenshot delay."""
    return ComputerTool(mock_page, version="20250124", screenshot_delay=0)


@pytest.fixture
def agent_config() -> AgentConfig:
    """Loop config without thinking so requests stay small."""
    return AgentConfig(api_key="test-key", thinking_budget=None)


@pytest.fixture
def tool_config() -> ToolConfig:
    return ToolConfig(screenshot_delay=0)


def make_response(content: List[Any], stop_reason: Optional[str]) -> SimpleNamespace:
    """Build an object shaped like a beta message."""
    return SimpleNamespace(content=content, stop_reason=stop_reason)


def text_block(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


def tool_use_block(tool_id: str, name: str, tool_input: Dict[str, Any]) -> Dict[str, Any]:
    return {"type": "tool_use", "id": tool_id, "name": name, "input": tool_input}


class ScriptedClient:
    """Stand-in for LLMClient that replays canned responses and records each request."""

    def __init__(self, responses: List[Any]):
        self.responses = list(responses)
        self.requests: List[Dict[str, Any]] = []
        self.create_message = AsyncMock(side_effect=self._create_message)

    async def _create_message(self, **kwargs: Any) -> Any:
        # Snapshot: the loop keeps appending to the same history list.
        self.requests.append(copy.deepcopy(kwargs))
        if not self.responses:
            raise AssertionError("ScriptedClient ran out of responses")
        return self.responses.pop(0)


@pytest.fixture
def scripted_client():
    """Factory for a client that replays the given responses."""

    def _factory(*responses: Any) -> ScriptedClient:
        return ScriptedClient(list(responses))

    return _factory
