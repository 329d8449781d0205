"""Tool registry and the tool groups selected by protocol version."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Literal, Optional, Tuple

from exceptions import InvalidToolCall, UnknownAction, UnknownTool
from tools.actions import Action
from tools.base import BaseTool, ToolResult
from tools.computer import ComputerTool20241022, ComputerTool20250124
from tools.playwright import PlaywrightTool

ToolVersion = Literal["computer_use_20241022", "computer_use_20250124", "computer_use_20250429"]

DEFAULT_TOOL_VERSION: ToolVersion = "computer_use_20250429"

ToolFactory = Callable[..., BaseTool]


@dataclass(frozen=True)
class ToolGroup:
    version: ToolVersion
    tools: Tuple[ToolFactory, ...]
    beta_flag: Optional[str]


TOOL_GROUPS: Tuple[ToolGroup, ...] = (
    ToolGroup(
        version="computer_use_20241022",
        tools=(ComputerTool20241022, PlaywrightTool),
        beta_flag="computer-use-2024-10-22",
    ),
    ToolGroup(
        version="computer_use_20250124",
        tools=(ComputerTool20250124, PlaywrightTool),
        beta_flag="computer-use-2025-01-24",
    ),
    # 20250429 reuses the 20250124 tools.
    ToolGroup(
        version="computer_use_20250429",
        tools=(ComputerTool20250124, PlaywrightTool),
        beta_flag="computer-use-2025-01-24",
    ),
)

TOOL_GROUPS_BY_VERSION: Dict[str, ToolGroup] = {group.version: group for group in TOOL_GROUPS}


def get_tool_group(version: Optional[str] = None) -> ToolGroup:
    selected = version or DEFAULT_TOOL_VERSION
    try:
        return TOOL_GROUPS_BY_VERSION[selected]
    except KeyError:
        raise ValueError(
            f"Unknown tool version {selected!r}; expected one of {sorted(TOOL_GROUPS_BY_VERSION)}"
        ) from None


class ToolCollection:
    """The capabilities available to one loop, keyed by tool name."""

    def __init__(self, *tools: BaseTool, logger: Optional[logging.Logger] = None):
        self.tools: Dict[str, BaseTool] = {tool.name: tool for tool in tools}
        self.logger = logger or logging.getLogger("computer_use.tools")

    @classmethod
    def for_version(
        cls,
        page: Any,
        version: Optional[str] = None,
        tool_options: Optional[Dict[str, Dict[str, Any]]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "ToolCollection":
        """Instantiate the tool group for ``version`` against ``page``.

        ``tool_options`` maps a tool name to extra constructor keyword arguments.
        """
        group = get_tool_group(version)
        tool_options = tool_options or {}
        tools = [
            factory(page, logger=logger, **tool_options.get(factory.name, {}))
            for factory in group.tools
        ]
        return cls(*tools, logger=logger)

    def to_params(self) -> List[Dict[str, Any]]:
        return [tool.to_params() for tool in self.tools.values()]

    async def run(self, name: str, tool_input: Dict[str, Any]) -> ToolResult:
        """Dispatch a tool call to the named tool after checking its input shape.

        Errors raised by the tool propagate to the caller.
        """
        tool = self.tools.get(name)
        if tool is None:
            raise UnknownTool(name, sorted(self.tools))
        if not isinstance(tool_input, dict):
            raise InvalidToolCall(f"Input for tool {name} must be an object", name)

        if name == PlaywrightTool.name:
            if not isinstance(tool_input.get("method"), str) or not isinstance(tool_input.get("args"), list):
                raise InvalidToolCall(
                    "Invalid input for playwright tool: method and args are required", name
                )
        else:
            action = tool_input.get("action")
            if not isinstance(action, str) or action not in Action.values():
                raise UnknownAction(action, name)

        self.logger.info(f"Running tool {name}: {_loggable_input(tool_input)}")
        return await tool(tool_input)


def _loggable_input(tool_input: Dict[str, Any]) -> str:
    return ", ".join(f"{key}={value!r}" for key, value in tool_input.items())
