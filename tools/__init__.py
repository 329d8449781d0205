"""Browser capabilities exposed to the model as tools."""
from tools.actions import Action, ActionRequest
from tools.base import BaseTool, ToolResult
from tools.collection import (
    DEFAULT_TOOL_VERSION,
    TOOL_GROUPS,
    TOOL_GROUPS_BY_VERSION,
    ToolCollection,
    ToolGroup,
    ToolVersion,
    get_tool_group,
)
from tools.computer import ComputerTool, ComputerTool20241022, ComputerTool20250124
from tools.playwright import PlaywrightTool

__all__ = [
    "Action",
    "ActionRequest",
    "BaseTool",
    "ToolResult",
    "DEFAULT_TOOL_VERSION",
    "TOOL_GROUPS",
    "TOOL_GROUPS_BY_VERSION",
    "ToolCollection",
    "ToolGroup",
    "ToolVersion",
    "get_tool_group",
    "ComputerTool",
    "ComputerTool20241022",
    "ComputerTool20250124",
    "PlaywrightTool",
]
