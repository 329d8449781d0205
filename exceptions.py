"""Custom exception hierarchy for the computer-use agent."""
from __future__ import annotations

from typing import Any, Optional


class ComputerUseError(Exception):
    """Base exception for all computer-use errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# Capability exceptions
class ToolError(ComputerUseError):
    """Base exception for errors raised inside a capability."""

    pass


class ValidationError(ToolError):
    """Raised when an action's input is malformed. Checked before any browser call."""

    def __init__(self, message: str, action: Optional[str] = None, field: Optional[str] = None):
        details = {}
        if action:
            details["action"] = action
        if field:
            details["field"] = field
        super().__init__(message, details)
        self.action = action
        self.field = field


class MissingParameterError(ValidationError):
    """Raised when a required parameter is absent or has the wrong type."""

    pass


class MalformedCoordinate(ValidationError):
    """Raised when a coordinate is not a pair of non-negative integers."""

    def __init__(self, coordinate: Any, action: Optional[str] = None):
        super().__init__(
            f"{coordinate!r} must be a tuple of two non-negative integers",
            action=action,
            field="coordinate",
        )
        self.coordinate = coordinate


class InvalidDuration(ValidationError):
    """Raised when a duration is absent, not a number, or negative."""

    def __init__(self, duration: Any, action: Optional[str] = None):
        super().__init__(
            f"duration {duration!r} must be a non-negative number",
            action=action,
            field="duration",
        )
        self.duration = duration


class DurationTooLong(ValidationError):
    """Raised when a duration exceeds the allowed maximum."""

    def __init__(self, duration: Any, limit: float, action: Optional[str] = None):
        super().__init__(
            f"duration {duration!r} is too long (max {limit})",
            action=action,
            field="duration",
        )
        self.duration = duration
        self.limit = limit


class InvalidScrollParameters(ValidationError):
    """Raised when a scroll direction or amount is invalid."""

    pass


class InvalidKeyCombination(ValidationError):
    """Raised when a key combination cannot be parsed."""

    pass


class InvalidToolInput(ValidationError):
    """Raised when a navigation call carries the wrong arguments."""

    pass


class InvalidUrl(ValidationError):
    """Raised when a navigation target cannot be turned into a URL."""

    def __init__(self, url: Any):
        super().__init__(f"Invalid URL format: {url}", field="args")
        self.url = url


class UnsupportedAction(ToolError):
    """Raised when an action is unknown or unavailable in the selected tool version."""

    def __init__(self, action: Any, version: Optional[str] = None):
        details = {"action": action}
        if version:
            details["version"] = version
            message = f"{action} is not available in tool version {version}"
        else:
            message = f"Invalid action: {action}"
        super().__init__(message, details)
        self.action = action
        self.version = version


class CapabilityError(ToolError):
    """Raised when the browser did not cooperate. Returned to the model as an error result."""

    pass


class ScreenshotError(CapabilityError):
    """Raised when screenshot capture fails."""

    pass


class NavigationError(CapabilityError):
    """Raised when page navigation fails."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        details = {}
        if url:
            details["url"] = url
        if timeout:
            details["timeout"] = timeout
        super().__init__(message, details)
        self.url = url
        self.timeout = timeout


class CursorUnavailable(CapabilityError):
    """Raised when the page has no text selection to report a cursor position from."""

    def __init__(self, reason: Optional[str] = None):
        details = {"reason": reason} if reason else {}
        super().__init__("Failed to get cursor position", details)
        self.reason = reason


# Dispatch exceptions
class DispatchError(ComputerUseError):
    """Base exception for tool calls that violate the tool-use contract."""

    pass


class UnknownTool(DispatchError):
    """Raised when a tool call names a tool that is not registered."""

    def __init__(self, name: str, available: Optional[list[str]] = None):
        details = {"available": available} if available else {}
        super().__init__(f"Tool {name} not found", details)
        self.name = name


class UnknownAction(DispatchError):
    """Raised when a computer tool call carries no action or one outside the vocabulary."""

    def __init__(self, action: Any, tool_name: str):
        super().__init__(f"Invalid action {action} for tool {tool_name}", {"tool": tool_name})
        self.action = action
        self.tool_name = tool_name


class InvalidToolCall(DispatchError):
    """Raised when a tool call input does not have the shape its tool expects."""

    def __init__(self, message: str, tool_name: Optional[str] = None):
        super().__init__(message, {"tool": tool_name} if tool_name else {})
        self.tool_name = tool_name


class UnsupportedMethod(DispatchError):
    """Raised when a navigation call names a method that is not allow-listed."""

    def __init__(self, method: Any, supported: list[str]):
        super().__init__(
            f"Unsupported method: {method}. Supported methods: {', '.join(supported)}",
            {"method": method},
        )
        self.method = method
        self.supported = supported


# LLM-related exceptions
class LLMError(ComputerUseError):
    """Base exception for reasoning-service errors."""

    pass


class LLMConnectionError(LLMError):
    """Raised when unable to reach the reasoning service."""

    def __init__(self, message: str, base_url: Optional[str] = None):
        details = {"base_url": base_url} if base_url else {}
        super().__init__(message, details)
        self.base_url = base_url


class LLMResponseError(LLMError):
    """Raised when the reasoning service returns something unusable."""

    def __init__(self, message: str, response: Optional[str] = None):
        details = {"response_preview": response[:200]} if response else {}
        super().__init__(message, details)
        self.response = response


# Loop exceptions
class LoopError(ComputerUseError):
    """Base exception for conversation loop failures."""

    pass


class MaxIterationsExceededError(LoopError):
    """Raised when the loop exceeds its iteration cap."""

    def __init__(self, max_iterations: int):
        super().__init__(
            f"Loop exceeded maximum iterations ({max_iterations})",
            {"max_iterations": max_iterations},
        )
        self.max_iterations = max_iterations


class LoopStalledError(LoopError):
    """Raised when the model keeps asking for tool use without issuing a tool call."""

    def __init__(self, count: int):
        super().__init__(
            f"Model requested tool use {count} times in a row without a resolvable tool call",
            {"repeat_count": count},
        )
        self.count = count


# Structured result exceptions
class StructuredResultError(ComputerUseError):
    """Raised when the final answer is not valid JSON or does not match the requested shape."""

    def __init__(self, message: str, raw_text: Optional[str] = None, errors: Optional[list[Any]] = None):
        details: dict[str, Any] = {}
        if raw_text:
            details["raw_text"] = raw_text[:500]
        if errors:
            details["errors"] = errors
        super().__init__(message, details)
        self.raw_text = raw_text
        self.errors = errors or []


# Configuration exceptions
class ConfigurationError(ComputerUseError):
    """Raised when configuration is invalid."""

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """Raised when a required config file is not found."""

    def __init__(self, file_path: str):
        super().__init__(f"Configuration file not found: {file_path}", {"file_path": file_path})
        self.file_path = file_path
