"""Shared capability types: the result object and the tool base class."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ToolResult:
    """Observation returned by a capability.

    Exactly one of ``output``/``error`` is the primary payload. ``base64_image``
    is an additive PNG screenshot and ``system`` is an annotation prepended to
    the text when the result is serialized.
    """

    output: Optional[str] = None
    error: Optional[str] = None
    base64_image: Optional[str] = None
    system: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return bool(self.error)

    def __bool__(self) -> bool:
        return any((self.output, self.error, self.base64_image, self.system))


class BaseTool(ABC):
    """A named, schema-described capability callable by the model."""

    name: str

    def __init__(self, page: Any, logger: Optional[logging.Logger] = None):
        self.page = page
        self.logger = logger or logging.getLogger("computer_use.tools")

    @abstractmethod
    def to_params(self) -> Dict[str, Any]:
        """Return the tool definition sent to the reasoning service."""

    @abstractmethod
    async def __call__(self, tool_input: Dict[str, Any]) -> ToolResult:
        """Execute one tool call."""
