"""Playwright tool: an allow-listed slice of the page API, currently just ``goto``."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit, urlunsplit

from playwright.async_api import Error as PlaywrightError, Page, TimeoutError as PlaywrightTimeout

from exceptions import (
    CapabilityError,
    InvalidToolInput,
    InvalidUrl,
    NavigationError,
    UnsupportedMethod,
)
from tools.base import BaseTool, ToolResult

SUPPORTED_METHODS = ["goto"]

NAVIGATION_TIMEOUT_MS = 30000
NETWORK_IDLE_TIMEOUT_MS = 10000
NAVIGATION_SETTLE_MS = 1000

# Schemes that are absolute without a host part.
_HOSTLESS_SCHEMES = {"about", "data", "file", "blob"}


def normalize_url(raw: str) -> str:
    """Turn a URL or bare hostname into an absolute URL.

    ``example.com`` becomes ``https://example.com/``. Raises ``InvalidUrl`` if
    neither the input nor its ``https://``-prefixed form is a usable URL.
    """
    candidate = raw.strip()
    if not candidate:
        raise InvalidUrl(raw)
    for attempt in (candidate, f"https://{candidate}"):
        normalized = _parse_absolute(attempt)
        if normalized:
            return normalized
    raise InvalidUrl(raw)


def _parse_absolute(url: str) -> Optional[str]:
    if any(ch.isspace() for ch in url):
        return None
    try:
        parts = urlsplit(url)
        # Accessing .port validates it.
        parts.port
    except ValueError:
        return None
    scheme = parts.scheme.lower()
    if not scheme:
        return None
    if scheme in _HOSTLESS_SCHEMES:
        return urlunsplit((scheme, parts.netloc, parts.path, parts.query, parts.fragment))
    if not parts.netloc or not parts.hostname:
        return None
    userinfo, at, hostport = parts.netloc.rpartition("@")
    netloc = f"{userinfo}{at}{hostport.lower()}"
    return urlunsplit((scheme, netloc, parts.path or "/", parts.query, parts.fragment))


class PlaywrightTool(BaseTool):
    """Expose selected Playwright page methods behind the tool-call contract."""

    name = "playwright"

    def __init__(
        self,
        page: Page,
        navigation_timeout_ms: float = NAVIGATION_TIMEOUT_MS,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(page, logger)
        self.navigation_timeout_ms = navigation_timeout_ms

    def to_params(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": "custom",
            "input_schema": {
                "type": "object",
                "properties": {
                    "method": {
                        "type": "string",
                        "description": "The playwright function to call.",
                        "enum": list(SUPPORTED_METHODS),
                    },
                    "args": {
                        "type": "array",
                        "description": "The required arguments",
                        "items": {
                            "type": "string",
                            "description": "The argument to pass to the function",
                        },
                    },
                },
                "required": ["method", "args"],
            },
        }

    async def __call__(self, tool_input: Dict[str, Any]) -> ToolResult:
        method = tool_input.get("method")
        args = tool_input.get("args")
        if method not in SUPPORTED_METHODS:
            raise UnsupportedMethod(method, SUPPORTED_METHODS)
        if not isinstance(args, list):
            raise InvalidToolInput("args must be an array", field="args")

        try:
            return await self._goto(args)
        except CapabilityError as e:
            self.logger.warning(f"{method} failed: {e}")
            return ToolResult(error=str(e))

    async def _goto(self, args: List[Any]) -> ToolResult:
        if len(args) != 1:
            raise InvalidToolInput(
                "goto method requires exactly one argument: the URL", action="goto", field="args"
            )
        url = args[0]
        if not url or not isinstance(url, str):
            raise InvalidToolInput("URL must be a non-empty string", action="goto", field="args")

        target = normalize_url(url)
        self.logger.debug(f"Navigating to {target}")
        try:
            await self.page.goto(target, timeout=self.navigation_timeout_ms)
            await self.page.wait_for_load_state("networkidle", timeout=NETWORK_IDLE_TIMEOUT_MS)
            await self.page.wait_for_timeout(NAVIGATION_SETTLE_MS)
            current_url = self.page.url
            title = await self.page.title()
        except PlaywrightTimeout as e:
            raise NavigationError(
                f"Failed to navigate to {target}: timed out",
                url=target,
                timeout=self.navigation_timeout_ms,
            ) from e
        except PlaywrightError as e:
            raise NavigationError(f"Failed to navigate to {target}: {e}", url=target) from e

        return ToolResult(output=f'Successfully navigated to {current_url}. Page title: "{title}"')
