"""Computer tool: mouse, keyboard and screenshot actions against a Playwright page."""
from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Dict, Literal, Optional

from playwright.async_api import Error as PlaywrightError, Page

from exceptions import (
    CapabilityError,
    CursorUnavailable,
    InvalidScrollParameters,
    ScreenshotError,
    UnsupportedAction,
    ValidationError,
)
from tools.actions import (
    KEYBOARD_ACTIONS,
    POINTER_ACTIONS,
    SCROLL_DIRECTIONS,
    Action,
    ActionRequest,
)
from tools.base import BaseTool, ToolResult
from tools.keyboard import parse_key_combination, to_playwright_key
from tools.validator import coordinates_from, validate_action_params

ComputerToolVersion = Literal["20241022", "20250124"]
MouseButton = Literal["left", "right", "middle"]

DISPLAY_WIDTH = 1280
DISPLAY_HEIGHT = 720

SCREENSHOT_DELAY_SECONDS = 2.0
POINTER_SETTLE_MS = 100
ACTION_SETTLE_MS = 500
TYPING_DELAY_MS = 12
DEFAULT_SCROLL_PX = 100
DRAG_STEPS = 10

# Actions that only exist from the 20250124 tool onwards.
_VERSIONED_ACTIONS = {Action.SCROLL: "20250124", Action.WAIT: "20250124"}

_BUTTONS: dict[Action, MouseButton] = {
    Action.LEFT_CLICK: "left",
    Action.DOUBLE_CLICK: "left",
    Action.TRIPLE_CLICK: "left",
    Action.LEFT_CLICK_DRAG: "left",
    Action.LEFT_MOUSE_DOWN: "left",
    Action.LEFT_MOUSE_UP: "left",
    Action.RIGHT_CLICK: "right",
    Action.MIDDLE_CLICK: "middle",
}

_CURSOR_POSITION_JS = """() => {
    const selection = window.getSelection();
    if (!selection || selection.rangeCount === 0) return null;
    const rect = selection.getRangeAt(0).getBoundingClientRect();
    return rect ? { x: rect.x, y: rect.y } : null;
}"""


class ComputerTool(BaseTool):
    """Translate computer tool actions into Playwright mouse/keyboard calls.

    Every state-changing action returns a fresh screenshot so the model can
    see its effect. Browser failures come back as error results; malformed
    input raises before the page is touched.
    """

    name = "computer"

    def __init__(
        self,
        page: Page,
        version: ComputerToolVersion = "20250124",
        screenshot_delay: float = SCREENSHOT_DELAY_SECONDS,
        typing_delay_ms: int = TYPING_DELAY_MS,
        logger: Optional[logging.Logger] = None,
    ):
        super().__init__(page, logger)
        self.version = version
        self.screenshot_delay = screenshot_delay
        self.typing_delay_ms = typing_delay_ms

    @property
    def api_type(self) -> str:
        return f"computer_{self.version}"

    @property
    def supported_actions(self) -> frozenset[Action]:
        return frozenset(a for a in Action if self.supports(a))

    def supports(self, action: Action) -> bool:
        required = _VERSIONED_ACTIONS.get(action)
        return required is None or self.version >= required

    def to_params(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.api_type,
            "display_width_px": DISPLAY_WIDTH,
            "display_height_px": DISPLAY_HEIGHT,
            "display_number": None,
        }

    async def __call__(self, tool_input: Dict[str, Any]) -> ToolResult:
        raw_action = tool_input.get("action")
        if not isinstance(raw_action, str) or raw_action not in Action.values():
            raise UnsupportedAction(raw_action)
        request = ActionRequest.from_input(tool_input)
        if not self.supports(request.action):
            raise UnsupportedAction(request.action.value, version=self.version)

        validate_action_params(request, POINTER_ACTIONS, KEYBOARD_ACTIONS)
        self.logger.debug(f"Executing {request.action.value}: {tool_input}")

        try:
            return await self._dispatch(request)
        except CapabilityError as e:
            self.logger.warning(f"{request.action.value} failed: {e}")
            return ToolResult(error=str(e))

    async def _dispatch(self, request: ActionRequest) -> ToolResult:
        action = request.action
        if action == Action.SCREENSHOT:
            return await self.screenshot()
        if action == Action.CURSOR_POSITION:
            return await self._cursor_position()
        if action == Action.SCROLL:
            return await self._scroll(request)
        if action == Action.WAIT:
            await asyncio.sleep(request.duration)
            return await self.screenshot()
        if action in POINTER_ACTIONS:
            return await self._pointer_action(request)
        if action in KEYBOARD_ACTIONS:
            return await self._keyboard_action(request)
        raise UnsupportedAction(action.value)

    async def screenshot(self) -> ToolResult:
        """Wait for the page to settle, then capture it as a base64 PNG."""
        await asyncio.sleep(self.screenshot_delay)
        try:
            shot = await self.page.screenshot(type="png")
        except PlaywrightError as e:
            raise ScreenshotError(f"Failed to take screenshot: {e}") from e
        self.logger.debug(f"Screenshot taken, size: {len(shot)} bytes")
        return ToolResult(base64_image=base64.b64encode(shot).decode("ascii"))

    async def _cursor_position(self) -> ToolResult:
        try:
            position = await self.page.evaluate(_CURSOR_POSITION_JS)
        except PlaywrightError as e:
            raise CursorUnavailable(str(e)) from e
        if not position:
            raise CursorUnavailable("no text selection on the page")
        return ToolResult(output=f"X={position['x']},Y={position['y']}")

    async def _scroll(self, request: ActionRequest) -> ToolResult:
        direction = request.scroll_direction
        amount = request.scroll_amount
        if direction not in SCROLL_DIRECTIONS:
            raise InvalidScrollParameters(
                f'Scroll direction "{direction}" must be \'up\', \'down\', \'left\', or \'right\'',
                action=request.action.value,
                field="scroll_direction",
            )
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount < 0:
            raise InvalidScrollParameters(
                f'Scroll amount "{amount}" must be a non-negative number',
                action=request.action.value,
                field="scroll_amount",
            )

        if request.coordinate is not None:
            x, y = coordinates_from(request.coordinate, request.action.value)
            await self.page.mouse.move(x, y)
            await self.page.wait_for_timeout(POINTER_SETTLE_MS)

        # Amount is in pixels; 0 means a default-sized scroll.
        delta = amount or DEFAULT_SCROLL_PX
        if direction in ("up", "down"):
            await self.page.mouse.wheel(0, delta if direction == "down" else -delta)
        else:
            await self.page.mouse.wheel(delta if direction == "right" else -delta, 0)

        await self.page.wait_for_timeout(ACTION_SETTLE_MS)
        return await self.screenshot()

    async def _pointer_action(self, request: ActionRequest) -> ToolResult:
        action = request.action
        x, y = coordinates_from(request.coordinate, action.value)
        mouse = self.page.mouse

        if action == Action.LEFT_CLICK_DRAG:
            if request.start_coordinate is not None:
                start_x, start_y = coordinates_from(request.start_coordinate, action.value)
                await mouse.move(start_x, start_y)
                await self.page.wait_for_timeout(POINTER_SETTLE_MS)
            await mouse.down()
            await mouse.move(x, y, steps=DRAG_STEPS)
            await mouse.up()
        else:
            await mouse.move(x, y)
            await self.page.wait_for_timeout(POINTER_SETTLE_MS)

            if action == Action.LEFT_MOUSE_DOWN:
                await mouse.down()
            elif action == Action.LEFT_MOUSE_UP:
                await mouse.up()
            elif action != Action.MOUSE_MOVE:
                button = self._mouse_button(action)
                if action == Action.DOUBLE_CLICK:
                    await mouse.dblclick(x, y, button=button)
                elif action == Action.TRIPLE_CLICK:
                    await mouse.click(x, y, button=button, click_count=3)
                else:
                    await mouse.click(x, y, button=button)

        await self.page.wait_for_timeout(ACTION_SETTLE_MS)
        return await self.screenshot()

    async def _keyboard_action(self, request: ActionRequest) -> ToolResult:
        action = request.action
        text: str = request.text
        keyboard = self.page.keyboard

        if action == Action.HOLD_KEY:
            key = to_playwright_key(text)
            await keyboard.down(key)
            await asyncio.sleep(request.duration)
            await keyboard.up(key)
        elif action == Action.KEY:
            keys = parse_key_combination(text)
            for key in keys:
                await keyboard.down(key)
            for key in reversed(keys):
                await keyboard.up(key)
        else:
            await keyboard.type(text, delay=self.typing_delay_ms)

        await self.page.wait_for_timeout(ACTION_SETTLE_MS)
        return await self.screenshot()

    @staticmethod
    def _mouse_button(action: Action) -> MouseButton:
        try:
            return _BUTTONS[action]
        except KeyError:
            raise ValidationError(f"Invalid mouse action: {action.value}", action=action.value) from None


class ComputerTool20241022(ComputerTool):
    """Computer tool without scroll/wait."""

    def __init__(self, page: Page, **kwargs: Any):
        super().__init__(page, version="20241022", **kwargs)


class ComputerTool20250124(ComputerTool):
    """Computer tool with scroll and wait."""

    def __init__(self, page: Page, **kwargs: Any):
        super().__init__(page, version="20250124", **kwargs)
