"""Action vocabulary of the computer tool and the request built from a tool call."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class Action(str, Enum):
    # Pointer
    MOUSE_MOVE = "mouse_move"
    LEFT_CLICK = "left_click"
    RIGHT_CLICK = "right_click"
    MIDDLE_CLICK = "middle_click"
    DOUBLE_CLICK = "double_click"
    TRIPLE_CLICK = "triple_click"
    LEFT_CLICK_DRAG = "left_click_drag"
    LEFT_MOUSE_DOWN = "left_mouse_down"
    LEFT_MOUSE_UP = "left_mouse_up"

    # Keyboard
    KEY = "key"
    TYPE = "type"
    HOLD_KEY = "hold_key"

    # System
    SCREENSHOT = "screenshot"
    CURSOR_POSITION = "cursor_position"
    SCROLL = "scroll"
    WAIT = "wait"

    @classmethod
    def values(cls) -> frozenset[str]:
        return frozenset(member.value for member in cls)


POINTER_ACTIONS = frozenset(
    {
        Action.MOUSE_MOVE,
        Action.LEFT_CLICK,
        Action.RIGHT_CLICK,
        Action.MIDDLE_CLICK,
        Action.DOUBLE_CLICK,
        Action.TRIPLE_CLICK,
        Action.LEFT_CLICK_DRAG,
        Action.LEFT_MOUSE_DOWN,
        Action.LEFT_MOUSE_UP,
    }
)

KEYBOARD_ACTIONS = frozenset({Action.KEY, Action.TYPE, Action.HOLD_KEY})

DURATION_ACTIONS = frozenset({Action.HOLD_KEY, Action.WAIT})

SCROLL_DIRECTIONS = ("up", "down", "left", "right")


@dataclass(frozen=True)
class ActionRequest:
    """Parameters of one computer tool call. Built per dispatch, never persisted."""

    action: Action
    text: Any = None
    coordinate: Any = None
    start_coordinate: Any = None
    scroll_direction: Any = None
    scroll_amount: Any = None
    duration: Any = None

    @classmethod
    def from_input(cls, tool_input: Dict[str, Any]) -> "ActionRequest":
        """Build a request from a raw tool-call payload.

        Both the snake_case wire names and camelCase variants are accepted
        for the scroll fields. Field values are left as given; validation
        happens separately.
        """
        return cls(
            action=Action(tool_input["action"]),
            text=tool_input.get("text"),
            coordinate=tool_input.get("coordinate"),
            start_coordinate=tool_input.get("start_coordinate"),
            scroll_direction=_first_present(tool_input, "scroll_direction", "scrollDirection"),
            scroll_amount=_first_present(tool_input, "scroll_amount", "scrollAmount"),
            duration=tool_input.get("duration"),
        )


def _first_present(data: Dict[str, Any], *keys: str) -> Optional[Any]:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None
