"""Precondition checks for computer tool actions. No side effects."""
from __future__ import annotations

from numbers import Real
from typing import AbstractSet, Any

from exceptions import (
    DurationTooLong,
    InvalidDuration,
    MalformedCoordinate,
    MissingParameterError,
)
from tools.actions import DURATION_ACTIONS, Action, ActionRequest

MAX_DURATION_SECONDS = 100


def validate_text(text: Any, required: bool, action: str) -> None:
    if required and not text:
        raise MissingParameterError(f"text is required for {action}", action=action, field="text")
    if text is not None and not isinstance(text, str):
        raise MissingParameterError(f"{text!r} must be a string", action=action, field="text")


def validate_coordinate(coordinate: Any, required: bool, action: str) -> None:
    if coordinate is None:
        if required:
            raise MissingParameterError(
                f"coordinate is required for {action}", action=action, field="coordinate"
            )
        return
    coordinates_from(coordinate, action)


def coordinates_from(coordinate: Any, action: str | None = None) -> tuple[int, int]:
    """Return ``coordinate`` as an ``(x, y)`` tuple of non-negative ints."""
    if not isinstance(coordinate, (list, tuple)) or len(coordinate) != 2:
        raise MalformedCoordinate(coordinate, action=action)
    for value in coordinate:
        # bool is an int subclass but never a meaningful coordinate
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise MalformedCoordinate(coordinate, action=action)
    return int(coordinate[0]), int(coordinate[1])


def validate_duration(duration: Any, action: str) -> None:
    if duration is None or isinstance(duration, bool) or not isinstance(duration, Real):
        raise InvalidDuration(duration, action=action)
    if duration < 0:
        raise InvalidDuration(duration, action=action)
    if duration > MAX_DURATION_SECONDS:
        raise DurationTooLong(duration, MAX_DURATION_SECONDS, action=action)


def validate_action_params(
    request: ActionRequest,
    pointer_actions: AbstractSet[Action],
    keyboard_actions: AbstractSet[Action],
) -> None:
    """Check ``request`` against the requirements of its action family.

    Keyboard actions need ``text``, pointer actions need ``coordinate``, and
    ``hold_key``/``wait`` need a ``duration`` in ``[0, 100]`` seconds.
    Optional fields are still type-checked when present.
    """
    action = request.action.value
    validate_text(request.text, request.action in keyboard_actions, action)
    validate_coordinate(request.coordinate, request.action in pointer_actions, action)
    if request.action in DURATION_ACTIONS:
        validate_duration(request.duration, action)
