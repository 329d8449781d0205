"""Key-name normalization for Playwright's keyboard API."""
from __future__ import annotations

from exceptions import InvalidKeyCombination

# Friendly modifier names to Playwright modifier keys.
MODIFIER_KEYS = {
    "ctrl": "Control",
    "control": "Control",
    "alt": "Alt",
    "option": "Alt",
    "shift": "Shift",
    "meta": "Meta",
    "cmd": "Meta",
    "command": "Meta",
    "win": "Meta",
    "super": "Meta",
    "super_l": "Meta",
}

KEY_ALIASES = {
    "return": "Enter",
    "enter": "Enter",
    "space": " ",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "up": "ArrowUp",
    "down": "ArrowDown",
    "home": "Home",
    "end": "End",
    "pageup": "PageUp",
    "page_up": "PageUp",
    "pagedown": "PageDown",
    "page_down": "PageDown",
    "delete": "Delete",
    "backspace": "Backspace",
    "tab": "Tab",
    "esc": "Escape",
    "escape": "Escape",
    "insert": "Insert",
    **{f"f{n}": f"F{n}" for n in range(1, 13)},
}


def to_playwright_key(key: str) -> str:
    """Map a human-friendly key name to Playwright's name; unknown names pass through."""
    if not key:
        raise InvalidKeyCombination("Key cannot be empty", field="text")
    lowered = key.lower()
    if lowered in KEY_ALIASES:
        return KEY_ALIASES[lowered]
    if lowered in MODIFIER_KEYS:
        return MODIFIER_KEYS[lowered]
    return key


def parse_key_combination(combo: str) -> list[str]:
    """Split a ``+``-joined combination such as ``ctrl+shift+a`` into Playwright keys, in order."""
    if not combo:
        raise InvalidKeyCombination("Key combination cannot be empty", field="text")
    keys = []
    for part in combo.split("+"):
        token = part.strip()
        if not token:
            raise InvalidKeyCombination(f"Invalid key combination {combo!r}: empty key", field="text")
        keys.append(to_playwright_key(token))
    return keys
