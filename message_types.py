"""Content blocks and messages exchanged with the reasoning service.

These mirror the beta Messages API wire format so that a history can be sent
back to the service as-is. Blocks are plain dicts; the TypedDicts below only
document their shape.
"""
from __future__ import annotations

from typing import Any, Dict, List, Literal, TypedDict, Union


class CacheControl(TypedDict):
    type: Literal["ephemeral"]


EPHEMERAL_CACHE_CONTROL: CacheControl = {"type": "ephemeral"}


class TextBlock(TypedDict, total=False):
    type: Literal["text"]
    text: str
    cache_control: CacheControl


class ImageSource(TypedDict):
    type: Literal["base64"]
    media_type: Literal["image/png"]
    data: str


class ImageBlock(TypedDict, total=False):
    type: Literal["image"]
    source: ImageSource
    cache_control: CacheControl


class ToolUseBlock(TypedDict, total=False):
    type: Literal["tool_use"]
    id: str
    name: str
    input: Dict[str, Any]
    cache_control: CacheControl


class ThinkingBlock(TypedDict, total=False):
    type: Literal["thinking"]
    thinking: str
    signature: str
    cache_control: CacheControl


class ToolResultBlock(TypedDict, total=False):
    type: Literal["tool_result"]
    tool_use_id: str
    content: List[Union[TextBlock, ImageBlock]]
    is_error: bool
    cache_control: CacheControl


ContentBlock = Union[TextBlock, ImageBlock, ToolUseBlock, ThinkingBlock, ToolResultBlock]

Role = Literal["user", "assistant"]


class Message(TypedDict):
    role: Role
    content: Union[str, List[ContentBlock]]


def user_message(content: Union[str, List[ContentBlock]]) -> Message:
    return {"role": "user", "content": content}


def assistant_message(content: List[ContentBlock]) -> Message:
    return {"role": "assistant", "content": content}


def extract_text(message: Message) -> str:
    """Concatenate the text blocks of a message (or return its string content)."""
    content = message.get("content")
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            block.get("text", "") or ""
            for block in content
            if isinstance(block, dict) and block.get("type") == "text"
        )
    return ""
