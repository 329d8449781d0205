"""Pure transforms over the conversation history: response conversion, image pruning, cache markers."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from message_types import (
    EPHEMERAL_CACHE_CONTROL,
    ContentBlock,
    ImageBlock,
    Message,
    TextBlock,
    ToolResultBlock,
)
from tools.base import ToolResult

PROMPT_CACHING_BETA_FLAG = "prompt-caching-2024-07-31"
MAX_CACHE_BREAKPOINTS = 3


def response_to_params(response: Any) -> List[ContentBlock]:
    """Convert the content of a reasoning-service response into local content blocks.

    Text and thinking blocks are rebuilt with only the fields the service
    accepts back (thinking keeps its signature); anything else is dumped as is.
    """
    blocks: List[ContentBlock] = []
    for block in response.content:
        data = _block_to_dict(block)
        block_type = data.get("type")
        if block_type == "text":
            blocks.append({"type": "text", "text": data.get("text", "")})
        elif block_type == "thinking":
            thinking: Dict[str, Any] = {"type": "thinking", "thinking": data.get("thinking", "")}
            if data.get("signature"):
                thinking["signature"] = data["signature"]
            blocks.append(thinking)
        else:
            blocks.append(data)
    return blocks


def _block_to_dict(block: Any) -> Dict[str, Any]:
    if isinstance(block, dict):
        return dict(block)
    return block.model_dump(exclude_none=True)


def make_api_tool_result(result: ToolResult, tool_use_id: str) -> ToolResultBlock:
    """Serialize a ToolResult as a ``tool_result`` block answering ``tool_use_id``."""
    content: List[Any] = []
    if result.error:
        content.append(_text_block(_maybe_prepend_system_tool_result(result, result.error)))
    else:
        if result.output:
            content.append(_text_block(_maybe_prepend_system_tool_result(result, result.output)))
        if result.base64_image:
            content.append(_image_block(result.base64_image))
    return {
        "type": "tool_result",
        "content": content,
        "tool_use_id": tool_use_id,
        "is_error": result.is_error,
    }


def _maybe_prepend_system_tool_result(result: ToolResult, result_text: str) -> str:
    if result.system:
        return f"<system>{result.system}</system>\n{result_text}"
    return result_text


def _text_block(text: str) -> TextBlock:
    return {"type": "text", "text": text}


def _image_block(data: str) -> ImageBlock:
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": "image/png", "data": data},
    }


def _tool_result_blocks(messages: Iterable[Message]) -> List[ToolResultBlock]:
    return [
        block
        for message in messages
        if isinstance(message.get("content"), list)
        for block in message["content"]
        if isinstance(block, dict) and block.get("type") == "tool_result"
    ]


def _is_image(block: Any) -> bool:
    return isinstance(block, dict) and block.get("type") == "image"


def count_tool_result_images(messages: Iterable[Message]) -> int:
    return sum(
        sum(1 for item in block.get("content", []) if _is_image(item))
        for block in _tool_result_blocks(messages)
        if isinstance(block.get("content"), list)
    )


def maybe_filter_to_n_most_recent_images(
    messages: List[Message],
    images_to_keep: Optional[int],
    min_removal_threshold: int,
) -> int:
    """Strip the oldest screenshots from tool results, keeping roughly ``images_to_keep``.

    Images are only removed in multiples of ``min_removal_threshold`` so the
    prefix of the history changes rarely, which keeps it cache friendly.
    Mutates tool result blocks in place and returns how many images were removed.
    """
    if not images_to_keep:
        return 0
    threshold = max(1, min_removal_threshold)

    tool_results = _tool_result_blocks(messages)
    total_images = count_tool_result_images(messages)
    images_to_remove = max(0, (total_images - images_to_keep) // threshold * threshold)
    removed = images_to_remove

    for tool_result in tool_results:
        content = tool_result.get("content")
        if not isinstance(content, list) or images_to_remove <= 0:
            continue
        kept = []
        for item in content:
            if _is_image(item) and images_to_remove > 0:
                images_to_remove -= 1
                continue
            kept.append(item)
        tool_result["content"] = kept
    return removed


@dataclass(frozen=True)
class CacheBreakpoints:
    """Marker assignment for one history snapshot.

    ``marked`` holds the indices of messages whose last block gets a cache
    marker; ``cleared`` is the index of the first older candidate whose stale
    marker must be removed, if any.
    """

    marked: Tuple[int, ...]
    cleared: Optional[int] = None


def compute_cache_breakpoints(
    messages: List[Message], max_breakpoints: int = MAX_CACHE_BREAKPOINTS
) -> CacheBreakpoints:
    """Pick the newest ``max_breakpoints`` user messages with block content."""
    marked: List[int] = []
    for index in range(len(messages) - 1, -1, -1):
        message = messages[index]
        content = message.get("content")
        if message.get("role") != "user" or not isinstance(content, list) or not content:
            continue
        if len(marked) < max_breakpoints:
            marked.append(index)
        else:
            return CacheBreakpoints(marked=tuple(marked), cleared=index)
    return CacheBreakpoints(marked=tuple(marked))


def apply_cache_breakpoints(messages: List[Message], breakpoints: CacheBreakpoints) -> List[Message]:
    """Return a new history with markers set/cleared per ``breakpoints``.

    Only the touched messages and their last block are copied; the input list
    and its blocks are left unchanged.
    """
    updated = list(messages)
    for index in breakpoints.marked:
        updated[index] = _with_last_block_marker(messages[index], mark=True)
    if breakpoints.cleared is not None:
        updated[breakpoints.cleared] = _with_last_block_marker(messages[breakpoints.cleared], mark=False)
    return updated


def _with_last_block_marker(message: Message, mark: bool) -> Message:
    content = list(message["content"])
    last = dict(content[-1])
    if mark:
        last["cache_control"] = dict(EPHEMERAL_CACHE_CONTROL)
    else:
        last.pop("cache_control", None)
    content[-1] = last
    return {**message, "content": content}


def inject_prompt_caching(messages: List[Message]) -> List[Message]:
    """Mark the three most recent user turns as cache breakpoints."""
    return apply_cache_breakpoints(messages, compute_cache_breakpoints(messages))
