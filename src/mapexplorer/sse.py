"""Server-Sent Events parsing for chat-completion streams."""

from __future__ import annotations

import json
import logging
from typing import Any

from mapexplorer.streaming import StreamChunk, ToolCallFragment

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


def event_payload(line: str) -> str | None:
    """Return the trimmed payload of a ``data:`` line, else ``None``."""
    if not line.startswith(DATA_PREFIX):
        return None
    return line[len(DATA_PREFIX):].strip()


def is_done(payload: str) -> bool:
    return payload == DONE_SENTINEL


def parse_payload(payload: str) -> StreamChunk | None:
    """Decode a JSON event payload into a :class:`StreamChunk`.

    Returns ``None`` (and logs) when the payload is not valid JSON or
    not an object.
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning(f"Skipping malformed stream payload: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(
            f"Skipping stream payload of type {type(data).__name__}"
        )
        return None
    return chunk_from_event(data)


def chunk_from_event(data: dict[str, Any]) -> StreamChunk:
    """Normalise a ``chat.completion.chunk`` object.

    Only the first choice is read.  Missing or oddly-typed fields are
    treated as absent.
    """
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return StreamChunk()
    choice = choices[0] if isinstance(choices[0], dict) else {}
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        delta = {}

    content = delta.get("content")
    fragments = _fragments(delta.get("tool_calls"))
    return StreamChunk(
        content_delta=content if isinstance(content, str) and content else None,
        tool_call_fragments=fragments or None,
        finish_reason=choice.get("finish_reason"),
    )


def _fragments(raw: Any) -> list[ToolCallFragment]:
    if not isinstance(raw, list):
        return []
    fragments = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        index = item.get("index")
        # bool is an int subclass but never a valid index
        if not isinstance(index, int) or isinstance(index, bool):
            logger.warning(f"Skipping tool call fragment without index: {item}")
            continue
        function = item.get("function")
        if not isinstance(function, dict):
            function = {}
        fragments.append(ToolCallFragment(
            index=index,
            call_id=_non_empty(item.get("id")),
            name=_non_empty(function.get("name")),
            arguments_delta=_non_empty(function.get("arguments")),
        ))
    return fragments


def _non_empty(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None
