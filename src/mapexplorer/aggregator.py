"""Tool-call reconstruction from a decoded event stream."""

from __future__ import annotations

import enum
import json
import logging

from mapexplorer.sse import event_payload, is_done, parse_payload
from mapexplorer.streaming import CompletedCall, StreamChunk, ToolCallAccumulator

logger = logging.getLogger(__name__)


class AggregatorState(enum.Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    DRAINED = "drained"


class ToolCallAggregator:
    """Consumes decoded event lines for one response.

    Feed every line to :meth:`observe` as it arrives, then call
    :meth:`finalize` once the transport has closed.  Lines that are not
    ``data:`` events are ignored, a ``[DONE]`` payload stops intake,
    and malformed payloads are logged and skipped.

    ``finalize`` drains the aggregator: a second call returns ``[]``.
    """

    def __init__(self) -> None:
        self._accumulator = ToolCallAccumulator()
        self._done = False
        self._drained = False
        self.text = ""
        self.finish_reason: str | None = None

    @property
    def state(self) -> AggregatorState:
        if self._drained:
            return AggregatorState.DRAINED
        if len(self._accumulator):
            return AggregatorState.ACCUMULATING
        return AggregatorState.IDLE

    @property
    def done(self) -> bool:
        """True once the service's end-of-stream sentinel was seen."""
        return self._done

    def observe(self, line: str) -> StreamChunk | None:
        """Process one decoded line.

        Returns the normalised chunk when the line carried a usable
        payload, so callers can relay prose deltas; ``None`` otherwise.
        """
        if self._done or self._drained:
            return None
        payload = event_payload(line)
        if payload is None:
            return None
        if is_done(payload):
            self._done = True
            return None

        chunk = parse_payload(payload)
        if chunk is None:
            return None
        if chunk.content_delta:
            self.text += chunk.content_delta
        if chunk.finish_reason:
            self.finish_reason = chunk.finish_reason
        for fragment in chunk.tool_call_fragments or []:
            self._accumulator.feed(fragment)
        return chunk

    def finalize(self) -> list[CompletedCall]:
        """Parse each assembled call's arguments, in index order.

        Calls whose arguments are not valid JSON are logged and
        dropped; the rest are still returned.
        """
        self._drained = True
        completed = []
        for tc in self._accumulator.finalize():
            try:
                arguments = json.loads(tc.arguments)
            except json.JSONDecodeError as e:
                logger.warning(
                    f"Dropping tool call {tc.name or '<unnamed>'}: "
                    f"invalid JSON arguments ({e})"
                )
                continue
            completed.append(
                CompletedCall(name=tc.name, arguments=arguments, id=tc.id)
            )
        return completed
