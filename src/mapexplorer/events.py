"""Streaming events emitted while a recommendation is generated."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from mapexplorer.places import Place
from mapexplorer.streaming import CompletedCall


@dataclass
class StreamEvent:
    """Base for all streaming events."""


@dataclass
class RawResponseEvent(StreamEvent):
    """Prose delta from the provider stream."""

    content: str = ""


@dataclass
class ToolCallEvent(StreamEvent):
    """A tool call whose arguments parsed, whatever its name."""

    call: CompletedCall


@dataclass
class RecommendationEvent(StreamEvent):
    """A place the renderer showed while its request was still current."""

    place: Place


@dataclass
class RunCompleteEvent(StreamEvent):
    """Final event, always the last one yielded.

    ``result`` is the request's
    :class:`~mapexplorer.explorer.RecommendationResult`.
    """

    result: Any = None
