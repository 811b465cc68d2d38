"""Conversational map recommendations from a streaming chat model."""

from mapexplorer.aggregator import AggregatorState, ToolCallAggregator
from mapexplorer.config import ExplorerConfig, configure_logging
from mapexplorer.decoder import StreamDecoder
from mapexplorer.errors import ConfigurationError, MapExplorerError, TransportError
from mapexplorer.explorer import MapExplorer, RecommendationResult
from mapexplorer.instrumentation import instrument, uninstrument
from mapexplorer.places import RECOMMEND_PLACE, Place
from mapexplorer.render import MapRenderer, NominatimGeocoder
from mapexplorer.streaming import CompletedCall

__all__ = [
    "AggregatorState",
    "CompletedCall",
    "ConfigurationError",
    "ExplorerConfig",
    "MapExplorer",
    "MapExplorerError",
    "MapRenderer",
    "NominatimGeocoder",
    "Place",
    "RECOMMEND_PLACE",
    "RecommendationResult",
    "StreamDecoder",
    "ToolCallAggregator",
    "TransportError",
    "configure_logging",
    "instrument",
    "uninstrument",
]
