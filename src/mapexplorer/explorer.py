import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass, field

from mapexplorer.aggregator import ToolCallAggregator
from mapexplorer.config import DEFAULT_MODEL, ExplorerConfig
from mapexplorer.decoder import StreamDecoder
from mapexplorer.errors import ConfigurationError, TransportError
from mapexplorer.events import (
    RawResponseEvent,
    RecommendationEvent,
    RunCompleteEvent,
    StreamEvent,
    ToolCallEvent,
)
from mapexplorer.instrumentation import (
    completion_span,
    recommendation_span,
    record_error,
    record_tool_calls,
)
from mapexplorer.message import build_messages
from mapexplorer.places import Place, parse_place, recommend_place
from mapexplorer.presets import SYSTEM_INSTRUCTIONS
from mapexplorer.provider import DeepSeekProvider, ModelProvider
from mapexplorer.render import MapRenderer, NominatimGeocoder, Renderer
from mapexplorer.streaming import CompletedCall

logger = logging.getLogger(__name__)

FAILURE_CAPTION = "Failed to get recommendation."
MISSING_KEY_CAPTION = "API key is not set."


@dataclass
class RecommendationResult:
    """The result of a single MapExplorer request."""

    prompt: str
    text: str = ""
    places: list[Place] = field(default_factory=list)
    calls: list[CompletedCall] = field(default_factory=list)
    superseded: bool = False


class MapExplorer:
    """Turns a prompt into a rendered place recommendation.

    Each request streams the provider's bytes through a fresh
    :class:`StreamDecoder` and :class:`ToolCallAggregator`.  Once the
    transport closes, every completed ``recommendPlace`` call is handed
    to the renderer; calls to any other function are ignored.

    Requests are numbered.  Starting a new request supersedes the
    previous one.  A superseded request never touches the renderer, and
    one superseded while its geocode is in flight is dropped when the
    lookup returns, so only the newest result is ever shown.

    ``run()`` drains ``iter()``.  ``generate()`` additionally maps a
    transport failure to a failure caption, the way a UI would.

    Args:
        provider: Byte source for the chat-completion stream.  ``None``
            means no API key is configured.
        renderer: Receives places and captions.
        model: Model name sent with each request.
        system_prompt: Instructions sent ahead of the user's prompt.
    """

    def __init__(
        self,
        provider: ModelProvider | None,
        renderer: Renderer,
        model: str = DEFAULT_MODEL,
        system_prompt: str = SYSTEM_INSTRUCTIONS,
    ):
        self.provider = provider
        self.renderer = renderer
        self.model = model
        self.system_prompt = system_prompt
        self.tool = recommend_place.bind(renderer=renderer)
        self._generation = 0

    @classmethod
    def from_config(
        cls,
        config: ExplorerConfig | None = None,
        renderer: Renderer | None = None,
        provider: ModelProvider | None = None,
    ) -> "MapExplorer":
        config = config or ExplorerConfig.from_env()
        if renderer is None:
            renderer = MapRenderer(
                NominatimGeocoder(
                    url=config.geocoder_url,
                    user_agent=config.user_agent,
                    timeout=config.geocoder_timeout,
                ),
                fly_to_zoom=config.fly_to_zoom,
            )
        if provider is None and config.api_key:
            provider = DeepSeekProvider.from_config(config)
        return cls(provider=provider, renderer=renderer, model=config.model)

    @property
    def generation(self) -> int:
        """Number of the most recently started request."""
        return self._generation

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _begin(self) -> int:
        if self.provider is None:
            raise ConfigurationError(MISSING_KEY_CAPTION)
        self._generation += 1
        return self._generation

    async def run(self, prompt: str) -> RecommendationResult:
        """Stream a recommendation and render it; return the result."""
        return await self._drain(self._stream(prompt, self._begin()))

    def iter(self, prompt: str) -> AsyncIterator[StreamEvent]:
        """Stream a recommendation, yielding events as it proceeds.

        The request is numbered when ``iter`` is called, so a later
        call supersedes this one even before it is iterated.

        Raises:
            ConfigurationError: If no provider is configured.
            TransportError: From iteration, if the request fails.
        """
        return self._stream(prompt, self._begin())

    async def generate(self, prompt: str) -> RecommendationResult | None:
        """Run *prompt* and show a caption for any failure.

        Returns ``None`` when no recommendation could be fetched.
        """
        self.renderer.hide_caption()
        if self.provider is None:
            self.renderer.show_caption(MISSING_KEY_CAPTION)
            return None

        generation = self._begin()
        try:
            return await self._drain(self._stream(prompt, generation))
        except TransportError as e:
            if self.is_current(generation):
                self.renderer.show_caption(FAILURE_CAPTION)
            else:
                logger.debug(f"Ignoring failure of superseded request {generation}: {e}")
            return None

    async def _drain(self, events: AsyncIterator[StreamEvent]) -> RecommendationResult:
        result: RecommendationResult | None = None
        async for event in events:
            if isinstance(event, RunCompleteEvent):
                result = event.result
        if result is None:
            raise RuntimeError("stream ended without emitting RunCompleteEvent")
        return result

    async def _stream(self, prompt: str, generation: int) -> AsyncIterator[StreamEvent]:
        messages = [
            m.model_dump() for m in build_messages(self.system_prompt, prompt)
        ]
        decoder = StreamDecoder()
        aggregator = ToolCallAggregator()
        logger.info(f"Requesting recommendation {generation}: {prompt}")

        def still_current() -> bool:
            return self.is_current(generation)

        async with recommendation_span(self.model, generation) as span:
            try:
                async with completion_span(self.provider.system, self.model) as chat_span:
                    chunks = self.provider.stream_bytes(
                        model=self.model, messages=messages,
                        tools=[self.tool.model_dump()],
                    )
                    # Both are closed when the caller stops iterating early.
                    async with aclosing(chunks), aclosing(decoder.iter_lines(chunks)) as lines:
                        async for line in lines:
                            chunk = aggregator.observe(line)
                            if chunk is not None and chunk.content_delta:
                                yield RawResponseEvent(content=chunk.content_delta)
                    completed = aggregator.finalize()
                    record_tool_calls(chat_span, len(completed))
            except TransportError as e:
                record_error(span, e)
                logger.error(f"Error calling chat completion API: {e}")
                raise

            result = RecommendationResult(
                prompt=prompt, text=aggregator.text, calls=completed,
            )
            for call in completed:
                yield ToolCallEvent(call=call)
                if call.name != self.tool.name:
                    logger.debug(f"Ignoring call to unknown tool: {call.name}")
                    continue
                place = parse_place(call.arguments)
                if place is None:
                    continue
                if not still_current():
                    logger.debug(
                        f"Request {generation} superseded by "
                        f"{self._generation}; not rendering {place.location}"
                    )
                    continue
                await self.tool(
                    location=place.location, caption=place.caption,
                    still_current=still_current,
                )
                # The render awaits the geocoder; a newer request may have
                # started meanwhile, in which case nothing was applied.
                if not still_current():
                    continue
                result.places.append(place)
                yield RecommendationEvent(place=place)

            result.superseded = not still_current()
            yield RunCompleteEvent(result=result)
