import json

import pytest

from mapexplorer.explorer import MapExplorer
from mapexplorer.provider import ModelProvider
from mapexplorer.render import Renderer


# ---------------------------------------------------------------------------
# Event-stream builders (mirror the chat.completion.chunk wire shape)
# ---------------------------------------------------------------------------

DONE_LINE = "data: [DONE]\n\n"

ULAANBAATAR_ARGS = [
    '{"locat',
    'ion":"Ulaan',
    'baatar, Mongolia","caption":"Remote capital with low light pollution."}',
]


def tool_call_event(
    index: int = 0,
    name: str | None = None,
    arguments: str | None = None,
    call_id: str | None = None,
) -> dict:
    """One ``chat.completion.chunk`` carrying a single tool-call fragment."""
    function = {}
    if name is not None:
        function["name"] = name
    if arguments is not None:
        function["arguments"] = arguments
    fragment = {"index": index, "function": function}
    if call_id is not None:
        fragment["id"] = call_id
        fragment["type"] = "function"
    return {
        "object": "chat.completion.chunk",
        "choices": [{"index": 0, "delta": {"tool_calls": [fragment]}}],
    }


def content_event(text: str) -> dict:
    return {
        "object": "chat.completion.chunk",
        "choices": [{"index": 0, "delta": {"content": text}}],
    }


def sse_line(payload) -> str:
    """Frame a payload as an SSE ``data:`` event.  Strings pass verbatim."""
    if not isinstance(payload, str):
        payload = json.dumps(payload, ensure_ascii=False)
    return f"data: {payload}\n\n"


def sse_body(*payloads, done: bool = True) -> bytes:
    body = "".join(sse_line(p) for p in payloads)
    if done:
        body += DONE_LINE
    return body.encode("utf-8")


def recommendation_events(
    location: str, caption: str, index: int = 0, prose: str = ""
) -> list[dict]:
    """Events for a single ``recommendPlace`` call, arguments split in two."""
    arguments = json.dumps({"location": location, "caption": caption})
    middle = len(arguments) // 2
    events = [content_event(prose)] if prose else []
    events += [
        tool_call_event(index, name="recommendPlace", call_id=f"call_{index}"),
        tool_call_event(index, arguments=arguments[:middle]),
        tool_call_event(index, arguments=arguments[middle:]),
    ]
    return events


def ulaanbaatar_body() -> bytes:
    return sse_body(
        tool_call_event(0, name="recommendPlace"),
        *[tool_call_event(0, arguments=a) for a in ULAANBAATAR_ARGS],
    )


def split_every(data: bytes, size: int) -> list[bytes]:
    return [data[i:i + size] for i in range(0, len(data), size)]


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------

class MockProvider(ModelProvider):
    """Provider that replays pre-queued byte chunks. No network calls.

    Each queued response is a list of byte chunks, or an exception to
    raise after yielding nothing.  ``closed`` counts streams that were
    closed, whether drained or abandoned.
    """

    system = "mock"

    def __init__(self):
        self.responses: list = []
        self.call_log: list[dict] = []
        self.closed = 0

    async def stream_bytes(self, model, messages, tools=None):
        self.call_log.append(
            {"model": model, "messages": messages, "tools": tools}
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        try:
            for chunk in response:
                yield chunk
        finally:
            self.closed += 1


class RecordingRenderer(Renderer):
    """Renderer that records what it was asked to show."""

    def __init__(self):
        self.places = []
        self.caption: str | None = None
        self.caption_hidden = True
        self.caption_log: list[str] = []

    async def render(self, place, still_current=None):
        self.places.append(place)
        self.show_caption(place.caption)
        return None

    def show_caption(self, text: str) -> None:
        self.caption = text
        self.caption_hidden = False
        self.caption_log.append(text)

    def hide_caption(self) -> None:
        self.caption_hidden = True


@pytest.fixture
def mock_provider():
    return MockProvider()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def make_explorer(mock_provider, renderer):
    """Factory fixture to build explorers around the mock provider."""
    def _make(provider=None, model="mock-model"):
        return MapExplorer(
            provider=provider or mock_provider,
            renderer=renderer,
            model=model,
        )
    return _make
