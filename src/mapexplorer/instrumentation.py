"""Optional OpenTelemetry instrumentation for mapexplorer.

Call ``mapexplorer.instrument()`` once at startup to enable tracing.
Requires ``opentelemetry-api`` to be installed; the client works
identically without it.
"""

import importlib.util
import logging
from contextlib import asynccontextmanager

logger = logging.getLogger(__name__)

_tracer = None


def instrument(*, tracer_name: str = "mapexplorer") -> None:
    """Enable OpenTelemetry tracing for recommendation requests.

    Call once at startup, after configuring your TracerProvider.
    Requires ``opentelemetry-api``: ``pip install mapexplorer[otel]``

    Example::

        from opentelemetry import trace
        from opentelemetry.sdk.trace import TracerProvider

        trace.set_tracer_provider(TracerProvider())

        import mapexplorer
        mapexplorer.instrument()

    Args:
        tracer_name: Name passed to ``trace.get_tracer()``.

    Raises:
        ImportError: If ``opentelemetry-api`` is not installed.
    """
    global _tracer
    if importlib.util.find_spec("opentelemetry.trace") is None:
        raise ImportError(
            "opentelemetry-api is required for instrumentation. "
            "Install it with: pip install mapexplorer[otel]"
        )
    from opentelemetry import trace
    _tracer = trace.get_tracer(tracer_name)
    if isinstance(_tracer, trace.NoOpTracer):
        logger.info(
            "No TracerProvider configured; spans will be "
            "discarded. Set up a TracerProvider to export "
            "traces."
        )
    else:
        logger.info("mapexplorer instrumentation enabled")


def uninstrument() -> None:
    """Disable OpenTelemetry tracing."""
    global _tracer
    _tracer = None


@asynccontextmanager
async def recommendation_span(model: str, generation: int):
    """Wrap one prompt-to-render request."""
    if _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(
        "recommend_place",
        attributes={
            "gen_ai.operation.name": "invoke_agent",
            "gen_ai.request.model": model,
            "mapexplorer.generation": generation,
        },
    ) as span:
        yield span


@asynccontextmanager
async def completion_span(system: str, model: str):
    """Wrap the streaming chat-completion call in a ``chat`` span."""
    if _tracer is None:
        yield None
        return
    from opentelemetry.trace import SpanKind

    with _tracer.start_as_current_span(
        f"chat {model}",
        kind=SpanKind.CLIENT,
        attributes={
            "gen_ai.operation.name": "chat",
            "gen_ai.provider.name": system,
            "gen_ai.request.model": model,
        },
    ) as span:
        yield span


@asynccontextmanager
async def geocode_span(location: str):
    """Wrap a geocoding lookup."""
    if _tracer is None:
        yield None
        return
    from opentelemetry.trace import SpanKind

    with _tracer.start_as_current_span(
        "geocode",
        kind=SpanKind.CLIENT,
        attributes={"mapexplorer.location": location},
    ) as span:
        yield span


def record_tool_calls(span, count: int) -> None:
    """Record how many tool calls survived finalisation."""
    if span is None:
        return
    span.set_attribute("mapexplorer.tool_calls", count)


def record_error(span, exception: BaseException) -> None:
    """Record an exception and set ERROR status on a span.

    No-ops when *span* is ``None`` (tracing disabled).
    """
    if span is None:
        return
    from opentelemetry.trace import StatusCode

    span.set_status(StatusCode.ERROR, str(exception))
    span.record_exception(exception)
    span.set_attribute(
        "error.type", type(exception).__qualname__
    )
