import logging
import os
from collections.abc import AsyncIterator

import httpx
from openai import APIError, APIStatusError, AsyncOpenAI

from mapexplorer.config import DEFAULT_BASE_URL, ExplorerConfig
from mapexplorer.errors import ConfigurationError, TransportError

logger = logging.getLogger(__name__)


class ModelProvider:
    """Source of raw chat-completion stream bytes.

    Subclasses implement :meth:`stream_bytes`; decoding and tool-call
    assembly happen downstream, so a provider only has to move bytes.
    """

    system = "custom"

    def stream_bytes(
            self,
            model: str,
            messages: list[dict],
            tools: list[dict] | None = None,
    ) -> AsyncIterator[bytes]:
        raise NotImplementedError


class OpenAICompatibleProvider(ModelProvider):
    """Streams from any OpenAI-compatible ``/chat/completions`` endpoint.

    Non-2xx responses and network failures are raised as
    :class:`~mapexplorer.errors.TransportError`.  Retries are disabled
    by default; the caller decides what a failure means.

    Args:
        base_url: API root, e.g. ``https://api.deepseek.com/v1``.
        api_key: Bearer token.
        timeout: Seconds before the read is aborted.
        max_retries: Passed through to ``AsyncOpenAI``.
        http_client: Optional ``httpx.AsyncClient`` (used by tests).
    """

    system = "openai"

    def __init__(
            self,
            base_url: str,
            api_key: str,
            timeout: float = 600.0,
            max_retries: int = 0,
            http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = AsyncOpenAI(
            base_url=self.base_url,
            api_key=api_key,
            max_retries=max_retries,
            timeout=timeout,
            http_client=http_client,
        )

    async def stream_bytes(
            self,
            model: str,
            messages: list[dict],
            tools: list[dict] | None = None,
    ) -> AsyncIterator[bytes]:
        kwargs = {"model": model, "messages": messages, "stream": True}
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        logger.debug(f"Streaming {model} from {self.base_url}")

        try:
            async with self.client.chat.completions.with_streaming_response.create(
                **kwargs
            ) as response:
                async for chunk in response.iter_bytes():
                    yield chunk
        except APIStatusError as e:
            raise TransportError(
                f"API request failed: {e.message}",
                status_code=e.status_code,
            ) from e
        except APIError as e:
            raise TransportError(f"API request failed: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Stream interrupted: {e}") from e


class DeepSeekProvider(OpenAICompatibleProvider):
    system = "deepseek"

    def __init__(
            self,
            api_key: str | None = None,
            base_url: str = DEFAULT_BASE_URL,
            **kwargs,
    ):
        if not api_key:
            api_key = os.getenv("DEEPSEEK_API_KEY")
        if not api_key:
            raise ConfigurationError("API key is not set.")
        super().__init__(base_url=base_url, api_key=api_key, **kwargs)

    @classmethod
    def from_config(
            cls, config: ExplorerConfig, **kwargs
    ) -> "DeepSeekProvider":
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            **kwargs,
        )

