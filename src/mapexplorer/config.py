import logging
import os

from pydantic import BaseModel

DEFAULT_BASE_URL = "https://api.deepseek.com/v1"
DEFAULT_MODEL = "deepseek-chat"
DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_USER_AGENT = "mapexplorer"

LOG_FORMAT = "%(asctime)s:%(name)s:%(levelname)s:%(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ExplorerConfig(BaseModel):
    """Settings for the chat-completion service and the geocoder.

    Example:
        config = ExplorerConfig.from_env()
        explorer = MapExplorer.from_config(config)
    """

    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    model: str = DEFAULT_MODEL
    timeout: float = 600.0
    # Failures are surfaced to the caller, never retried.
    max_retries: int = 0
    geocoder_url: str = DEFAULT_GEOCODER_URL
    user_agent: str = DEFAULT_USER_AGENT
    geocoder_timeout: float = 15.0
    fly_to_zoom: int = 10

    @classmethod
    def from_env(cls, **overrides) -> "ExplorerConfig":
        """Build a config from environment variables.

        ``DEEPSEEK_API_KEY`` takes precedence over ``API_KEY``.  Keyword
        arguments override anything read from the environment.
        """
        values = {
            "api_key": os.getenv("DEEPSEEK_API_KEY") or os.getenv("API_KEY"),
            "base_url": os.getenv("MAPEXPLORER_BASE_URL", DEFAULT_BASE_URL),
            "model": os.getenv("MAPEXPLORER_MODEL", DEFAULT_MODEL),
            "geocoder_url": os.getenv(
                "MAPEXPLORER_GEOCODER_URL", DEFAULT_GEOCODER_URL
            ),
            "user_agent": os.getenv(
                "MAPEXPLORER_USER_AGENT", DEFAULT_USER_AGENT
            ),
        }
        values.update(overrides)
        return cls(**values)


def configure_logging(
    level: int = logging.INFO, log_file: str | None = None
) -> None:
    """Install the package's log format on the root logger.

    Applications call this once at startup; the library never
    configures logging on import.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
    )
