"""Configuration management using Pydantic settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_NAME = "browser-vcr"

DEFAULT_CASSETTES_DIR = "cassettes"

# Catch-all glob handed to the browser's route() primitive.
DEFAULT_URL_PATTERN = "**/*"


class VcrSettings(BaseSettings):
    """Record/replay configuration.

    Priority: Environment Variables > Defaults
    """

    model_config = SettingsConfigDict(env_prefix="BROWSER_VCR_", extra="ignore")

    cassettes_dir: str = Field(default=DEFAULT_CASSETTES_DIR, description="Directory holding cassette files")
    url_pattern: str = Field(default=DEFAULT_URL_PATTERN, description="URL glob intercepted by the recorder")
    strict_playback: bool = Field(
        default=False,
        description="Abort unmatched requests in playback and fail the session instead of reaching the network",
    )
    logging_level: str = Field(default="INFO")
    json_logs: bool = Field(default=True, description="Render logs as JSON (False: console renderer)")

    def get_cassettes_dir(self) -> Path:
        """Get the cassettes directory (not created until the first write)."""
        return Path(self.cassettes_dir).expanduser()


@lru_cache(maxsize=1)
def get_settings() -> VcrSettings:
    """Load settings once; call get_settings.cache_clear() to re-read the environment."""
    return VcrSettings()
