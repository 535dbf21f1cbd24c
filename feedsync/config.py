"""Client configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"
WS_NOTIFICATIONS_PATH = "/ws/notifications"


class Settings(BaseSettings):
    """Synchronization engine configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    api_url: str = Field(
        description="Base URL of the notifications REST API, e.g. https://host/api",
        min_length=1,
    )
    ws_url: str | None = Field(
        default=None,
        description="Websocket endpoint for push frames; derived from API_URL when omitted",
    )
    reconnect_delay_seconds: float = Field(
        default=5.0,
        description="Fixed delay before a dropped push channel is rebuilt",
        gt=0,
    )
    poll_interval_seconds: float = Field(
        default=30.0,
        description="Interval of the periodic unread count refresh",
        gt=0,
    )
    min_refresh_spacing_seconds: float = Field(
        default=30.0,
        description="Periodic and focus refreshes are skipped if the feed changed more recently",
        ge=0,
    )
    page_size: int = Field(
        default=20,
        description="Number of notifications requested per page",
        gt=0,
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout applied to every request against the notifications API",
        gt=0,
    )
    app_timezone: str = Field(
        default="UTC",
        description="Timezone used to interpret naive timestamps and render dates",
    )
    log_level: str = Field(default="INFO", description="Root log level for the CLI")

    @model_validator(mode="after")
    def _derive_ws_url(self) -> "Settings":
        if not self.ws_url:
            self.ws_url = derive_ws_url(self.api_url)
        return self


def derive_ws_url(api_url: str) -> str:
    """Return the push endpoint that lives next to ``api_url``."""

    base = api_url.strip().rstrip("/")
    if base.startswith("https://"):
        base = "wss://" + base[len("https://"):]
    elif base.startswith("http://"):
        base = "ws://" + base[len("http://"):]
    if base.endswith("/api"):
        base = base[: -len("/api")]
    return f"{base}{WS_NOTIFICATIONS_PATH}"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "derive_ws_url", "get_settings", "reset_settings_cache"]
