"""Configuration management for lloom.

This module provides typed configuration classes using pydantic-settings.
Configuration is loaded from environment variables with optional .env file support.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

__all__ = [
    "TransportSettings",
    "LloomConfig",
    "DEFAULT_OPENROUTER_URL",
]

DEFAULT_OPENROUTER_URL = "https://openrouter.ai/api/v1"


class TransportSettings(BaseSettings):
    """LLM transport settings.

    If api_key is not configured, the mock provider is used instead
    of a real endpoint.
    """

    model_config = SettingsConfigDict(
        env_prefix="LLOOM_TRANSPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "openrouter"  # "openrouter", "anthropic" or "mock"
    api_key: SecretStr | None = None
    base_url: str = DEFAULT_OPENROUTER_URL
    app_title: str = "lloom"
    referer: str = ""
    max_tokens: int = 1024

    # Simulated latency for the mock provider (seconds)
    mock_min_delay: float = 1.0
    mock_max_delay: float = 3.0


class LloomConfig(BaseSettings):
    """Main configuration aggregating all settings.

    Example usage:
        config = LloomConfig()
        if config.use_mock:
            ...
    """

    model_config = SettingsConfigDict(
        env_prefix="LLOOM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    transport: TransportSettings = Field(default_factory=TransportSettings)

    # Sent to every space that has no system prompt of its own
    global_system_prompt: str | None = None

    # IANA zone name used when rendering exported timestamps
    export_timezone: str = "UTC"

    # Unset keeps the logging configured on import; setting either
    # reconfigures logging for the whole process when Lloom is built
    log_level: str | None = None
    log_json: bool | None = None

    @property
    def use_mock(self) -> bool:
        """Check whether requests should go to the mock provider."""
        return self.transport.provider == "mock" or self.transport.api_key is None
