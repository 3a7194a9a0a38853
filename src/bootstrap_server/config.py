"""Application configuration using pydantic-settings."""

from __future__ import annotations

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from bootstrap_server.exceptions import ConfigurationError

MIN_PORT = 1
MAX_PORT = 65535


class Settings(BaseSettings):
    """Server settings loaded from environment variables and ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    port: int = Field(ge=MIN_PORT, le=MAX_PORT)
    host: str = "0.0.0.0"
    node_env: str = "production"
    log_level: str = "info"
    shutdown_timeout_seconds: int = 30

    # Rate limiting
    rate_limit_window_seconds: int = Field(default=15 * 60, gt=0)
    rate_limit_max: int = Field(default=100, gt=0)
    trust_proxy_header: str | None = None

    # Body parsing
    body_limit_bytes: int = Field(default=10 * 1024, gt=0)

    # CORS
    cors_origin: str = "*"

    @property
    def diagnostic(self) -> bool:
        """Verbose request logging and stack traces in error bodies."""
        return self.node_env == "development"

    @property
    def mode(self) -> str:
        return self.node_env or "production"


def load_settings(**overrides: object) -> Settings:
    """Load settings, turning validation errors into ConfigurationError."""
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        for error in exc.errors():
            if error["loc"] and error["loc"][0] == "port":
                if error["type"] == "missing":
                    raise ConfigurationError(
                        "Missing PORT in environment variables."
                    ) from exc
                raise ConfigurationError(
                    f"Invalid PORT in environment variables: {error.get('input')!r}"
                ) from exc
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
