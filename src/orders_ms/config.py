from __future__ import annotations

from typing import Annotated
from urllib.parse import urlparse

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

NATS_SCHEMES = {"nats", "tls", "ws", "wss"}


class ConfigError(RuntimeError):
    pass


class Settings(BaseSettings):
    """Process configuration, read once at startup and passed to constructors."""

    model_config = SettingsConfigDict(
        env_file=".env", extra="ignore", frozen=True, case_sensitive=False
    )

    port: int = Field(ge=1, le=65535)
    nats_servers: Annotated[list[str], NoDecode] = Field(min_length=1)
    database_url: str = Field(min_length=1)
    rpc_timeout: float = Field(5.0, gt=0)
    environment: str = "development"
    log_level: str | None = None

    @field_validator("nats_servers", mode="before")
    @classmethod
    def split_servers(cls, value: object) -> object:
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        return value

    @field_validator("nats_servers")
    @classmethod
    def check_servers(cls, value: list[str]) -> list[str]:
        for server in value:
            url = urlparse(server)
            if url.scheme not in NATS_SCHEMES or not url.hostname:
                raise ValueError(f"invalid NATS server address: {server!r}")
        return value


def load_settings(**overrides: object) -> Settings:
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        raise ConfigError(f"Config validation error: {exc}") from exc
