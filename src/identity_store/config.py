"""Application configuration."""

import os
from datetime import timedelta

from pydantic_settings import BaseSettings, SettingsConfigDict

from identity_store.domain.models import DEFAULT_SESSION_LIFETIME

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    redis_address: str = "127.0.0.1:6379"
    redis_db: int = 0
    redis_password: str | None = None
    session_ttl_seconds: int = int(DEFAULT_SESSION_LIFETIME.total_seconds())
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    registration_namespace: str = "chat"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(seconds=self.session_ttl_seconds)


def parse_address(address: str) -> tuple[str, int]:
    """Split a host:port backend address."""
    host, sep, port = address.strip().rpartition(":")
    if not sep or not host or not port.isdigit():
        raise ValueError(f"Expected host:port, got {address!r}")
    return host, int(port)
