from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration values exposed to FastAPI components and workers."""

    app_name: str = os.getenv("APP_NAME", "account-lifecycle-service")
    version: str = "0.1.0"
    http_host: str = os.getenv("HTTP_HOST", "0.0.0.0")
    http_port: int = int(os.getenv("HTTP_PORT", "8000"))
    data_root: str = os.getenv("DATA_ROOT", "./data")
    default_app_name: str = os.getenv("DEFAULT_APP_NAME", "Blynk")
    retention_days: int = int(os.getenv("RETENTION_DAYS", "5"))
    sweep_enabled: bool = _env_flag("SWEEP_ENABLED", "true")
    sweep_interval_seconds: int = int(os.getenv("SWEEP_INTERVAL_SECONDS", "86400"))
    sweep_initial_delay_seconds: int = int(os.getenv("SWEEP_INITIAL_DELAY_SECONDS", "60"))
    # empty disables the relational store entirely
    database_url: str = os.getenv("POSTGRES_URL", "")
    token_store_backend: str = os.getenv("TOKEN_STORE_BACKEND", "memory").lower()
    redis_url: str = os.getenv("REDIS_URL", "")
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    jwt_issuer: str = os.getenv("JWT_ISSUER", "plynk.accounts")
    jwt_ttl_seconds: int = int(os.getenv("JWT_TTL_SECONDS", "3600"))


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached Settings instance for the running process."""
    return Settings()
