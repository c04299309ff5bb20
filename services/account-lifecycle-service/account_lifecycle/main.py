"""FastAPI application wiring for the account lifecycle service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool

from .api.routes import router as v1_router
from .config import Settings, get_settings
from .domain.service import AccountDeletionService
from .repository import AccountRepository
from .retention.scheduler import RetentionScheduler
from .retention.sweeper import RetentionPolicy, RetentionSweeper
from .security.token_store import InMemoryTokenStore, RedisTokenStore, TokenStore
from .storage.profile_store import ProfileStore
from .storage.quarantine import QuarantineStore
from .storage.registry import AccountRegistry
from .storage.reporting_store import ReportingStore
from .storage.sessions import SessionRegistry

logger = logging.getLogger(__name__)

settings = get_settings()


def _build_token_store(settings: Settings) -> TokenStore:
    """Instantiate the configured token store backend, preferring Redis when available."""
    if settings.token_store_backend == "redis" and settings.redis_url:
        try:
            import redis

            client = redis.from_url(settings.redis_url)
            # fail fast and fall back
            client.ping()
            logger.info("token store configured for redis backend at %s", settings.redis_url)
            return RedisTokenStore(client)
        except Exception as exc:  # pragma: no cover - depends on a live redis
            logger.warning("redis token store unavailable, falling back to in-memory: %s", exc)

    logger.info("token store using in-memory backend")
    return InMemoryTokenStore()


def _load_registry(profiles: ProfileStore) -> AccountRegistry:
    registry = AccountRegistry()
    for account in profiles.iter_accounts():
        registry.add(account)
    logger.info("loaded %d accounts from %s", len(registry), profiles.root)
    return registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialise stores, services and the retention scheduler for the app lifecycle."""
    quarantine = QuarantineStore(settings.data_root)
    profiles = ProfileStore(settings.data_root, quarantine, settings.default_app_name)
    registry = _load_registry(profiles)
    sessions = SessionRegistry()

    pool: ConnectionPool | None = None
    repository: AccountRepository | None = None
    if settings.database_url:
        pool = ConnectionPool(settings.database_url, open=False)
        pool.open()
        repository = AccountRepository(pool)
    else:
        logger.info("POSTGRES_URL not set, relational store disabled")

    app.state.registry = registry
    app.state.sessions = sessions
    app.state.deletion_service = AccountDeletionService(
        registry=registry,
        profiles=profiles,
        tokens=_build_token_store(settings),
        reporting=ReportingStore(settings.data_root),
        sessions=sessions,
        repository=repository,
    )

    scheduler = RetentionScheduler(
        RetentionSweeper(quarantine, RetentionPolicy.from_days(settings.retention_days)),
        interval_seconds=settings.sweep_interval_seconds,
        initial_delay_seconds=settings.sweep_initial_delay_seconds,
    )
    app.state.retention_scheduler = scheduler
    if settings.sweep_enabled:
        scheduler.start()

    try:
        yield
    finally:
        scheduler.stop()
        if pool is not None:
            pool.close()


app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)


@app.get("/healthz", tags=["health"])
def healthz() -> dict[str, str]:
    """Return a minimal readiness indicator used by orchestration systems."""
    return {"status": "ok"}


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


app.include_router(v1_router)
