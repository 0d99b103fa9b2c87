"""FastAPI application factory for the ledger service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..persistence import SqliteStateStore
from .config import LedgerConfig
from .core import LedgerService
from .middleware import CorrelationIdMiddleware
from .router import build_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for startup/shutdown."""
    service: LedgerService = app.state.ledger_service
    logger.info(f"Starting ledger service (store: {type(service.repository.store).__name__})")

    yield

    logger.info("Shutting down ledger service...")
    store = service.repository.store
    if isinstance(store, SqliteStateStore):
        store.close()


def create_ledger_app(
    config: LedgerConfig,
    *,
    service: LedgerService | None = None,
) -> FastAPI:
    """Create and configure the ledger FastAPI application.

    Args:
        config: LedgerConfig instance
        service: Pre-built service (tests inject one over a MemoryStore)

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Milk Ledger",
        description="Daily milk and grocery delivery ledger with monthly bills",
        version=__version__,
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    ledger_service = service or LedgerService(config)
    app.include_router(build_router(ledger_service))

    app.state.ledger_service = ledger_service
    app.state.config = config

    @app.get("/healthz")
    def healthz() -> dict:
        """Health check - verifies the state store can be read."""
        store = ledger_service.repository.store
        check: dict = {"backend": type(store).__name__}
        try:
            if isinstance(store, SqliteStateStore):
                store.ping()
            check["customers"] = len(store.load().customers)
            check["status"] = "healthy"
            healthy = True
        except Exception as e:
            check["status"] = "unhealthy"
            check["error"] = str(e)
            healthy = False

        return {
            "status": "ok" if healthy else "degraded",
            "service": "milk-ledger",
            "version": __version__,
            "checks": {"store": check},
        }

    return app


def create_app_from_env() -> FastAPI:
    """Create app using environment variable configuration."""
    return create_ledger_app(LedgerConfig.from_env())


__all__ = ["create_ledger_app", "create_app_from_env"]
