"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppSettings
from errors import register_error_handlers
from infrastructure.cache.redis_client import create_redis_client
from infrastructure.captcha.memory_store import InMemoryChallengeStore
from infrastructure.captcha.redis_store import RedisChallengeStore
from routes.challenge_routes import router as challenge_router
from routes.health_routes import router as health_router
from services.challenge_service import ChallengeService
from shared.datetime_utils import Clock, now_ms
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(
    settings: Optional[AppSettings] = None, clock: Clock = now_ms
) -> FastAPI:
    """Create and return a fully configured FastAPI application."""
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging.log_level, settings.logging.log_format)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        app.state.settings = settings

        # Redis is optional; without it single use only holds per process
        redis_client = await create_redis_client(settings.redis.redis_uri)
        app.state.redis = redis_client

        if redis_client is not None:
            store = RedisChallengeStore(
                redis_client, ttl_seconds=settings.challenge.challenge_validity_seconds
            )
        else:
            store = InMemoryChallengeStore()
            log.warning("challenge_store_process_local")

        service = ChallengeService(store, settings.challenge, clock=clock)
        service.start()
        app.state.challenge_service = service

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await service.stop()
        if redis_client is not None:
            await redis_client.aclose()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(challenge_router)

    return app
