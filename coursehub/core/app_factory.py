"""Application factory for the FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated apps with their own services and counters.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from coursehub.api.routes import courses_router, health_router, reports_router, verification_router
from coursehub.core.config import settings
from coursehub.core.exception_handlers import setup_exception_handlers
from coursehub.core.logging import configure_logging
from coursehub.core.middleware import request_id_middleware
from coursehub.core.openapi import apply_openapi_customizations
from coursehub.core.rate_limit import AdmissionController
from coursehub.services.container import Services, build_services

logger = logging.getLogger(__name__)


def create_app(
    services: Services | None = None,
    admission: AdmissionController | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        services: Prebuilt service container. When omitted, adapters are
            built from settings at startup and closed at shutdown.
        admission: Admission controller; defaults to the standard tiers.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned = services is None
        app.state.services = build_services() if owned else services
        await app.state.services.startup()
        try:
            yield
        finally:
            if owned:
                await app.state.services.shutdown()

    app = FastAPI(
        title="CourseHub API",
        description=(
            "Crowd-sourced directory of course resources. Anonymous users add "
            "courses and sections behind a captcha, and links behind a one-time "
            "email code. Every endpoint is rate limited by tier."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan,
    )
    app.state.admission = admission or AdmissionController()
    if services is not None:
        app.state.services = services

    # Middleware
    app.middleware("http")(request_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_allow_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["Retry-After", "X-RateLimit-Reset", settings.log.request_id_header],
    )

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(health_router)
    app.include_router(courses_router)
    app.include_router(verification_router)
    app.include_router(reports_router)

    apply_openapi_customizations(app)

    logger.info("app.created", extra={"app_env": settings.app_env})
    return app
