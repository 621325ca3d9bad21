"""TokenKeeper - FastAPI Application Factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from tokenkeeper.api import auth_router
from tokenkeeper.core import Settings, get_settings, setup_logging
from tokenkeeper.core.logging import get_logger
from tokenkeeper.services.auth import AuthService
from tokenkeeper.services.token_reaper import TokenReaperService

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings: Settings = app.state.settings
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    for warning in settings.check_security_configuration():
        logger.warning("SECURITY: %s", warning)

    auth_service: AuthService = app.state.auth_service
    reaper = TokenReaperService(
        auth_service.refresh_tokens,
        auth_service.blacklist,
        auth_service.active_tokens,
        interval_seconds=settings.token_cleanup_interval_seconds,
    )
    app.state.token_reaper = reaper
    await reaper.start()

    yield

    logger.info("Shutting down...")
    await reaper.stop()


def create_app(
    settings: Settings | None = None,
    auth_service: AuthService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.app_name,
        description="Access and refresh token lifecycle service",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.auth_service = auth_service or AuthService.from_settings(settings)

    app.include_router(auth_router)
    return app


app = create_app()
