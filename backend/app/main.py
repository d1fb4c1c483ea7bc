"""
FastAPI application entry point.

Run with:
    uvicorn backend.app.main:app --reload --port 3000

Or from the project root:
    python -m backend.app.main
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ── Core infrastructure ──
from backend.app.core.config import Settings, settings
from backend.app.core.logging_config import setup_logging, get_logger
from backend.app.core.errors import register_error_handlers
from backend.app.core.middleware import (
    IpRateLimiter,
    RateLimitMiddleware,
    RequestLoggingMiddleware,
)

# ── Domain ──
from backend.app.alerts.alert_service import AlertService, build_alert_service

# ── API routers ──
from backend.app.api.v1.alerts import router as alert_router

# ── Initialise logging ──
setup_logging()
logger = get_logger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    *,
    alert_service: Optional[AlertService] = None,
) -> FastAPI:
    """
    Build the application.

    Parameters
    ----------
    app_settings : Settings | None
        Defaults to the environment-loaded settings.
    alert_service : AlertService | None
        Pre-built service (tests inject fakes); otherwise one is built from
        settings at startup and shared by every request.
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.alert_service = alert_service or build_alert_service(app_settings)
        logger.info(
            "Starting %s v%s [%s] on port %d",
            app_settings.APP_NAME, app_settings.APP_VERSION,
            app_settings.ENVIRONMENT, app_settings.PORT,
        )
        logger.info(
            "Messaging: provider=%s channel=%s configured=%s",
            app_settings.MESSAGING_PROVIDER, app_settings.MESSAGING_CHANNEL,
            "yes" if app_settings.provider_configured else "no",
        )
        yield
        logger.info("Shutting down %s", app_settings.APP_NAME)

    app = FastAPI(
        title=app_settings.APP_NAME,
        description=(
            "Relays emergency accident alerts to a list of contacts over "
            "WhatsApp / SMS, with duplicate suppression, per-contact "
            "delivery results and per-IP rate limiting."
        ),
        version=app_settings.APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.rate_limiter = None

    # ── Middleware stack (last added runs outermost) ──

    if app_settings.RATE_LIMIT_ENABLED:
        limiter = IpRateLimiter(
            app_settings.RATE_LIMIT_MAX_REQUESTS,
            app_settings.RATE_LIMIT_WINDOW_SECONDS,
        )
        app.state.rate_limiter = limiter
        app.add_middleware(
            RateLimitMiddleware,
            limiter=limiter,
            prefix="/api/",
            trust_proxy=app_settings.TRUST_PROXY_HEADERS,
        )

    app.add_middleware(
        RequestLoggingMiddleware, trust_proxy=app_settings.TRUST_PROXY_HEADERS,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ORIGINS if not app_settings.CORS_ALLOW_ALL else ["*"],
        allow_credentials=not app_settings.CORS_ALLOW_ALL,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Error handlers ──
    register_error_handlers(app)

    # ── Routers ──
    app.include_router(alert_router)

    @app.get("/", tags=["root"])
    async def root():
        return {
            "service": app_settings.APP_NAME,
            "version": app_settings.APP_VERSION,
            "environment": app_settings.ENVIRONMENT,
            "endpoints": [
                "POST /api/send-alert",
                "POST /api/test-message",
                "GET /api/health",
                "GET /api/status",
            ],
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
    )
