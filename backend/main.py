from fastapi import FastAPI

from backend.api.routes.badge import router
from backend.core.middleware import BadgeRateLimitMiddleware
from backend.core.observability import init_logging
from backend.core.observability import init_sentry
from backend.settings import Settings


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application with observability and rate limiting."""

    app_settings = app_settings or Settings()
    init_logging(app_settings)
    init_sentry(app_settings)

    application = FastAPI(title="Contribution badge")
    application.add_middleware(
        BadgeRateLimitMiddleware,
        requests_per_window=app_settings.rate_limit_per_minute,
        window_seconds=app_settings.rate_limit_window_seconds,
        trust_forwarded_for=app_settings.trust_forwarded_for,
    )
    application.include_router(router)
    return application


app = create_app()
