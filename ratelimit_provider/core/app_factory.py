from __future__ import annotations

"""Application factory for the FastAPI app.

Centralizes app construction (logging, middleware, handlers, routers) so
tests can build a fresh instance.
"""

from fastapi import FastAPI

from ratelimit_provider.api.routes import health_router, rate_limits_router
from ratelimit_provider.core.config import settings
from ratelimit_provider.core.exception_handlers import setup_exception_handlers
from ratelimit_provider.core.logging import configure_logging
from ratelimit_provider.core.middleware import request_id_middleware


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="OpenAI Rate Limit Provider",
        description=(
            "Manage OpenAI project rate limits by model name or rate limit id: "
            "read, sparse updates, and reset to documented defaults (the "
            "platform does not support deleting a rate limit). Send "
            "X-OpenAI-Api-Key to use a credential other than the configured "
            "admin key."
        ),
        version="0.1.0",
    )

    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(rate_limits_router, prefix="/v1")
    app.include_router(health_router)

    return app
