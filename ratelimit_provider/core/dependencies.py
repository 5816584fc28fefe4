"""FastAPI dependencies wiring the rate limit service into the HTTP layer.

Routes depend on these functions only, so tests can swap the service through
``app.dependency_overrides`` without touching configuration.
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Header

from ratelimit_provider.adapters.transport.factory import create_transport
from ratelimit_provider.core.config import settings
from ratelimit_provider.core.logging import fingerprint
from ratelimit_provider.services.default_table import get_default_table
from ratelimit_provider.services.rate_limit_service import RateLimitService

logger = logging.getLogger(__name__)

OPENAI_API_KEY_HEADER = "X-OpenAI-Api-Key"

_service: RateLimitService | None = None
_service_config: tuple | None = None


def _current_config() -> tuple:
    return (
        settings.openai.admin_api_key,
        settings.openai.organization_id,
        settings.openai.base_url,
        settings.openai.timeout_seconds,
        settings.app.operation_timeout_seconds,
        settings.app.default_limits_path,
    )


def get_rate_limit_service() -> RateLimitService:
    """Return a process-wide service instance.

    The instance is rebuilt when the relevant configuration changes
    (primarily in tests).

    Raises:
        ValidationAppError: If no admin API key is configured.
    """

    global _service, _service_config

    config = _current_config()
    if _service is None or _service_config != config:
        _service = RateLimitService(
            transport=create_transport(settings.openai),
            default_table=get_default_table(),
            operation_timeout_seconds=settings.app.operation_timeout_seconds,
        )
        _service_config = config
        logger.info(
            "rate_limit_service.created",
            extra={
                "base_url": settings.openai.base_url,
                "admin_key": fingerprint(settings.openai.admin_api_key),
            },
        )

    return _service


def get_api_key_override(
    x_openai_api_key: Annotated[str | None, Header(alias=OPENAI_API_KEY_HEADER)] = None,
) -> str | None:
    """Per-request credential replacing the configured admin key, if sent."""

    return x_openai_api_key or None
