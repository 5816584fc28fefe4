"""Factory for the configured transport instance."""

from ratelimit_provider.adapters.transport.base import AbstractTransport
from ratelimit_provider.adapters.transport.openai_transport import OpenAITransport
from ratelimit_provider.core.config import OpenAISettings, settings
from ratelimit_provider.core.errors import ValidationAppError


def create_transport(openai_settings: OpenAISettings | None = None) -> AbstractTransport:
    """Instantiate the OpenAI transport from configuration.

    Args:
        openai_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractTransport: Configured transport instance.

    Raises:
        ValidationAppError: If no admin API key is configured.
    """
    cfg = openai_settings or settings.openai

    if not cfg.admin_api_key:
        raise ValidationAppError(
            code="openai_missing_admin_key",
            message="Rate limit management requires the OPENAI_ADMIN_API_KEY environment variable",
            details={"hint": "Use an admin key (sk-admin-...) with api.management scopes"},
        )

    return OpenAITransport(
        api_key=cfg.admin_api_key,
        organization_id=cfg.organization_id,
        base_url=cfg.base_url,
        timeout_seconds=cfg.timeout_seconds,
    )
