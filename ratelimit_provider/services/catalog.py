"""Read access to a project's rate limit catalog.

Only the first page of the list endpoint is fetched. Projects with more
records than fit on one page will have later records invisible to matching;
this is logged as ``rate_limit.catalog_truncated`` and otherwise left alone.
"""

from __future__ import annotations

import json
import logging
from typing import TypeVar
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from ratelimit_provider.adapters.transport.base import AbstractTransport
from ratelimit_provider.core.errors import DecodeAppError
from ratelimit_provider.core.logging import fingerprint
from ratelimit_provider.schemas.rate_limit import RateLimitPage, RateLimitRecord

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def rate_limits_path(project_id: str, rate_limit_id: str | None = None) -> str:
    """Build the organization API path for a project's rate limits."""

    path = f"/organization/projects/{quote(project_id, safe='')}/rate_limits"
    if rate_limit_id is not None:
        path += f"/{quote(rate_limit_id, safe='')}"
    return path


def decode_response(raw: bytes, model: type[ModelT], *, what: str) -> ModelT:
    """Parse a remote JSON body into ``model``.

    Args:
        raw: Response body.
        model: Pydantic model to validate against.
        what: Short description used in the error message.

    Raises:
        DecodeAppError: If the body is not JSON or does not fit the model.
    """
    try:
        return model.model_validate(json.loads(raw))
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as exc:
        raise DecodeAppError(
            code="rate_limit_decode_failed",
            message=f"Could not decode {what}: {exc}",
        ) from exc


class CatalogAccessor:
    """Fetches the rate limit records of a project through a transport."""

    def __init__(self, transport: AbstractTransport) -> None:
        self.transport = transport

    async def fetch(self, project_id: str, *, api_key: str | None = None) -> RateLimitPage:
        """Return the first catalog page of ``project_id``.

        Raises:
            RemoteAppError: If the remote call fails.
            DecodeAppError: If the response is not a valid list page.
        """
        raw = await self.transport.execute(
            "GET", rate_limits_path(project_id), api_key=api_key
        )
        page = decode_response(raw, RateLimitPage, what="rate limit list response")

        logger.debug(
            "rate_limit.catalog_fetched",
            extra={
                "records": len(page.data),
                "has_more": page.has_more,
                "credential_override": fingerprint(api_key),
            },
        )
        if page.has_more:
            logger.warning(
                "rate_limit.catalog_truncated",
                extra={"records": len(page.data), "last_id": page.last_id},
            )
        return page

    async def records(
        self, project_id: str, *, api_key: str | None = None
    ) -> list[RateLimitRecord]:
        """Shortcut for ``fetch(...).data``."""

        page = await self.fetch(project_id, api_key=api_key)
        return page.data
