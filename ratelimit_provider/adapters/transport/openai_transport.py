"""OpenAI transport adapter.

The rate limit endpoints are not wrapped by typed SDK resources, so requests
go through the SDK's generic ``get``/``post`` helpers with
``cast_to=httpx.Response``. The SDK still provides URL building, auth and
organization headers, timeouts, and HTTP error classification.
"""

import logging
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from ratelimit_provider.adapters.transport.base import AbstractTransport
from ratelimit_provider.core.errors import RemoteAppError
from ratelimit_provider.core.logging import fingerprint

logger = logging.getLogger(__name__)


class OpenAITransport(AbstractTransport):
    """Transport backed by the official OpenAI Python SDK (async client).

    Retries are disabled: failures are reported to the caller as-is.
    """

    def __init__(
        self,
        api_key: str,
        organization_id: str | None = None,
        base_url: str | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        """Initialize the OpenAI async client.

        Args:
            api_key: Admin API key for organization endpoints.
            organization_id: Optional organization id header.
            base_url: Optional custom base URL for the OpenAI API.
            timeout_seconds: Timeout for each request in seconds.
        """
        self.client = AsyncOpenAI(
            api_key=api_key,
            organization=organization_id,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self.timeout_seconds = timeout_seconds

    async def execute(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        api_key: str | None = None,
    ) -> bytes:
        """Send a GET or POST request and return the raw body.

        Args:
            method: "GET" or "POST".
            path: Path relative to the configured base URL.
            body: JSON body for POST requests.
            api_key: Optional per-call credential override.

        Returns:
            bytes: Response body.

        Raises:
            ValueError: If the method is not supported.
            RemoteAppError: If the request fails for any transport/HTTP reason.
        """
        options: dict[str, Any] = {}
        if api_key:
            options["headers"] = {"Authorization": f"Bearer {api_key}"}

        verb = method.upper()
        logger.debug(
            "transport.request",
            extra={
                "method": verb,
                "path": path,
                "credential_override": fingerprint(api_key),
            },
        )

        try:
            if verb == "GET":
                response = await self.client.get(path, cast_to=httpx.Response, options=options)
            elif verb == "POST":
                response = await self.client.post(
                    path, cast_to=httpx.Response, body=body, options=options
                )
            else:
                raise ValueError(f"Unsupported HTTP method: {method}")
        except openai.APIStatusError as exc:
            raise RemoteAppError(
                code="openai_api_error",
                message=f"OpenAI API error (status {exc.status_code}): {exc.message}",
                details={
                    "http_status": exc.status_code,
                    **({"upstream_code": str(exc.code)} if exc.code else {}),
                },
            ) from exc
        except openai.APITimeoutError as exc:
            raise RemoteAppError(
                code="openai_timeout",
                message=f"OpenAI API request timed out after {self.timeout_seconds}s",
                details={"timeout_s": self.timeout_seconds},
            ) from exc
        except openai.APIConnectionError as exc:
            raise RemoteAppError(
                code="openai_connection_error",
                message=f"Could not reach the OpenAI API: {exc.message}",
            ) from exc

        return response.content
