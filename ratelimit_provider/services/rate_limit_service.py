"""Rate limit lifecycle operations for OpenAI projects.

Every operation starts from a fresh catalog fetch; nothing is cached between
calls. Update and reset then issue a single POST against the record the
identifier resolved to. There is no version check between the two calls, so
a concurrent change made elsewhere can be overwritten.

The platform cannot delete a rate limit. ``reset_to_default`` stands in for
deletion by writing the documented defaults back onto the record.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from ratelimit_provider.adapters.transport.base import AbstractTransport
from ratelimit_provider.core.config import settings
from ratelimit_provider.core.errors import AppError, RemoteAppError, ValidationAppError
from ratelimit_provider.core.logging import project_context
from ratelimit_provider.schemas.rate_limit import (
    DefaultsSource,
    RateLimitRecord,
    RateLimitUpdate,
)
from ratelimit_provider.services.catalog import CatalogAccessor, decode_response, rate_limits_path
from ratelimit_provider.services.default_table import DefaultLimitTable, get_default_table
from ratelimit_provider.services.identifier import parse_import_id
from ratelimit_provider.services.matcher import match_rate_limit

logger = logging.getLogger(__name__)

T = TypeVar("T")

PERMISSION_HINT = (
    "Rate limit management requires an admin API key (sk-admin-...) "
    "with the api.management.read and api.management.write scopes"
)


@dataclass(frozen=True)
class RateLimitReset:
    """Record as it stands after a reset, and where its defaults came from."""

    record: RateLimitRecord
    defaults_source: DefaultsSource


class RateLimitService:
    """Resolve, read, update and reset project rate limits.

    Attributes:
        transport: Remote API transport.
        default_table: Documented defaults used by ``reset_to_default``.
        operation_timeout_seconds: Deadline for one whole public operation.
    """

    def __init__(
        self,
        transport: AbstractTransport,
        default_table: DefaultLimitTable | None = None,
        operation_timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            transport: Transport used for every remote call.
            default_table: Defaults table; the process-wide table when omitted.
            operation_timeout_seconds: Overall deadline; taken from settings when omitted.
        """
        self.transport = transport
        self.catalog = CatalogAccessor(transport)
        self.default_table = default_table if default_table is not None else get_default_table()
        if operation_timeout_seconds is None:
            operation_timeout_seconds = settings.app.operation_timeout_seconds
        self.operation_timeout_seconds = operation_timeout_seconds

    async def _run(
        self,
        operation: str,
        project_id: str,
        identifier: str | None,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        """Run one public operation under the deadline and log context.

        Errors leave with ``project_id`` and ``identifier`` attached. Expiry of
        the deadline cancels the pending remote call, so an update is never
        sent once the catalog fetch has been cut short.
        """
        with project_context(project_id):
            try:
                return await asyncio.wait_for(call(), timeout=self.operation_timeout_seconds)
            except asyncio.TimeoutError as exc:
                logger.warning(
                    "rate_limit.operation_timeout",
                    extra={
                        "operation": operation,
                        "identifier": identifier,
                        "timeout_s": self.operation_timeout_seconds,
                    },
                )
                raise RemoteAppError(
                    code="rate_limit_operation_timeout",
                    message=(
                        f"{operation} did not complete within "
                        f"{self.operation_timeout_seconds}s"
                    ),
                    details={"timeout_s": self.operation_timeout_seconds},
                ).annotate(project_id=project_id, identifier=identifier) from exc
            except AppError as exc:
                if isinstance(exc, RemoteAppError) and exc.is_permission_error:
                    logger.warning(
                        "rate_limit.permission_denied",
                        extra={
                            "operation": operation,
                            "identifier": identifier,
                            "http_status": exc.http_status,
                        },
                    )
                    exc.annotate(hint=PERMISSION_HINT)
                raise exc.annotate(project_id=project_id, identifier=identifier)

    async def _resolve(
        self, project_id: str, identifier: str, api_key: str | None
    ) -> RateLimitRecord:
        records = await self.catalog.records(project_id, api_key=api_key)
        return match_rate_limit(records, project_id, identifier).record

    async def _apply_update(
        self,
        project_id: str,
        record: RateLimitRecord,
        update: RateLimitUpdate,
        api_key: str | None,
    ) -> RateLimitRecord:
        """POST ``update`` onto ``record`` and return the resulting record.

        Values the caller set win over whatever the remote echoes back for the
        same fields; all other fields come from the response.
        """
        raw = await self.transport.execute(
            "POST",
            rate_limits_path(project_id, record.id),
            body=update.to_wire(name=record.model),
            api_key=api_key,
        )
        echoed = decode_response(raw, RateLimitRecord, what="rate limit update response")
        updated = echoed.model_copy(update=update.provided())

        logger.info(
            "rate_limit.updated",
            extra={
                "rate_limit_id": updated.id,
                "model": updated.model,
                "fields": sorted(update.provided()),
            },
        )
        return updated

    async def list_rate_limits(
        self,
        project_id: str,
        *,
        model: str | None = None,
        api_key: str | None = None,
    ) -> list[RateLimitRecord]:
        """List the rate limits on the project's first catalog page.

        Args:
            project_id: OpenAI project id.
            model: Keep only the record for this exact model name.
            api_key: Per-call credential override.
        """

        async def call() -> list[RateLimitRecord]:
            records = await self.catalog.records(project_id, api_key=api_key)
            if model is not None:
                records = [record for record in records if record.model == model]
            return records

        return await self._run("list_rate_limits", project_id, None, call)

    async def get_rate_limit(
        self, project_id: str, identifier: str, *, api_key: str | None = None
    ) -> RateLimitRecord:
        """Return the record ``identifier`` resolves to.

        Raises:
            NotFoundAppError: If the identifier matches no record.
            RemoteAppError: If the catalog fetch fails or times out.
            DecodeAppError: If the catalog response is malformed.
        """

        async def call() -> RateLimitRecord:
            return await self._resolve(project_id, identifier, api_key)

        return await self._run("get_rate_limit", project_id, identifier, call)

    async def update_rate_limit(
        self,
        project_id: str,
        identifier: str,
        update: RateLimitUpdate,
        *,
        api_key: str | None = None,
    ) -> RateLimitRecord:
        """Apply a sparse update to the record ``identifier`` resolves to.

        Args:
            project_id: OpenAI project id.
            identifier: Model name or (partial) rate limit id.
            update: Fields to change; only explicitly set fields are sent.
            api_key: Per-call credential override.

        Returns:
            The updated record.

        Raises:
            ValidationAppError: If ``update`` sets no field. No remote call is made.
            NotFoundAppError: If the identifier matches no record.
            RemoteAppError: If a remote call fails or the deadline expires.
            DecodeAppError: If a remote response is malformed.
        """
        if not update.provided():
            raise ValidationAppError(
                code="rate_limit_update_empty",
                message="At least one rate limit field must be provided",
                details={"project_id": project_id, "identifier": identifier},
            )

        async def call() -> RateLimitRecord:
            record = await self._resolve(project_id, identifier, api_key)
            return await self._apply_update(project_id, record, update, api_key)

        return await self._run("update_rate_limit", project_id, identifier, call)

    async def reset_to_default(
        self, project_id: str, identifier: str, *, api_key: str | None = None
    ) -> RateLimitReset:
        """Write the documented defaults back onto a rate limit.

        Defaults are looked up by the model of the matched record, not by the
        identifier the caller passed. Every field the defaults entry defines
        is sent. Running it twice leaves the record in the same state.

        Raises:
            NotFoundAppError: If the identifier matches no record.
            RemoteAppError: If a remote call fails or the deadline expires.
            DecodeAppError: If a remote response is malformed.
        """

        async def call() -> RateLimitReset:
            record = await self._resolve(project_id, identifier, api_key)
            entry, source = self.default_table.lookup_with_source(record.model)
            update = RateLimitUpdate(**entry.limits())
            updated = await self._apply_update(project_id, record, update, api_key)

            logger.info(
                "rate_limit.reset",
                extra={
                    "rate_limit_id": updated.id,
                    "model": updated.model,
                    "defaults_source": source,
                },
            )
            return RateLimitReset(record=updated, defaults_source=source)

        return await self._run("reset_to_default", project_id, identifier, call)

    async def import_rate_limit(
        self, import_id: str, *, api_key: str | None = None
    ) -> tuple[str, RateLimitRecord]:
        """Resolve a ``project_id:identifier`` import id.

        Returns:
            Tuple of (project_id, record).

        Raises:
            ValidationAppError: If ``import_id`` is malformed.
        """
        project_id, identifier = parse_import_id(import_id)
        record = await self.get_rate_limit(project_id, identifier, api_key=api_key)
        return project_id, record
