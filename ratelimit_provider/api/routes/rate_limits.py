from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query

from ratelimit_provider.core.dependencies import get_api_key_override, get_rate_limit_service
from ratelimit_provider.schemas.rate_limit import (
    RateLimitImportResponse,
    RateLimitListResponse,
    RateLimitRecord,
    RateLimitResetResponse,
    RateLimitUpdate,
)
from ratelimit_provider.services.rate_limit_service import RateLimitService

router = APIRouter(tags=["Rate limits"])

ServiceDep = Annotated[RateLimitService, Depends(get_rate_limit_service)]
ApiKeyDep = Annotated[str | None, Depends(get_api_key_override)]


@router.get(
    "/projects/{project_id}/rate_limits",
    response_model=RateLimitListResponse,
)
async def list_rate_limits(
    project_id: str,
    service: ServiceDep,
    api_key: ApiKeyDep,
    model: str | None = Query(None, description="Only return the rate limit for this exact model"),
) -> RateLimitListResponse:
    """List the rate limits of a project.

    Only the first page returned by the platform is listed.
    """
    records = await service.list_rate_limits(project_id, model=model, api_key=api_key)
    return RateLimitListResponse(project_id=project_id, rate_limits=records)


@router.get(
    "/projects/{project_id}/rate_limits/{identifier}",
    response_model=RateLimitRecord,
)
async def get_rate_limit(
    project_id: str,
    identifier: str,
    service: ServiceDep,
    api_key: ApiKeyDep,
) -> RateLimitRecord:
    """Fetch one rate limit by model name or (partial) rate limit id.

    Args:
        project_id: OpenAI project id.
        identifier: e.g. ``gpt-4o``, ``rl-gpt-4o`` or ``rl-gpt-4o-a1b2c3``.
    """
    return await service.get_rate_limit(project_id, identifier, api_key=api_key)


@router.patch(
    "/projects/{project_id}/rate_limits/{identifier}",
    response_model=RateLimitRecord,
)
async def update_rate_limit(
    project_id: str,
    identifier: str,
    service: ServiceDep,
    api_key: ApiKeyDep,
    update: RateLimitUpdate = Body(...),
) -> RateLimitRecord:
    """Change selected ceilings of a rate limit; omitted fields are left as-is."""

    return await service.update_rate_limit(project_id, identifier, update, api_key=api_key)


@router.delete(
    "/projects/{project_id}/rate_limits/{identifier}",
    response_model=RateLimitResetResponse,
)
async def reset_rate_limit(
    project_id: str,
    identifier: str,
    service: ServiceDep,
    api_key: ApiKeyDep,
) -> RateLimitResetResponse:
    """Reset a rate limit to its documented defaults.

    Rate limits cannot be removed from a project; the record stays in place
    with default ceilings.
    """
    result = await service.reset_to_default(project_id, identifier, api_key=api_key)
    return RateLimitResetResponse(
        defaults_source=result.defaults_source,
        rate_limit=result.record,
    )


@router.get(
    "/rate_limits/imports/{import_id}",
    response_model=RateLimitImportResponse,
)
async def import_rate_limit(
    import_id: str,
    service: ServiceDep,
    api_key: ApiKeyDep,
) -> RateLimitImportResponse:
    """Resolve an import id of the form ``project_id:identifier``."""

    project_id, record = await service.import_rate_limit(import_id, api_key=api_key)
    return RateLimitImportResponse(project_id=project_id, rate_limit=record)
