"""Pytest configuration and fixtures shared across all test modules.

Environment defaults are set before anything imports the settings module.
``FakeTransport`` stands in for the OpenAI organization API: it keeps rate
limit records per project in wire format and answers the list and update
endpoints the way the platform does.
"""

import asyncio
import json
import os
from typing import Any
from urllib.parse import unquote

# Set before any imports that might load settings
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("OPENAI_ADMIN_API_KEY", "sk-admin-test-key")
os.environ.setdefault("APP_OPERATION_TIMEOUT_SECONDS", "5")

import pytest

from ratelimit_provider.adapters.transport.base import AbstractTransport
from ratelimit_provider.core.errors import RemoteAppError
from ratelimit_provider.schemas.rate_limit import WIRE_FIELD_NAMES
from ratelimit_provider.services.default_table import load_default_table
from ratelimit_provider.services.rate_limit_service import RateLimitService

PROJECT_ID = "proj_test123"
PROJECT_PREFIX = "/organization/projects/"


def wire_record(rate_limit_id: str, model: str, **limits: int) -> dict[str, Any]:
    """Build a record as the platform returns it (wire field names)."""

    record: dict[str, Any] = {"object": "project.rate_limit", "id": rate_limit_id, "model": model}
    for name, value in limits.items():
        record[WIRE_FIELD_NAMES[name]] = value
    return record


class FakeTransport(AbstractTransport):
    """In-memory rate limit endpoints.

    Attributes:
        projects: project id -> list of wire-format records (catalog order).
        calls: (method, path, body, api_key) for every request received.
        has_more: Value reported in list responses.
        list_delay: Seconds to sleep before answering a list request.
        echo_stale: When True, update responses return the record as it was
            before the update (the platform is not guaranteed to echo values).
    """

    def __init__(self, projects: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self.projects = projects if projects is not None else {}
        self.calls: list[tuple[str, str, dict[str, Any] | None, str | None]] = []
        self.has_more = False
        self.list_delay = 0.0
        self.echo_stale = False

    def methods(self) -> list[str]:
        return [method for method, *_ in self.calls]

    def record(self, project_id: str, rate_limit_id: str) -> dict[str, Any]:
        return next(r for r in self.projects[project_id] if r["id"] == rate_limit_id)

    async def execute(
        self,
        method: str,
        path: str,
        *,
        body: dict[str, Any] | None = None,
        api_key: str | None = None,
    ) -> bytes:
        self.calls.append((method, path, body, api_key))

        assert path.startswith(PROJECT_PREFIX)
        parts = [unquote(p) for p in path[len(PROJECT_PREFIX):].split("/")]
        project_id = parts[0]
        assert parts[1] == "rate_limits"

        if method == "GET":
            if self.list_delay:
                await asyncio.sleep(self.list_delay)
            data = self.projects.get(project_id, [])
            return json.dumps(
                {
                    "object": "list",
                    "data": data,
                    "first_id": data[0]["id"] if data else None,
                    "last_id": data[-1]["id"] if data else None,
                    "has_more": self.has_more,
                }
            ).encode()

        assert method == "POST"
        rate_limit_id = parts[2]
        try:
            stored = self.record(project_id, rate_limit_id)
        except (KeyError, StopIteration):
            raise RemoteAppError(
                code="openai_api_error",
                message="OpenAI API error (status 404): not found",
                details={"http_status": 404},
            )
        assert body is not None and body.get("name") == stored["model"]

        before = dict(stored)
        stored.update({k: v for k, v in body.items() if k != "name"})
        return json.dumps(before if self.echo_stale else stored).encode()


@pytest.fixture
def default_table():
    return load_default_table()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport(
        {
            PROJECT_ID: [
                wire_record("rl-gpt-4o-a1b2c3", "gpt-4o", max_requests_per_minute=500, max_tokens_per_minute=30000),
                wire_record("rl-gpt-4o-mini-d4e5f6", "gpt-4o-mini", max_requests_per_minute=500),
                wire_record("rl-dall-e-3", "dall-e-3", max_requests_per_minute=10, max_images_per_minute=2),
                wire_record("rl-custom-model", "custom-model", max_requests_per_minute=1),
            ]
        }
    )


@pytest.fixture
def service(transport: FakeTransport, default_table) -> RateLimitService:
    return RateLimitService(
        transport=transport,
        default_table=default_table,
        operation_timeout_seconds=5.0,
    )
