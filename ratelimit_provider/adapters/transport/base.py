from abc import ABC, abstractmethod
from typing import Any


class AbstractTransport(ABC):
	"""Interface for executing requests against the remote platform."""

	@abstractmethod
	async def execute(
		self,
		method: str,
		path: str,
		*,
		body: dict[str, Any] | None = None,
		api_key: str | None = None,
	) -> bytes:
		"""Send one request and return the raw response body.

		Args:
			method: HTTP method ("GET" or "POST").
			path: Path relative to the API base URL (e.g. "/organization/projects/p/rate_limits").
			body: Optional JSON body.
			api_key: Optional credential overriding the configured one for this call only.

		Returns:
			bytes: Raw response body of a successful (2xx) response.

		Raises:
			RemoteAppError: On HTTP errors, timeouts or connection failures.
		"""
		...
