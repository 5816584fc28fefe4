"""Transport adapter layer - executes authenticated calls against the OpenAI API."""

from ratelimit_provider.adapters.transport.base import AbstractTransport
from ratelimit_provider.adapters.transport.factory import create_transport
from ratelimit_provider.adapters.transport.openai_transport import OpenAITransport

__all__ = [
    "AbstractTransport",
    "OpenAITransport",
    "create_transport",
]
