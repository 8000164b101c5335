"""
Shared route dependencies.
"""
from fastapi import Request

from services.gemini_client import GeminiClient
from utils.errors import ConfigurationError


def get_gemini_client(request: Request) -> GeminiClient:
    """Return the upstream client built at startup, or fail the request."""
    client = getattr(request.app.state, "gemini_client", None)
    if client is None:
        raise ConfigurationError("GEMINI_API_KEY is not set")
    return client
