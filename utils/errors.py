"""
Error taxonomy for the bridge.

Each error knows its client-facing type and HTTP status so route handlers and
the stream relay can report it without re-classifying.
"""
from fastapi import status


class BridgeError(Exception):
    """Base class for errors reported to the caller."""

    error_type: str = "internal_error"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    retryable: bool = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def client_message(self) -> str:
        """Human-readable message safe to send to the caller."""
        return self.message

    def to_dict(self) -> dict:
        return {"type": self.error_type, "message": self.client_message()}


class ConfigurationError(BridgeError):
    """The server is missing required configuration (e.g. the API key)."""

    error_type = "configuration_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def client_message(self) -> str:
        return f"Server misconfiguration: {self.message}. This is not caused by your request."


class UpstreamTransportError(BridgeError):
    """Network failure or timeout while talking to the AI provider."""

    error_type = "upstream_unavailable"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True

    def client_message(self) -> str:
        return f"The AI service could not be reached ({self.message}). Please try again later."


class UpstreamApplicationError(BridgeError):
    """The AI provider answered with a non-success status or an unusable body."""

    error_type = "upstream_error"
    status_code = status.HTTP_502_BAD_GATEWAY

    RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status
        self.retryable = upstream_status in self.RETRYABLE_STATUSES

    def client_message(self) -> str:
        return f"The AI service returned an error: {self.message}"
