"""
HTTP client utilities with connection pooling.
Provides the shared httpx client used for upstream API calls.
"""
import httpx
from config import Config


class HTTPClientManager:
    """Manages the shared httpx client with connection pooling."""

    _upstream_client: httpx.AsyncClient | None = None

    @classmethod
    def get_upstream_client(cls) -> httpx.AsyncClient:
        """
        Get or create the shared httpx client for Gemini/Imagen calls.

        Features:
        - Connection pooling (reuses TCP connections across requests)
        - Separate connect/read timeouts; the read timeout bounds the wait
          between streamed chunks

        Returns:
            Configured httpx.AsyncClient for upstream operations
        """
        if cls._upstream_client is None:
            limits = httpx.Limits(
                max_connections=Config.MAX_UPSTREAM_CONNECTIONS,
                max_keepalive_connections=10,
                keepalive_expiry=60.0
            )

            cls._upstream_client = httpx.AsyncClient(
                timeout=httpx.Timeout(
                    Config.UPSTREAM_READ_TIMEOUT,
                    connect=Config.UPSTREAM_CONNECT_TIMEOUT
                ),
                limits=limits,
                http2=True
            )

        return cls._upstream_client

    @classmethod
    async def close_all(cls) -> None:
        """
        Close managed clients and clean up connections.
        """
        if cls._upstream_client is not None:
            await cls._upstream_client.aclose()
            cls._upstream_client = None
