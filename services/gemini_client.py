"""
Gemini API client.
Calls the Gemini and Imagen REST endpoints with the shared httpx client and
translates their responses and failures into bridge types.
"""
import json
from typing import AsyncIterator, Optional

import httpx

from config import Config
from models.chat_models import ChatPayload, GroundingSource, StreamChunk
from utils.errors import ConfigurationError, UpstreamApplicationError, UpstreamTransportError
from utils.http_client import HTTPClientManager
from utils.logger import app_logger


class GeminiClient:
    """Thin async client for the generative language REST API."""

    def __init__(
        self,
        api_key: str,
        http_client: httpx.AsyncClient,
        base_url: str = Config.GEMINI_API_BASE_URL,
        chat_model: str = Config.GEMINI_CHAT_MODEL,
        image_model: str = Config.GEMINI_IMAGE_MODEL
    ):
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        self._api_key = api_key
        self._http = http_client
        self.base_url = base_url.rstrip("/")
        self.chat_model = chat_model
        self.image_model = image_model

    @classmethod
    def from_config(cls) -> Optional["GeminiClient"]:
        """Build the process-wide client, or None when no key is configured."""
        if not Config.is_upstream_configured():
            return None
        return cls(
            api_key=Config.GEMINI_API_KEY,
            http_client=HTTPClientManager.get_upstream_client(),
            base_url=Config.GEMINI_API_BASE_URL,
            chat_model=Config.GEMINI_CHAT_MODEL,
            image_model=Config.GEMINI_IMAGE_MODEL
        )

    @property
    def _headers(self) -> dict:
        return {"Content-Type": "application/json", "x-goog-api-key": self._api_key}

    async def stream_generate(self, payload: ChatPayload) -> AsyncIterator[StreamChunk]:
        """
        Stream a generation as parsed chunks.

        Uses ``streamGenerateContent?alt=sse``: every ``data:`` line is one
        GenerateContentResponse JSON object.

        Raises:
            UpstreamTransportError: connection failure or timeout
            UpstreamApplicationError: non-2xx status, blocked prompt or malformed chunk
        """
        url = f"{self.base_url}/models/{self.chat_model}:streamGenerateContent"
        try:
            async with self._http.stream(
                "POST",
                url,
                params={"alt": "sse"},
                headers=self._headers,
                json=payload.to_request_body()
            ) as response:
                if response.status_code >= 400:
                    body = await response.aread()
                    raise self.application_error(response.status_code, body)

                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if not data:
                        continue
                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError as e:
                        raise UpstreamApplicationError(f"Malformed stream chunk: {e.msg}") from e
                    yield self.parse_chunk(event)
        except httpx.TransportError as e:
            raise UpstreamTransportError(str(e) or e.__class__.__name__) from e

    async def generate_image(self, prompt: str) -> tuple[str, str]:
        """
        Generate one image with the Imagen ``predict`` endpoint.

        Returns:
            Tuple of (base64_data, mime_type)
        """
        url = f"{self.base_url}/models/{self.image_model}:predict"
        body = {"instances": [{"prompt": prompt}], "parameters": {"sampleCount": 1}}
        try:
            response = await self._http.post(url, headers=self._headers, json=body)
        except httpx.TransportError as e:
            raise UpstreamTransportError(str(e) or e.__class__.__name__) from e

        if response.status_code >= 400:
            raise self.application_error(response.status_code, response.content)

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamApplicationError("Image service returned a non-JSON body", response.status_code) from e

        for prediction in data.get("predictions") or []:
            image_b64 = prediction.get("bytesBase64Encoded")
            if image_b64:
                return image_b64, prediction.get("mimeType") or "image/png"

        reason = next(
            (p.get("raiFilteredReason") for p in data.get("predictions") or [] if p.get("raiFilteredReason")),
            None
        )
        raise UpstreamApplicationError(reason or "Image service returned no image")

    @staticmethod
    def parse_chunk(event: dict) -> StreamChunk:
        """Extract text, grounding sources and finish reason from one response object."""
        feedback = event.get("promptFeedback") or {}
        if feedback.get("blockReason"):
            raise UpstreamApplicationError(f"Prompt blocked by safety filter ({feedback['blockReason']})")

        candidates = event.get("candidates") or []
        if not candidates:
            return StreamChunk()

        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        text = "".join(
            part["text"] for part in parts
            if isinstance(part.get("text"), str) and not part.get("thought")
        )

        sources = []
        grounding = candidate.get("groundingMetadata") or {}
        for grounding_chunk in grounding.get("groundingChunks") or []:
            web = grounding_chunk.get("web") or {}
            if web.get("uri"):
                sources.append(GroundingSource(uri=web["uri"], title=web.get("title") or ""))

        return StreamChunk(
            text=text or None,
            grounding_sources=sources,
            finish_reason=candidate.get("finishReason")
        )

    @staticmethod
    def application_error(status_code: int, body: bytes) -> UpstreamApplicationError:
        """Build an error from a non-success response, keeping the provider's message."""
        message = None
        try:
            payload = json.loads(body)
            if isinstance(payload, list) and payload:
                payload = payload[0]
            if isinstance(payload, dict):
                error = payload.get("error") or {}
                message = error.get("message") if isinstance(error, dict) else str(error)
        except (ValueError, TypeError):
            pass

        if not message:
            message = body.decode("utf-8", errors="replace").strip()[:300] or f"HTTP {status_code}"

        app_logger.error(f"Gemini API error (status {status_code}): {message}")
        return UpstreamApplicationError(message, upstream_status=status_code)
