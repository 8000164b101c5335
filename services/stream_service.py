"""
Streaming service containing the relay logic.
Runs the upstream generation with bounded retry and forwards text increments,
grounding sources and errors to the caller in the selected framing.
"""
import json
import time
from typing import AsyncIterator, Awaitable, Callable, List, Optional

from config import Config
from models.chat_models import ChatPayload, GroundingSource, StreamFormat
from utils.constants import BLOCKING_FINISH_REASONS, MediaTypes, STREAM_MARKER
from utils.errors import BridgeError, UpstreamApplicationError, UpstreamTransportError
from utils.logger import app_logger
from utils.retry import RetryPolicy


class MarkerEncoder:
    """
    Plain-text framing used by the existing frontend.

    Text increments are written verbatim. Terminal metadata is one line that
    starts with STREAM_MARKER followed by a JSON object.
    """

    media_type = MediaTypes.TEXT

    def text(self, content: str) -> str:
        return content

    def sources(self, sources: List[GroundingSource]) -> str:
        return self._marker({"sources": [source.to_dict() for source in sources]})

    def error(self, error: dict) -> str:
        return self._marker({"error": error})

    @staticmethod
    def _marker(payload: dict) -> str:
        return f"\n{STREAM_MARKER}{json.dumps(payload, separators=(',', ':'))}\n"


class NdjsonEncoder:
    """Line-delimited JSON framing: every increment is a tagged event."""

    media_type = MediaTypes.NDJSON

    def text(self, content: str) -> str:
        return self._event("text", content)

    def sources(self, sources: List[GroundingSource]) -> str:
        return self._event("sources", [source.to_dict() for source in sources])

    def error(self, error: dict) -> str:
        return self._event("error", error)

    @staticmethod
    def _event(event_type: str, payload) -> str:
        return json.dumps({"type": event_type, "payload": payload}, separators=(',', ':')) + "\n"


class StreamService:
    """Service for relaying a streamed generation to the caller."""

    @staticmethod
    def get_encoder(stream_format: StreamFormat):
        """Return the encoder for the requested framing."""
        if stream_format == StreamFormat.NDJSON:
            return NdjsonEncoder()
        return MarkerEncoder()

    @staticmethod
    def merge_sources(collected: List[GroundingSource], new_sources: List[GroundingSource]) -> None:
        """Add sources not seen yet (by uri), keeping first-seen order."""
        seen = {source.uri for source in collected}
        for source in new_sources:
            if source.uri not in seen:
                collected.append(source)
                seen.add(source.uri)

    @staticmethod
    async def relay(
        client,
        payload: ChatPayload,
        encoder=None,
        retry_policy: Optional[RetryPolicy] = None,
        is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
        deadline_seconds: Optional[float] = None
    ) -> AsyncIterator[str]:
        """Stream the upstream generation to the caller.

        Failures before any text was forwarded are retried according to
        ``retry_policy``. Once text has been forwarded, a failure is reported
        with an error marker and the stream ends. No attempt starts after the
        deadline. A generation the model stops for policy reasons ends with an
        error marker. Grounding sources are sent once, after the last text
        increment.

        Args:
            client: Upstream client exposing ``stream_generate(payload)``
            payload: Assembled contents and settings
            encoder: Output framing (defaults to the marker framing)
            retry_policy: Retry bound and delay policy (defaults to Config)
            is_disconnected: Awaitable check for client disconnect
            deadline_seconds: Overall time budget for the generation

        Yields:
            Encoded output increments
        """
        if encoder is None:
            encoder = MarkerEncoder()
        if retry_policy is None:
            retry_policy = RetryPolicy.from_config()
        if deadline_seconds is None:
            deadline_seconds = Config.STREAM_DEADLINE_SECONDS

        deadline = time.monotonic() + deadline_seconds
        forwarded = False
        attempt = 0

        while True:
            attempt += 1
            sources: List[GroundingSource] = []
            app_logger.info(f"Upstream call attempt {attempt}/{retry_policy.max_attempts}")

            stream_iterator = client.stream_generate(payload)
            try:
                async for chunk in stream_iterator:
                    if time.monotonic() > deadline:
                        raise UpstreamTransportError(f"no complete response within {deadline_seconds:g}s")

                    if is_disconnected is not None and await is_disconnected():
                        app_logger.info("Client disconnected, stopping upstream stream")
                        return

                    if chunk.text:
                        forwarded = True
                        yield encoder.text(chunk.text)

                    if chunk.grounding_sources:
                        StreamService.merge_sources(sources, chunk.grounding_sources)

                    if chunk.finish_reason in BLOCKING_FINISH_REASONS:
                        raise UpstreamApplicationError(f"Generation stopped by the model ({chunk.finish_reason})")

            except BridgeError as e:
                if forwarded:
                    app_logger.error(f"Upstream failed after output started, not retrying: {e.message}")
                    yield encoder.error(e.to_dict())
                    return

                if retry_policy.should_retry(e, attempt):
                    delay = retry_policy.delay_for(attempt)
                    if time.monotonic() + delay < deadline:
                        app_logger.warning(
                            f"Upstream attempt {attempt} failed ({e.error_type}: {e.message}), "
                            f"retrying in {delay:.1f}s"
                        )
                        await retry_policy.wait(attempt)
                        continue
                    app_logger.warning(
                        f"Not retrying: the next attempt would start after the {deadline_seconds:g}s deadline"
                    )

                app_logger.error(f"Upstream call failed after {attempt} attempt(s): {e.message}")
                yield encoder.error(e.to_dict())
                return

            except Exception as e:
                app_logger.error(f"Streaming chat error: {str(e)}", exc_info=True)
                yield encoder.error({
                    "type": "internal_error",
                    "message": "An internal error occurred while streaming the response."
                })
                return

            finally:
                aclose = getattr(stream_iterator, "aclose", None)
                if aclose is not None:
                    try:
                        await aclose()
                    except Exception as e:
                        app_logger.warning(f"Error closing upstream stream: {e}")

            if sources:
                yield encoder.sources(sources)
            app_logger.info(f"Stream complete after {attempt} attempt(s), {len(sources)} source(s)")
            return
