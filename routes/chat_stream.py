"""
Route handlers for streaming chat operations.
Handles the /chat endpoint (and the legacy /api/stream-chat path).
"""
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse

from config import Config
from models.api_models import ChatRequest
from models.chat_models import StreamFormat
from routes.dependencies import get_gemini_client
from services.chat_service import ChatService
from services.stream_service import StreamService
from utils.constants import STREAM_HEADERS
from utils.logger import app_logger

router = APIRouter()


@router.post("/chat")
@router.post("/api/stream-chat", include_in_schema=False)
async def chat_stream(
    request: ChatRequest,
    http_request: Request,
    stream_format: Optional[StreamFormat] = Query(None, alias="format"),
    client=Depends(get_gemini_client)
):
    """
    Streaming chat endpoint.

    The request is validated and assembled before the response starts, so
    rejections still get a proper status code. From then on failures are
    reported in-band.
    """
    payload = ChatService.prepare_payload(request)
    encoder = StreamService.get_encoder(stream_format or StreamFormat(Config.STREAM_FORMAT))

    app_logger.info(
        f"Chat stream: {len(request.history)} history turns, "
        f"prompt={len(request.prompt or '')} chars, format={encoder.media_type}"
    )

    async def event_generator() -> AsyncIterator[str]:
        async for event in StreamService.relay(
            client=client,
            payload=payload,
            encoder=encoder,
            is_disconnected=http_request.is_disconnected
        ):
            yield event

    return StreamingResponse(
        event_generator(),
        media_type=encoder.media_type,
        headers=STREAM_HEADERS
    )
