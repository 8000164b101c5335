"""
Models package exports.
"""
from models.api_models import (
    ChatRequest,
    ConversationTurn,
    ImageRequest,
    ImageResponse,
    MediaPart,
    Part
)
from models.chat_models import ChatPayload, GenerationSettings, GroundingSource, StreamChunk, StreamFormat

__all__ = [
    'ChatRequest',
    'ConversationTurn',
    'ImageRequest',
    'ImageResponse',
    'MediaPart',
    'Part',
    'ChatPayload',
    'GenerationSettings',
    'GroundingSource',
    'StreamChunk',
    'StreamFormat'
]
