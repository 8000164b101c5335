"""
Pydantic data models for API requests and responses.
Request models also carry the ordered validation rules for the chat endpoint.
"""
import base64
import binascii
import re
from typing import Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from config import Config
from utils.constants import (
    Patterns,
    Roles,
    SAFETY_CATEGORIES,
    SAFETY_THRESHOLDS,
    ValidationMessages
)


def is_valid_base64(data: str) -> bool:
    """Strict base64 check; whitespace (e.g. wrapped lines) is ignored."""
    compact = "".join(data.split())
    if not compact:
        return False
    try:
        base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def is_valid_mime_type(mime_type: str) -> bool:
    return bool(mime_type) and re.match(Patterns.MIME_TYPE, mime_type) is not None


class MediaPart(BaseModel):
    """Inline media attachment (base64 payload plus its mime type)."""
    model_config = ConfigDict(populate_by_name=True)

    mime_type: str = Field(alias="mimeType")
    data: str

    @classmethod
    def from_data_uri(cls, uri: str) -> "MediaPart":
        """Split a ``data:<mime>;base64,<payload>`` URI into a media part."""
        match = re.match(Patterns.DATA_URI, uri.strip(), flags=re.DOTALL)
        if not match or not match.group("mime") or not match.group("data"):
            raise ValueError(ValidationMessages.BAD_DATA_URI)
        return cls(mime_type=match.group("mime"), data=match.group("data"))

    def check(self, label: str) -> None:
        """Raise ValueError with a fixed message when the part is malformed."""
        if not is_valid_mime_type(self.mime_type):
            raise ValueError(ValidationMessages.BAD_MIME_TYPE.format(label=label, mime=self.mime_type))
        if not is_valid_base64(self.data):
            raise ValueError(ValidationMessages.BAD_BASE64.format(label=label))

    def to_gemini(self) -> dict:
        return {"inlineData": {"mimeType": self.mime_type, "data": "".join(self.data.split())}}


class Part(BaseModel):
    """One piece of a turn: either text or inline media."""
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    inline_data: Optional[MediaPart] = Field(None, alias="inlineData")

    @model_validator(mode="after")
    def check_single_kind(self) -> "Part":
        if (self.text is None) == (self.inline_data is None):
            raise ValueError("A part must contain exactly one of 'text' or 'inlineData'")
        return self

    def to_gemini(self) -> dict:
        if self.inline_data is not None:
            return self.inline_data.to_gemini()
        return {"text": self.text}


class ConversationTurn(BaseModel):
    """A single message of the conversation history."""
    role: Literal["user", "model"]
    parts: List[Part] = Field(..., min_length=1)

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            return Roles.ALIASES.get(value, value)
        return value

    def to_gemini(self) -> dict:
        return {"role": self.role, "parts": [part.to_gemini() for part in self.parts]}


class ChatRequest(BaseModel):
    """
    Streaming chat request.

    The history is owned by the client and sent in full on every request.
    The new user message arrives either as ``prompt`` or as the last history
    turn; attachments arrive as ``media`` parts and/or a data URI in ``image``.
    """
    model_config = ConfigDict(populate_by_name=True)

    history: List[ConversationTurn]
    prompt: Optional[str] = None
    media: List[MediaPart] = Field(default_factory=list)
    image: Optional[str] = Field(None, description="Inline image as data:<mime>;base64,<payload>")
    temperature: Optional[float] = Field(None, ge=0, le=2)
    max_output_tokens: Optional[int] = Field(None, alias="maxOutputTokens", gt=0)
    system_instruction: Optional[str] = Field(None, alias="systemInstruction")
    safety_thresholds: Optional[Dict[str, str]] = Field(None, alias="safetyThresholds")

    @field_validator("safety_thresholds")
    @classmethod
    def check_safety_thresholds(cls, value):
        if value is None:
            return value
        for category, threshold in value.items():
            if category not in SAFETY_CATEGORIES:
                raise ValueError(f"Unknown safety category '{category}'")
            if threshold not in SAFETY_THRESHOLDS:
                raise ValueError(f"Unknown safety threshold '{threshold}' for {category}")
        return value

    @model_validator(mode="after")
    def check_limits(self) -> "ChatRequest":
        """Size and content checks, in order; the first violation is reported."""
        if len(self.history) > Config.MAX_HISTORY_LENGTH:
            raise ValueError(ValidationMessages.HISTORY_TOO_LONG.format(
                limit=Config.MAX_HISTORY_LENGTH, count=len(self.history)
            ))

        if self.prompt is not None and len(self.prompt) > Config.MAX_PROMPT_LENGTH:
            raise ValueError(ValidationMessages.PROMPT_TOO_LONG.format(
                limit=Config.MAX_PROMPT_LENGTH, count=len(self.prompt)
            ))

        if not self.has_prompt:
            if not self.history:
                raise ValueError(ValidationMessages.NOTHING_TO_ANSWER)
            if self.history[-1].role != Roles.USER:
                raise ValueError(ValidationMessages.LAST_TURN_NOT_USER.format(role=self.history[-1].role))

        attachment_count = len(self.media) + (1 if self.image is not None else 0)
        if attachment_count > Config.MAX_MEDIA_PARTS:
            raise ValueError(ValidationMessages.TOO_MANY_MEDIA.format(
                limit=Config.MAX_MEDIA_PARTS, count=attachment_count
            ))

        for turn_index, turn in enumerate(self.history, start=1):
            for part in turn.parts:
                if part.inline_data is not None:
                    part.inline_data.check(f"Media in history turn {turn_index}")

        for index, part in enumerate(self.attachments(), start=1):
            part.check(f"Attachment {index}")

        return self

    @property
    def has_prompt(self) -> bool:
        return bool(self.prompt and self.prompt.strip())

    def attachments(self) -> List[MediaPart]:
        """Media parts to merge into the newest user turn, in arrival order."""
        parts = list(self.media)
        if self.image is not None:
            parts.append(MediaPart.from_data_uri(self.image))
        return parts


class ImageRequest(BaseModel):
    """Text-to-image request."""
    prompt: str

    @model_validator(mode="after")
    def check_prompt(self) -> "ImageRequest":
        if not self.prompt.strip():
            raise ValueError(ValidationMessages.EMPTY_IMAGE_PROMPT)
        if len(self.prompt) > Config.MAX_PROMPT_LENGTH:
            raise ValueError(ValidationMessages.PROMPT_TOO_LONG.format(
                limit=Config.MAX_PROMPT_LENGTH, count=len(self.prompt)
            ))
        return self


class ImageResponse(BaseModel):
    """Generated image as a data URI."""
    model_config = ConfigDict(populate_by_name=True)

    image_url: str = Field(alias="imageUrl")
