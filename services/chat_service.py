"""
Chat service containing the content assembly logic.
Turns a validated ChatRequest into the exact payload sent to the Gemini API.
"""
from typing import List

from config import Config
from models.api_models import ChatRequest, MediaPart
from models.chat_models import ChatPayload, GenerationSettings
from utils.constants import Roles
from utils.logger import app_logger


class ChatService:
    """Service for shaping chat requests."""

    @staticmethod
    def build_contents(request: ChatRequest) -> List[dict]:
        """
        Build the ordered list of turns to send upstream.

        History is copied oldest to newest. A non-blank prompt becomes a new
        trailing user turn; attachments are appended to the parts of that
        newest user turn, after its text. Without a prompt the newest user
        turn is the last history entry (validation guarantees its role).
        """
        contents = [turn.to_gemini() for turn in request.history]

        if request.has_prompt:
            contents.append({"role": Roles.USER, "parts": [{"text": request.prompt}]})

        attachments = request.attachments()
        if attachments:
            ChatService._merge_attachments(contents, attachments)

        return contents

    @staticmethod
    def _merge_attachments(contents: List[dict], attachments: List[MediaPart]) -> None:
        target = contents[-1]
        if target["role"] != Roles.USER:
            # Unreachable for validated requests
            raise ValueError("Attachments require the last turn to be a user turn")
        target["parts"].extend(part.to_gemini() for part in attachments)

    @staticmethod
    def resolve_settings(request: ChatRequest) -> GenerationSettings:
        """Apply per-request overrides on top of the configured defaults."""
        return GenerationSettings(
            temperature=request.temperature if request.temperature is not None else Config.DEFAULT_TEMPERATURE,
            max_output_tokens=request.max_output_tokens or Config.DEFAULT_MAX_OUTPUT_TOKENS,
            system_instruction=request.system_instruction or None,
            safety_thresholds=dict(request.safety_thresholds or {}),
            search_grounding=Config.ENABLE_SEARCH_GROUNDING
        )

    @staticmethod
    def prepare_payload(request: ChatRequest) -> ChatPayload:
        """Assemble contents and settings for one upstream generation call."""
        contents = ChatService.build_contents(request)
        settings = ChatService.resolve_settings(request)

        media_count = sum(1 for turn in contents for part in turn["parts"] if "inlineData" in part)
        app_logger.info(
            f"Assembled {len(contents)} turns ({media_count} media parts) "
            f"for upstream call, temperature={settings.temperature}"
        )
        return ChatPayload(contents=contents, settings=settings)
