"""
Data models for chat processing.
Contains the assembled upstream payload, generation settings and stream chunks.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


@dataclass(frozen=True)
class GenerationSettings:
    """Resolved per-request generation settings (defaults already applied)."""
    temperature: float
    max_output_tokens: int
    system_instruction: Optional[str] = None
    safety_thresholds: Dict[str, str] = field(default_factory=dict)
    search_grounding: bool = False

    def to_request_fields(self) -> dict:
        """Gemini request fields other than ``contents``."""
        fields = {
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens
            }
        }
        if self.system_instruction:
            fields["systemInstruction"] = {"parts": [{"text": self.system_instruction}]}
        if self.safety_thresholds:
            fields["safetySettings"] = [
                {"category": category, "threshold": threshold}
                for category, threshold in sorted(self.safety_thresholds.items())
            ]
        if self.search_grounding:
            fields["tools"] = [{"google_search": {}}]
        return fields


@dataclass
class ChatPayload:
    """Everything the upstream generation call needs for one request."""
    contents: List[dict]
    settings: GenerationSettings

    def to_request_body(self) -> dict:
        body = {"contents": self.contents}
        body.update(self.settings.to_request_fields())
        return body


@dataclass(frozen=True)
class GroundingSource:
    """Citation attached by the model when it used search."""
    uri: str
    title: str = ""

    def to_dict(self) -> dict:
        return {"uri": self.uri, "title": self.title}


@dataclass
class StreamChunk:
    """One increment of the upstream generation stream."""
    text: Optional[str] = None
    grounding_sources: List[GroundingSource] = field(default_factory=list)
    finish_reason: Optional[str] = None


class StreamFormat(Enum):
    """Output framings for the chat stream."""
    TEXT = "text"
    NDJSON = "ndjson"
