"""
Constants for the Gemini Chat Bridge application.
"""

# Reserved token that starts an out-of-band line in the plain-text stream
STREAM_MARKER = "@@META@@"

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no"
}


class MediaTypes:
    """Response content types for the chat stream framings."""
    TEXT = "text/plain; charset=utf-8"
    NDJSON = "application/x-ndjson"


class Roles:
    """Conversation roles understood by the Gemini API."""
    USER, MODEL = "user", "model"

    # Aliases some frontends send for the model role
    ALIASES = {"assistant": MODEL, "bot": MODEL}


class RetryPolicies:
    """Named retry delay policies."""
    IMMEDIATE, BACKOFF = "immediate", "backoff"


class ValidationMessages:
    """Fixed client-facing messages for request validation failures."""
    HISTORY_TOO_LONG = "Conversation history exceeds the maximum of {limit} turns (current: {count})"
    PROMPT_TOO_LONG = "Prompt exceeds maximum length of {limit} characters (current: {count})"
    NOTHING_TO_ANSWER = "Conversation is empty: provide a prompt or end the history with a user turn"
    LAST_TURN_NOT_USER = "History must end with a user turn when no prompt is given (last turn: {role})"
    TOO_MANY_MEDIA = "Too many attachments: at most {limit} allowed (current: {count})"
    BAD_MIME_TYPE = "{label} has an invalid mime type: '{mime}'"
    BAD_BASE64 = "{label} is not valid base64 data"
    BAD_DATA_URI = "Image must be a data URI of the form data:<mime>;base64,<payload>"
    EMPTY_IMAGE_PROMPT = "Prompt must not be empty"


# Regular expression patterns
class Patterns:
    """Regular expression patterns for media validation."""
    MIME_TYPE = r'^[\w.+-]+/[\w.+-]+$'
    DATA_URI = r'^data:(?P<mime>[^;,]*);base64,(?P<data>.*)$'


# Gemini safety categories accepted in safetyThresholds
SAFETY_CATEGORIES = frozenset({
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
    "HARM_CATEGORY_CIVIC_INTEGRITY",
})

SAFETY_THRESHOLDS = frozenset({
    "BLOCK_NONE",
    "BLOCK_ONLY_HIGH",
    "BLOCK_MEDIUM_AND_ABOVE",
    "BLOCK_LOW_AND_ABOVE",
    "HARM_BLOCK_THRESHOLD_UNSPECIFIED",
    "OFF",
})

# Candidate finish reasons that cut the answer short for policy reasons
BLOCKING_FINISH_REASONS = frozenset({
    "SAFETY",
    "PROHIBITED_CONTENT",
    "RECITATION",
    "BLOCKLIST",
    "SPII",
})
