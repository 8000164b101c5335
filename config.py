"""
Configuration module for the Gemini Chat Bridge application.
Handles environment variables and application settings.
"""
import os
from dotenv import load_dotenv

from utils.logger import app_logger

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default, cast=int):
    """Read a numeric setting, keeping the default when the value does not parse."""
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value.strip())
    except ValueError:
        app_logger.warning(f"Invalid {name} '{value}', using default {default}")
        return default


class Config:
    """Application configuration class."""

    # API Keys
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")

    # API Configuration
    GEMINI_API_BASE_URL: str = os.getenv(
        "GEMINI_API_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
    )
    GEMINI_CHAT_MODEL: str = os.getenv("GEMINI_CHAT_MODEL", "gemini-2.5-flash")
    GEMINI_IMAGE_MODEL: str = os.getenv("GEMINI_IMAGE_MODEL", "imagen-4.0-generate-001")

    # Application Settings
    APP_TITLE: str = "Gemini Chat Bridge"
    PORT: int = _env_number("PORT", 3000)
    ALLOWED_ORIGINS: str = os.getenv("ALLOWED_ORIGINS", "*")

    # Request limits
    MAX_HISTORY_LENGTH: int = 50
    MAX_PROMPT_LENGTH: int = 15000
    MAX_MEDIA_PARTS: int = 8

    # Generation defaults
    DEFAULT_TEMPERATURE: float = 1.0
    DEFAULT_MAX_OUTPUT_TOKENS: int = 8192
    ENABLE_SEARCH_GROUNDING: bool = _env_bool("ENABLE_SEARCH_GROUNDING", True)

    # Retry policy: "immediate" (no delay) or "backoff" (1s, 2s, 4s, ...)
    RETRY_POLICY: str = os.getenv("RETRY_POLICY", "backoff")
    RETRY_MAX_ATTEMPTS: int = _env_number("RETRY_MAX_ATTEMPTS", 3)
    RETRY_INITIAL_DELAY: float = 1.0

    # Timeouts (in seconds)
    UPSTREAM_CONNECT_TIMEOUT: float = 10.0
    UPSTREAM_READ_TIMEOUT: float = 60.0
    STREAM_DEADLINE_SECONDS: float = _env_number("STREAM_DEADLINE_SECONDS", 180.0, float)

    # Connection pool
    MAX_UPSTREAM_CONNECTIONS: int = 50

    # Output framing for /chat: "text" (marker lines) or "ndjson"
    STREAM_FORMAT: str = os.getenv("STREAM_FORMAT", "text")

    @classmethod
    def get_allowed_origins(cls) -> list[str]:
        """Parse the comma-separated ALLOWED_ORIGINS setting."""
        origins = [origin.strip() for origin in cls.ALLOWED_ORIGINS.split(",") if origin.strip()]
        return origins or ["*"]

    @classmethod
    def is_upstream_configured(cls) -> bool:
        return bool(cls.GEMINI_API_KEY)

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and log warnings for missing or unknown settings."""
        if not cls.GEMINI_API_KEY:
            app_logger.warning("GEMINI_API_KEY not found in .env file")
            app_logger.warning("Chat and image requests will fail until a key is configured.")

        if cls.RETRY_POLICY not in ("immediate", "backoff"):
            app_logger.warning(f"Unknown RETRY_POLICY '{cls.RETRY_POLICY}', falling back to 'backoff'")
            cls.RETRY_POLICY = "backoff"

        if cls.RETRY_MAX_ATTEMPTS < 1:
            app_logger.warning(f"RETRY_MAX_ATTEMPTS must be >= 1 (got {cls.RETRY_MAX_ATTEMPTS}), using 1")
            cls.RETRY_MAX_ATTEMPTS = 1

        if cls.STREAM_DEADLINE_SECONDS <= 0:
            app_logger.warning(
                f"STREAM_DEADLINE_SECONDS must be positive (got {cls.STREAM_DEADLINE_SECONDS}), using 180"
            )
            cls.STREAM_DEADLINE_SECONDS = 180.0

        if cls.STREAM_FORMAT not in ("text", "ndjson"):
            app_logger.warning(f"Unknown STREAM_FORMAT '{cls.STREAM_FORMAT}', falling back to 'text'")
            cls.STREAM_FORMAT = "text"

Config.validate()
