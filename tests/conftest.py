import pytest

from config import Config
from tests.fixtures.mock_clients import FakeGeminiClient
from tests.fixtures.responses import PNG_B64
from tests.helpers import turn
from utils.retry import RetryPolicy


@pytest.fixture
def fake_client():
    """Upstream client that streams 'Hello world' in three chunks."""
    return FakeGeminiClient(attempts=[["Hel", "lo", " world"]])


@pytest.fixture
def immediate_policy():
    """Three attempts, no delay between them."""
    return RetryPolicy(name="immediate", max_attempts=3)


@pytest.fixture
def history():
    """Two-turn conversation ending with a model reply."""
    return [
        turn("user", "What is the capital of France?"),
        turn("model", "Paris."),
    ]


@pytest.fixture
def png_data_uri():
    return f"data:image/png;base64,{PNG_B64}"


@pytest.fixture
def chat_request(history):
    """Standard ChatRequest for testing."""
    from models.api_models import ChatRequest
    return ChatRequest(history=history, prompt="And of Italy?")


@pytest.fixture
def default_limits(monkeypatch):
    """Pin limits and defaults so tests do not depend on the environment."""
    monkeypatch.setattr(Config, "MAX_HISTORY_LENGTH", 50)
    monkeypatch.setattr(Config, "MAX_PROMPT_LENGTH", 15000)
    monkeypatch.setattr(Config, "MAX_MEDIA_PARTS", 8)
    monkeypatch.setattr(Config, "DEFAULT_TEMPERATURE", 1.0)
    monkeypatch.setattr(Config, "DEFAULT_MAX_OUTPUT_TOKENS", 8192)
    monkeypatch.setattr(Config, "ENABLE_SEARCH_GROUNDING", True)


@pytest.fixture
def app_factory(monkeypatch, default_limits):
    """Build the app without a real upstream; optionally inject a fake client."""
    from main import create_app
    from routes.dependencies import get_gemini_client

    monkeypatch.setattr(Config, "GEMINI_API_KEY", "")
    monkeypatch.setattr(Config, "RETRY_POLICY", "immediate")
    monkeypatch.setattr(Config, "RETRY_MAX_ATTEMPTS", 3)
    monkeypatch.setattr(Config, "STREAM_FORMAT", "text")

    def _build(client=None):
        app = create_app()
        if client is not None:
            app.dependency_overrides[get_gemini_client] = lambda: client
        return app

    return _build


@pytest.fixture
def configured_app(app_factory, fake_client):
    """Pre-configured test client backed by ``fake_client``."""
    from fastapi.testclient import TestClient

    with TestClient(app_factory(fake_client)) as client:
        yield client
