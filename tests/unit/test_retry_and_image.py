from unittest.mock import AsyncMock

import pytest

from config import Config
from services.image_service import ImageService
from tests.fixtures.mock_clients import FakeGeminiClient
from utils.errors import BridgeError, ConfigurationError, UpstreamApplicationError, UpstreamTransportError
from utils.retry import RetryPolicy


@pytest.mark.parametrize("name, expected", [
    ("backoff", [1.0, 2.0, 4.0]),
    ("immediate", [0.0, 0.0, 0.0]),
])
def test_retry_policy_delays(name, expected):
    """Given a named policy, when delays are computed, they should follow that policy."""
    policy = RetryPolicy(name=name, max_attempts=4)
    assert [policy.delay_for(attempt) for attempt in (1, 2, 3)] == expected


@pytest.mark.parametrize("error, attempt, expected", [
    (UpstreamTransportError("reset"), 1, True),
    (UpstreamTransportError("reset"), 3, False),
    (UpstreamApplicationError("busy", upstream_status=503), 1, True),
    (UpstreamApplicationError("bad", upstream_status=400), 1, False),
    (UpstreamApplicationError("no image"), 1, False),
    (ConfigurationError("no key"), 1, False),
    (ValueError("bug"), 1, False),
])
def test_retry_policy_should_retry(error, attempt, expected):
    """Given an error and attempt number, when checked against a bound of 3, retry should only apply to transient errors."""
    assert RetryPolicy(max_attempts=3).should_retry(error, attempt) is expected


def test_retry_policy_from_config(monkeypatch):
    """Given config values, when the policy is built, it should use them."""
    monkeypatch.setattr(Config, "RETRY_POLICY", "immediate")
    monkeypatch.setattr(Config, "RETRY_MAX_ATTEMPTS", 2)
    assert RetryPolicy.from_config() == RetryPolicy(name="immediate", max_attempts=2, initial_delay=Config.RETRY_INITIAL_DELAY)


@pytest.mark.anyio
async def test_generate_image_returns_data_uri(immediate_policy):
    """Given a successful upstream image, when generated, it should be returned as a data URI."""
    client = FakeGeminiClient(images=[("aW1n", "image/jpeg")])

    image_url = await ImageService.generate(client, "a lighthouse", retry_policy=immediate_policy)

    assert image_url == "data:image/jpeg;base64,aW1n"
    assert client.image_calls == ["a lighthouse"]


@pytest.mark.anyio
async def test_generate_image_retries_transport_errors(monkeypatch):
    """Given a transport failure then success, when generated with backoff, it should wait 1s and succeed."""
    sleep = AsyncMock()
    monkeypatch.setattr("utils.retry.sleep", sleep)
    client = FakeGeminiClient(images=[UpstreamTransportError("timeout"), ("aW1n", "image/png")])

    image_url = await ImageService.generate(client, "a lighthouse", retry_policy=RetryPolicy(name="backoff", max_attempts=3))

    assert image_url == "data:image/png;base64,aW1n"
    assert len(client.image_calls) == 2
    sleep.assert_awaited_once_with(1.0)


@pytest.mark.anyio
async def test_generate_image_does_not_retry_application_errors(immediate_policy):
    """Given a non-transient upstream error, when generated, it should propagate after one attempt."""
    client = FakeGeminiClient(images=[UpstreamApplicationError("Invalid prompt", upstream_status=400)])

    with pytest.raises(BridgeError):
        await ImageService.generate(client, "a lighthouse", retry_policy=immediate_policy)

    assert len(client.image_calls) == 1


@pytest.mark.anyio
async def test_generate_image_does_not_retry_overloaded_provider(immediate_policy):
    """Given a provider 503, when generated, it should propagate after one attempt even though chat would retry it."""
    client = FakeGeminiClient(images=[
        UpstreamApplicationError("The model is overloaded", upstream_status=503),
        ("aW1n", "image/png"),
    ])

    with pytest.raises(UpstreamApplicationError) as exc_info:
        await ImageService.generate(client, "a lighthouse", retry_policy=immediate_policy)

    assert exc_info.value.upstream_status == 503
    assert client.image_calls == ["a lighthouse"]
