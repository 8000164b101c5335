"""
Retry policy for upstream calls.
"""
from asyncio import sleep
from dataclasses import dataclass

from config import Config
from utils.constants import RetryPolicies
from utils.errors import BridgeError


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry with a named delay policy.

    ``immediate`` retries without waiting; ``backoff`` waits
    ``initial_delay * 2 ** (attempt - 1)`` seconds after each failed attempt.
    ``max_attempts`` counts the first call, so 1 disables retry.
    """
    name: str = RetryPolicies.BACKOFF
    max_attempts: int = 3
    initial_delay: float = 1.0

    @classmethod
    def from_config(cls) -> "RetryPolicy":
        return cls(
            name=Config.RETRY_POLICY,
            max_attempts=Config.RETRY_MAX_ATTEMPTS,
            initial_delay=Config.RETRY_INITIAL_DELAY
        )

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
        if self.name == RetryPolicies.IMMEDIATE:
            return 0.0
        return self.initial_delay * (2 ** (attempt - 1))

    def should_retry(self, error: Exception, attempt: int) -> bool:
        if attempt >= self.max_attempts:
            return False
        return isinstance(error, BridgeError) and error.retryable

    async def wait(self, attempt: int) -> None:
        delay = self.delay_for(attempt)
        if delay > 0:
            await sleep(delay)
