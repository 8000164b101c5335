"""
Image generation service.
Direct pass-through to the upstream text-to-image endpoint.
"""
from typing import Optional

from utils.errors import BridgeError, UpstreamTransportError
from utils.logger import app_logger
from utils.retry import RetryPolicy


class ImageService:
    """Service for text-to-image requests."""

    @staticmethod
    async def generate(client, prompt: str, retry_policy: Optional[RetryPolicy] = None) -> str:
        """
        Generate an image and return it as a data URI.

        Transport failures are retried with the same policy as chat. Upstream
        application errors, including 429 and 5xx statuses, propagate after
        the first attempt.

        Args:
            client: Upstream client exposing ``generate_image(prompt)``
            prompt: Validated image prompt
            retry_policy: Retry bound and delay policy (defaults to Config)

        Returns:
            ``data:<mime>;base64,<payload>`` string
        """
        if retry_policy is None:
            retry_policy = RetryPolicy.from_config()

        attempt = 0
        while True:
            attempt += 1
            try:
                image_b64, mime_type = await client.generate_image(prompt)
            except BridgeError as e:
                if not (isinstance(e, UpstreamTransportError) and retry_policy.should_retry(e, attempt)):
                    app_logger.error(f"Image generation failed after {attempt} attempt(s): {e.message}")
                    raise
                delay = retry_policy.delay_for(attempt)
                app_logger.warning(f"Image attempt {attempt} failed ({e.message}), retrying in {delay:.1f}s")
                await retry_policy.wait(attempt)
                continue

            app_logger.info(f"Image generated ({mime_type}, {len(image_b64)} base64 chars)")
            return f"data:{mime_type};base64,{image_b64}"
