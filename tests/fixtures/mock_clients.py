from models.chat_models import GroundingSource, StreamChunk


class FakeGeminiClient:
    """Scripted upstream client.

    Each entry of ``attempts`` drives one ``stream_generate`` call: an
    exception fails the attempt before any chunk, a list is streamed item by
    item (strings become text chunks, exceptions are raised mid-stream).
    """

    def __init__(self, attempts=None, images=None):
        self.attempts = list(attempts or [])
        self.images = list(images or [])
        self.stream_calls = []
        self.image_calls = []
        self.closed_streams = 0

    async def stream_generate(self, payload):
        self.stream_calls.append(payload)
        script = self.attempts.pop(0) if self.attempts else []
        try:
            if isinstance(script, Exception):
                raise script
            for item in script:
                if isinstance(item, Exception):
                    raise item
                yield item if isinstance(item, StreamChunk) else StreamChunk(text=item)
        finally:
            self.closed_streams += 1

    async def generate_image(self, prompt):
        self.image_calls.append(prompt)
        result = self.images.pop(0) if self.images else ("aW1n", "image/png")
        if isinstance(result, Exception):
            raise result
        return result


def sources_chunk(*pairs, text=None):
    """Final-style chunk carrying grounding sources given as (uri, title) pairs."""
    return StreamChunk(
        text=text,
        grounding_sources=[GroundingSource(uri=uri, title=title) for uri, title in pairs],
        finish_reason="STOP"
    )
