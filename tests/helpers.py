import json

from utils.constants import STREAM_MARKER


def split_marker_stream(body):
    """
    Split a plain-text chat stream into its literal text and marker payloads.
    Markers are terminal, so everything before the first marker line is model output.
    """
    text, *markers = body.split("\n" + STREAM_MARKER)
    return text, [json.loads(marker.strip()) for marker in markers]


def parse_ndjson_stream(body):
    """Parse an NDJSON chat stream into (type, payload) tuples."""
    events = []
    for line in body.splitlines():
        if not line.strip():
            continue
        event = json.loads(line)
        events.append((event["type"], event["payload"]))
    return events


async def collect(stream):
    """Drain an async iterator of strings into one string."""
    return "".join([part async for part in stream])


def turn(role, *texts):
    return {"role": role, "parts": [{"text": text} for text in texts]}
