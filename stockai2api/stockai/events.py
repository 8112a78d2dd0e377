"""Classification of StockAI stream payloads into reasoning and content deltas.

The upstream speaks a UI-message stream where every ``data:`` line carries a
JSON object with a ``type`` discriminator::

    data: {"type":"start"}
    data: {"type":"reasoning-start","id":"r0"}
    data: {"type":"reasoning-delta","id":"r0","delta":"Let me think"}
    data: {"type":"reasoning-end","id":"r0"}
    data: {"type":"text-start","id":"t0"}
    data: {"type":"text-delta","id":"t0","delta":"Hello"}
    data: {"type":"text-end","id":"t0"}
    data: {"type":"finish"}
    data: [DONE]

Only the two delta types matter to the gateway; everything else is noise.
"""

import json
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from ..core.sse import extract_data_payload

logger = logging.getLogger("stockai2api")

REASONING_DELTA_TYPE = "reasoning-delta"
TEXT_DELTA_TYPE = "text-delta"


@dataclass(frozen=True)
class UpstreamEvent:
    text: str


@dataclass(frozen=True)
class ReasoningDelta(UpstreamEvent):
    """A fragment of the model's intermediate reasoning."""


@dataclass(frozen=True)
class ContentDelta(UpstreamEvent):
    """A fragment of the final answer."""


_EVENT_TYPES: dict[str, type[UpstreamEvent]] = {
    REASONING_DELTA_TYPE: ReasoningDelta,
    TEXT_DELTA_TYPE: ContentDelta,
}


def classify_payload(payload: str) -> Optional[UpstreamEvent]:
    """Map one ``data:`` payload to an event, or None if it carries no delta.

    Never raises: heartbeats, non-JSON noise and unknown event types are
    ordinary traffic on this stream.
    """
    try:
        data = json.loads(payload)
    except (ValueError, RecursionError):
        logger.debug("Dropping non-JSON upstream payload: %s", payload[:100])
        return None

    if not isinstance(data, dict):
        return None

    event_type = data.get("type")
    if not isinstance(event_type, str):
        return None
    event_cls = _EVENT_TYPES.get(event_type)
    if event_cls is None:
        return None

    delta = data.get("delta")
    if not isinstance(delta, str) or not delta:
        return None
    return event_cls(delta)


def iter_upstream_events(lines: Iterable[str]) -> Iterator[UpstreamEvent]:
    """Extract and classify the events carried by a sequence of lines."""
    for line in lines:
        payload = extract_data_payload(line)
        if payload is None:
            continue
        event = classify_payload(payload)
        if event is not None:
            yield event
