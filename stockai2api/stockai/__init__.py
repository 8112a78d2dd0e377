"""StockAI protocol translation.

Translates OpenAI Chat Completions requests into StockAI chat payloads and
StockAI's UI-message stream back into OpenAI chat completion chunks or a
buffered chat completion.
"""

from .events import (
    ContentDelta,
    ReasoningDelta,
    UpstreamEvent,
    classify_payload,
    iter_upstream_events,
)
from .stream_adapter import ResponseAggregate, StockAIStreamAdapter, StreamState
from .translator import (
    ChatCompletionRequest,
    convert_messages,
    generate_completion_id,
    generate_random_id,
    normalize_content,
)

__all__ = [
    "ChatCompletionRequest",
    "ContentDelta",
    "ReasoningDelta",
    "ResponseAggregate",
    "StockAIStreamAdapter",
    "StreamState",
    "UpstreamEvent",
    "classify_payload",
    "convert_messages",
    "generate_completion_id",
    "generate_random_id",
    "iter_upstream_events",
    "normalize_content",
]
