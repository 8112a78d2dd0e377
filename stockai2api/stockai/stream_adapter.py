"""Stream adapter for converting StockAI UI-message SSE to OpenAI Chat Completions.

StockAI Events (see :mod:`.events`):
    data: {"type":"reasoning-delta","id":"r0","delta":"Thinking..."}
    data: {"type":"text-delta","id":"t0","delta":"Hello"}
    data: [DONE]

OpenAI Chat Completion Chunks:
    data: {"id":"chatcmpl-x","object":"chat.completion.chunk",...,
           "choices":[{"index":0,"delta":{"reasoning_content":"Thinking..."},"finish_reason":null}]}
    data: {...,"choices":[{"index":0,"delta":{"content":"Hello"},"finish_reason":null}]}
    data: {...,"choices":[{"index":0,"delta":{},"finish_reason":"stop"}]}
    data: [DONE]

Both the streaming re-emission and the buffered (non-streaming) response are
driven by the same :meth:`StockAIStreamAdapter.events` generator, so their
content is identical for the same upstream bytes.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import AsyncIterator, Optional

from ..core.sse import DONE_FRAME, LineDecoder, format_sse_data
from ..types import AssistantMessage, ChatCompletionChunk, ChatCompletionResponse, Delta
from .events import ContentDelta, ReasoningDelta, UpstreamEvent, iter_upstream_events

logger = logging.getLogger("stockai2api")

FINISH_REASON_STOP = "stop"
THINK_OPEN = "<think>\n"
THINK_CLOSE = "\n</think>\n\n"


class StreamState(str, Enum):
    READING = "reading"
    DRAINING = "draining"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ResponseAggregate:
    """Reasoning and answer text accumulated over a whole upstream stream."""

    _reasoning: list[str] = field(default_factory=list)
    _content: list[str] = field(default_factory=list)

    def add(self, event: UpstreamEvent) -> None:
        if isinstance(event, ReasoningDelta):
            self._reasoning.append(event.text)
        elif isinstance(event, ContentDelta):
            self._content.append(event.text)

    @property
    def reasoning_text(self) -> str:
        return "".join(self._reasoning)

    @property
    def content_text(self) -> str:
        return "".join(self._content)

    def compose_content(self) -> str:
        """Final message content, with the reasoning inlined in a think block."""
        reasoning = self.reasoning_text
        if not reasoning:
            return self.content_text
        return f"{THINK_OPEN}{reasoning}{THINK_CLOSE}{self.content_text}"


class StockAIStreamAdapter:
    """Converts one StockAI byte stream into OpenAI chat completion output.

    An adapter instance belongs to a single request: it owns the line
    decoder carrying partial lines between chunks and tracks where the
    translation is in its lifecycle (:class:`StreamState`).
    """

    def __init__(
        self,
        completion_id: str,
        model: str,
        created: Optional[int] = None,
    ) -> None:
        """Initialize the stream adapter.

        Args:
            completion_id: The completion ID to use (e.g., "chatcmpl-xxx")
            model: Model name echoed in every chunk
            created: Unix timestamp; defaults to now
        """
        self.completion_id = completion_id
        self.model = model
        self.created = int(time.time()) if created is None else created
        self.state = StreamState.READING
        self._decoder = LineDecoder()

    async def events(self, chunks: AsyncIterator[bytes]) -> AsyncIterator[UpstreamEvent]:
        """Yield the classified events of an upstream byte stream, in order.

        Exceptions from the chunk iterator propagate after the state moves
        to FAILED.
        """
        self.state = StreamState.READING
        try:
            async for chunk in chunks:
                for event in iter_upstream_events(self._decoder.feed(chunk)):
                    yield event
            self.state = StreamState.DRAINING
            for event in iter_upstream_events(self._decoder.flush()):
                yield event
        except Exception:
            self.state = StreamState.FAILED
            raise

    async def adapt_stream(self, chunks: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        """Transform a StockAI stream into OpenAI chat completion SSE frames.

        Args:
            chunks: The raw upstream byte stream

        Yields:
            ``data: ...\\n\\n`` frames as bytes; always ends either with the
            stop chunk and ``[DONE]`` or with one ``stream_error`` frame.
        """
        try:
            async for event in self.events(chunks):
                chunk = self.build_chunk(event)
                if chunk is None:
                    continue
                yield format_sse_data(chunk)
        except Exception as exc:
            self.state = StreamState.FAILED
            message = str(exc) or exc.__class__.__name__
            logger.error(f"Stream error for {self.completion_id}: {message}")
            yield format_sse_data({"error": {"message": message, "type": "stream_error"}})
            return

        yield format_sse_data(self._chunk({}, FINISH_REASON_STOP))
        yield DONE_FRAME
        self.state = StreamState.DONE

    async def aggregate(self, chunks: AsyncIterator[bytes]) -> ResponseAggregate:
        """Drain the whole upstream stream into a :class:`ResponseAggregate`."""
        result = ResponseAggregate()
        async for event in self.events(chunks):
            result.add(event)
        self.state = StreamState.DONE
        return result

    def build_chunk(self, event: UpstreamEvent) -> Optional[ChatCompletionChunk]:
        """Build the chat.completion.chunk for one event, or None if it has no delta."""
        delta: Delta
        if isinstance(event, ReasoningDelta):
            delta = {"reasoning_content": event.text}
        elif isinstance(event, ContentDelta):
            delta = {"content": event.text}
        else:
            return None
        return self._chunk(delta, None)

    def _chunk(self, delta: Delta, finish_reason: Optional[str]) -> ChatCompletionChunk:
        return {
            "id": self.completion_id,
            "object": "chat.completion.chunk",
            "created": self.created,
            "model": self.model,
            "choices": [
                {"index": 0, "delta": delta, "finish_reason": finish_reason}
            ],
        }

    def build_completion(self, aggregate: ResponseAggregate) -> ChatCompletionResponse:
        """Build the final chat.completion object for the non-streaming path."""
        message: AssistantMessage = {
            "role": "assistant",
            "content": aggregate.compose_content(),
        }
        reasoning = aggregate.reasoning_text
        if reasoning:
            message["reasoning_content"] = reasoning

        return {
            "id": self.completion_id,
            "object": "chat.completion",
            "created": self.created,
            "model": self.model,
            "choices": [
                {
                    "index": 0,
                    "message": message,
                    "finish_reason": FINISH_REASON_STOP,
                }
            ],
            "usage": {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0},
        }
