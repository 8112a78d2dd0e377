"""Testing utilities for in-process gateway simulations."""

from .assertions import (
    assert_openai_chat_valid,
    assert_openai_chunk_valid,
    assert_openai_stream_valid,
    collect_stream_text,
    parse_sse_frames,
)
from .fake_upstream import (
    FakeUpstream,
    UpstreamResponse,
    encode_stockai_event,
    events_to_bytes,
    split_bytes,
    streaming_mock_transport,
)
from .response_builders import build_openai_request, build_stockai_stream_events

__all__ = [
    # Fake upstreams
    "FakeUpstream",
    "UpstreamResponse",
    "encode_stockai_event",
    "events_to_bytes",
    "split_bytes",
    "streaming_mock_transport",
    # Builders
    "build_openai_request",
    "build_stockai_stream_events",
    # Assertions
    "assert_openai_chat_valid",
    "assert_openai_chunk_valid",
    "assert_openai_stream_valid",
    "collect_stream_text",
    "parse_sse_frames",
]
