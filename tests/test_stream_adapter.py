"""Tests for the StockAI-to-OpenAI stream adapter."""

import pytest

from stockai2api.core.exceptions import UpstreamTimeoutError
from stockai2api.stockai.stream_adapter import (
    ResponseAggregate,
    StockAIStreamAdapter,
    StreamState,
)
from stockai2api.stockai.events import ContentDelta, ReasoningDelta
from stockai2api.testing import (
    assert_openai_chat_valid,
    assert_openai_stream_valid,
    build_stockai_stream_events,
    collect_stream_text,
    events_to_bytes,
    parse_sse_frames,
)


async def _aiter(chunks):
    for chunk in chunks:
        yield chunk


async def _failing_aiter(chunks, exc):
    for chunk in chunks:
        yield chunk
    raise exc


def _adapter() -> StockAIStreamAdapter:
    return StockAIStreamAdapter("chatcmpl-test", "openai/gpt-4o-mini", created=1700000000)


async def _collect(adapter: StockAIStreamAdapter, chunks) -> list:
    body = b"".join([frame async for frame in adapter.adapt_stream(chunks)])
    return parse_sse_frames(body)


@pytest.mark.asyncio
async def test_content_deltas_become_chunks():
    adapter = _adapter()
    chunks = [
        b'data: {"type":"text-delta","delta":"Hi"}\n\n',
        b'data: {"type":"text-delta","delta":" there"}\n\n',
        b"data: [DONE]\n\n",
    ]

    frames = await _collect(adapter, _aiter(chunks))

    assert_openai_stream_valid(frames)
    assert len(frames) == 4
    assert frames[0]["choices"][0]["delta"] == {"content": "Hi"}
    assert frames[1]["choices"][0]["delta"] == {"content": " there"}
    assert frames[2]["choices"][0] == {"index": 0, "delta": {}, "finish_reason": "stop"}
    assert frames[0]["id"] == "chatcmpl-test"
    assert frames[0]["created"] == 1700000000
    assert frames[0]["model"] == "openai/gpt-4o-mini"
    assert adapter.state is StreamState.DONE


@pytest.mark.asyncio
async def test_reasoning_deltas_become_reasoning_chunks():
    adapter = _adapter()
    body = events_to_bytes(build_stockai_stream_events("Answer", "Thinking", chunk_size=4))

    frames = await _collect(adapter, _aiter([body]))

    assert_openai_stream_valid(frames)
    assert collect_stream_text(frames, "reasoning_content") == "Thinking"
    assert collect_stream_text(frames, "content") == "Answer"
    keys = [next(iter(f["choices"][0]["delta"]), None) for f in frames[:-2]]
    assert keys == ["reasoning_content"] * 2 + ["content"] * 2


@pytest.mark.asyncio
async def test_events_split_across_chunks_at_every_position():
    body = events_to_bytes(build_stockai_stream_events("Héllo wörld", "ok", chunk_size=3))
    reference = await _collect(_adapter(), _aiter([body]))

    for i in range(1, len(body)):
        frames = await _collect(_adapter(), _aiter([body[:i], body[i:]]))
        assert frames == reference, f"split at {i}"


@pytest.mark.asyncio
async def test_byte_by_byte_delivery():
    body = events_to_bytes(build_stockai_stream_events("你好，世界", "思考"))
    frames = await _collect(_adapter(), _aiter([body[i:i + 1] for i in range(len(body))]))

    assert_openai_stream_valid(frames)
    assert collect_stream_text(frames) == "你好，世界"
    assert collect_stream_text(frames, "reasoning_content") == "思考"


@pytest.mark.asyncio
async def test_malformed_payload_is_skipped():
    chunks = [
        b'data: {"type":"text-delta","delta":"A"}\n\n',
        b"data: {invalid json\n\n",
        b'data: {"type":"text-delta","delta":"B"}\n\n',
    ]
    frames = await _collect(_adapter(), _aiter(chunks))

    assert_openai_stream_valid(frames)
    assert collect_stream_text(frames) == "AB"


@pytest.mark.asyncio
async def test_unknown_types_and_control_lines_are_ignored():
    chunks = [
        b": keep-alive\n\n",
        b"event: message\n",
        b'data: {"type":"tool-input-start","id":"x"}\n\n',
        b'data: {"type":"text-delta","delta":"ok"}\n\n',
    ]
    frames = await _collect(_adapter(), _aiter(chunks))

    assert len(frames) == 3
    assert collect_stream_text(frames) == "ok"


@pytest.mark.asyncio
async def test_crlf_line_endings():
    chunks = [b'data: {"type":"text-delta","delta":"win"}\r\n\r\n']
    frames = await _collect(_adapter(), _aiter(chunks))
    assert collect_stream_text(frames) == "win"


@pytest.mark.asyncio
async def test_trailing_fragment_without_newline_is_flushed():
    adapter = _adapter()
    chunks = [
        b'data: {"type":"text-delta","delta":"A"}\n\n',
        b'data: {"type":"text-delta","delta":"B"}',
    ]
    frames = await _collect(adapter, _aiter(chunks))

    assert_openai_stream_valid(frames)
    assert collect_stream_text(frames) == "AB"


@pytest.mark.asyncio
async def test_empty_upstream_still_terminates():
    adapter = _adapter()
    frames = await _collect(adapter, _aiter([]))

    assert_openai_stream_valid(frames)
    assert len(frames) == 2
    assert adapter.state is StreamState.DONE


@pytest.mark.asyncio
async def test_upstream_error_mid_stream_emits_error_frame():
    adapter = _adapter()
    chunks = _failing_aiter(
        [b'data: {"type":"text-delta","delta":"partial"}\n\n'],
        UpstreamTimeoutError("Upstream request timed out after 60s", timeout=60),
    )

    frames = await _collect(adapter, chunks)

    assert frames[0]["choices"][0]["delta"] == {"content": "partial"}
    assert frames[-1] == {
        "error": {"message": "Upstream request timed out after 60s", "type": "stream_error"}
    }
    assert "[DONE]" not in frames
    assert all(
        f["choices"][0]["finish_reason"] is None for f in frames if "choices" in f
    )
    assert adapter.state is StreamState.FAILED


@pytest.mark.asyncio
async def test_error_without_message_uses_class_name():
    frames = await _collect(_adapter(), _failing_aiter([], RuntimeError()))
    assert frames == [{"error": {"message": "RuntimeError", "type": "stream_error"}}]


@pytest.mark.asyncio
async def test_aggregate_matches_streamed_text():
    body = events_to_bytes(build_stockai_stream_events("The answer is 42.", "Let me think", chunk_size=2))
    chunks = [body[i:i + 7] for i in range(0, len(body), 7)]

    frames = await _collect(_adapter(), _aiter(chunks))
    aggregate = await _adapter().aggregate(_aiter(chunks))

    assert aggregate.content_text == collect_stream_text(frames)
    assert aggregate.reasoning_text == collect_stream_text(frames, "reasoning_content")


@pytest.mark.asyncio
async def test_aggregate_propagates_errors():
    adapter = _adapter()
    with pytest.raises(UpstreamTimeoutError):
        await adapter.aggregate(_failing_aiter([], UpstreamTimeoutError("late")))
    assert adapter.state is StreamState.FAILED


@pytest.mark.asyncio
async def test_build_completion_with_reasoning():
    adapter = _adapter()
    body = events_to_bytes(build_stockai_stream_events("C", "R"))
    completion = adapter.build_completion(await adapter.aggregate(_aiter([body])))

    assert_openai_chat_valid(completion)
    message = completion["choices"][0]["message"]
    assert message["content"] == "<think>\nR\n</think>\n\nC"
    assert message["reasoning_content"] == "R"
    assert completion["id"] == "chatcmpl-test"
    assert completion["model"] == "openai/gpt-4o-mini"
    assert completion["created"] == 1700000000


@pytest.mark.asyncio
async def test_build_completion_without_reasoning():
    adapter = _adapter()
    body = events_to_bytes(build_stockai_stream_events("Only content"))
    completion = adapter.build_completion(await adapter.aggregate(_aiter([body])))

    message = completion["choices"][0]["message"]
    assert message == {"role": "assistant", "content": "Only content"}


def test_response_aggregate_compose_content():
    aggregate = ResponseAggregate()
    assert aggregate.compose_content() == ""
    aggregate.add(ContentDelta("Hel"))
    aggregate.add(ReasoningDelta("why"))
    aggregate.add(ContentDelta("lo"))
    assert aggregate.content_text == "Hello"
    assert aggregate.reasoning_text == "why"
    assert aggregate.compose_content() == "<think>\nwhy\n</think>\n\nHello"


def test_created_defaults_to_now():
    adapter = StockAIStreamAdapter("chatcmpl-x", "m")
    assert isinstance(adapter.created, int)
    assert adapter.created > 1700000000
    assert adapter.state is StreamState.READING
