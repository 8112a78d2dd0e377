"""OpenAI-compatible chat completions endpoint."""

import logging

from fastapi import Depends, Request, Response
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from ...config_loader import GatewayConfig
from ...core.upstream import UpstreamClient
from ...stockai import ChatCompletionRequest, StockAIStreamAdapter, generate_completion_id
from ..deps import get_config, get_upstream

logger = logging.getLogger("stockai2api")


async def chat_completions(
    request: Request,
    config: GatewayConfig = Depends(get_config),
    upstream: UpstreamClient = Depends(get_upstream),
) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /v1/chat/completions

    Invalid input and upstream failures before the first byte is sent raise
    ProxyError subclasses, rendered by the registered exception handlers.
    Failures after streaming began are reported in-band by the adapter.
    """
    body = await request.body()
    chat_request = ChatCompletionRequest.from_body(body, default_model=config.default_model)
    logger.info(
        f"Processing request for model {chat_request.model}, "
        f"stream={chat_request.stream}, messages={len(chat_request.messages)}"
    )

    session = await upstream.open(chat_request.to_upstream_payload())
    adapter = StockAIStreamAdapter(generate_completion_id(), chat_request.model)

    if chat_request.stream:
        return StreamingResponse(
            adapter.adapt_stream(session.iter_bytes()),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache"},
            # Covers clients that disconnect before the body iterator starts
            background=BackgroundTask(session.aclose),
        )

    aggregate = await adapter.aggregate(session.iter_bytes())
    logger.info(
        f"Request {adapter.completion_id} completed: "
        f"{len(aggregate.content_text)} content chars, "
        f"{len(aggregate.reasoning_text)} reasoning chars"
    )
    return JSONResponse(adapter.build_completion(aggregate))
