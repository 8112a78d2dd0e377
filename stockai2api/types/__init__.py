"""Type definitions for the gateway."""

from .chat import (
    AssistantMessage,
    ChatCompletionChunk,
    ChatCompletionResponse,
    Choice,
    ChunkChoice,
    Delta,
    StockAIChatRequest,
    StockAIMessage,
    StockAIPart,
    Usage,
)

__all__ = [
    "AssistantMessage",
    "ChatCompletionChunk",
    "ChatCompletionResponse",
    "Choice",
    "ChunkChoice",
    "Delta",
    "StockAIChatRequest",
    "StockAIMessage",
    "StockAIPart",
    "Usage",
]
