"""Types for the chat payloads the gateway speaks on either side.

This module defines type schemas for:
- OpenAI-compatible types: the streamed chunks and buffered completions
- StockAI types: the UI-message chat request sent upstream
"""

from typing import Optional

from typing_extensions import TypedDict


# =============================================================================
# OpenAI-Compatible Types
# =============================================================================


class Delta(TypedDict, total=False):
    """The incremental payload of one streamed chunk.

    A non-terminal chunk carries exactly one of the two keys; the terminal
    chunk carries neither.
    """
    content: str
    reasoning_content: str


class ChunkChoice(TypedDict):
    index: int
    delta: Delta
    finish_reason: Optional[str]


class ChatCompletionChunk(TypedDict):
    """A streaming chunk (``object: "chat.completion.chunk"``).

    Attributes:
        id: Completion id, shared by every chunk of one response.
        object: Always "chat.completion.chunk".
        created: Unix timestamp, shared by every chunk of one response.
        model: The requested model id.
        choices: A single choice at index 0.
    """
    id: str
    object: str
    created: int
    model: str
    choices: list[ChunkChoice]


class AssistantMessage(TypedDict, total=False):
    """The assistant message of a buffered completion.

    Attributes:
        role: Always "assistant".
        content: Final answer, preceded by a think block when the model
            reasoned.
        reasoning_content: Raw accumulated reasoning; absent when empty.
    """
    role: str
    content: str
    reasoning_content: str


class Choice(TypedDict):
    index: int
    message: AssistantMessage
    finish_reason: str


class Usage(TypedDict):
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


class ChatCompletionResponse(TypedDict):
    """A buffered completion (``object: "chat.completion"``)."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]
    usage: Usage


# =============================================================================
# StockAI Types
# =============================================================================


class StockAIPart(TypedDict):
    type: str
    text: str


class StockAIMessage(TypedDict):
    """One message of a StockAI chat request.

    Attributes:
        parts: A single text part holding the flattened content.
        id: Random 16-character alphanumeric id.
        role: Role copied from the OpenAI message.
    """
    parts: list[StockAIPart]
    id: str
    role: str


class StockAIChatRequest(TypedDict):
    """Body POSTed to StockAI's chat endpoint."""
    model: str
    webSearch: bool
    id: str
    messages: list[StockAIMessage]
    trigger: str
