"""Translation of OpenAI Chat Completions requests into StockAI chat payloads.

OpenAI request:
    {"model": "openai/gpt-4o-mini", "stream": true,
     "messages": [{"role": "user", "content": "Hi"}]}

StockAI request:
    {"model": "openai/gpt-4o-mini", "webSearch": false, "id": "<16 chars>",
     "messages": [{"role": "user", "parts": [{"type": "text", "text": "Hi"}],
                   "id": "<16 chars>"}],
     "trigger": "submit-message"}
"""

import json
import logging
import random
import string
from dataclasses import dataclass
from typing import Any, Mapping

from ..core.exceptions import InvalidRequestError
from ..types import StockAIChatRequest, StockAIMessage

logger = logging.getLogger("stockai2api")

ID_ALPHABET = string.ascii_letters + string.digits
SUBMIT_TRIGGER = "submit-message"


def generate_random_id(length: int = 16) -> str:
    """Random alphanumeric identifier used for upstream message and completion ids."""
    return "".join(random.choices(ID_ALPHABET, k=length))


def generate_completion_id() -> str:
    return f"chatcmpl-{generate_random_id()}"


def normalize_content(content: Any) -> str:
    """Flatten OpenAI message content into plain text.

    Strings pass through; content-part lists keep only their text parts,
    joined by newlines; other truthy values are serialised, falsy ones
    become the empty string.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = []
        for part in content:
            if not isinstance(part, Mapping) or part.get("type") != "text":
                continue
            text = part.get("text")
            texts.append("" if text is None else str(text))
        return "\n".join(texts)
    if content:
        try:
            return json.dumps(content, ensure_ascii=False)
        except (TypeError, ValueError):
            return str(content)
    return ""


def convert_messages(messages: Any) -> list[StockAIMessage]:
    """Convert OpenAI messages to StockAI messages, dropping role-less entries.

    Raises:
        InvalidRequestError: If no valid message remains.
    """
    if not isinstance(messages, list):
        messages = []

    converted: list[StockAIMessage] = []
    for message in messages:
        if not isinstance(message, Mapping) or not message.get("role"):
            continue
        converted.append(
            {
                "parts": [{"type": "text", "text": normalize_content(message.get("content"))}],
                "id": generate_random_id(),
                "role": message["role"],
            }
        )

    if not converted:
        raise InvalidRequestError("No valid messages provided.")
    return converted


@dataclass(frozen=True)
class ChatCompletionRequest:
    """The parts of an OpenAI chat request the gateway acts on."""

    model: str
    stream: bool
    messages: list[StockAIMessage]

    @classmethod
    def from_body(cls, body: bytes, default_model: str) -> "ChatCompletionRequest":
        """Parse a raw request body.

        Raises:
            InvalidRequestError: For a body that is not JSON or has no usable messages.
        """
        try:
            payload = json.loads(body or b"")
        except (ValueError, UnicodeDecodeError) as exc:
            logger.error(f"Invalid JSON payload: {exc}")
            raise InvalidRequestError("Invalid JSON body") from exc
        return cls.from_payload(payload, default_model)

    @classmethod
    def from_payload(cls, payload: Any, default_model: str) -> "ChatCompletionRequest":
        if not isinstance(payload, Mapping):
            payload = {}
        model = payload.get("model") or default_model
        return cls(
            model=str(model),
            stream=payload.get("stream") is True,
            messages=convert_messages(payload.get("messages")),
        )

    def to_upstream_payload(self) -> StockAIChatRequest:
        return {
            "model": self.model,
            "webSearch": False,
            "id": generate_random_id(),
            "messages": self.messages,
            "trigger": SUBMIT_TRIGGER,
        }
