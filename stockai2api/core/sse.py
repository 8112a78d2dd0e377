"""SSE (Server-Sent Events) framing: line decoding, payload extraction and encoding."""

import codecs
import json
from typing import Any, Optional


DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"
DONE_FRAME = b"data: [DONE]\n\n"


class LineDecoder:
    """Incremental newline framing over a chunked byte stream.

    Multi-byte characters split across chunks are held back by the
    incremental decoder; the unterminated tail of the text is kept in a
    carry-over buffer until its newline arrives (or :meth:`flush` is called).
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """The text received since the last complete line."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        if not chunk:
            return []
        self._buffer += self._decoder.decode(chunk)
        if "\n" not in self._buffer:
            return []
        *lines, self._buffer = self._buffer.split("\n")
        return lines

    def flush(self) -> list[str]:
        """Return the unterminated trailing fragment as a final line.

        Called once the upstream has no more chunks. Bytes of an incomplete
        character are replaced rather than dropped.
        """
        tail = self._buffer + self._decoder.decode(b"", final=True)
        self._buffer = ""
        self._decoder.reset()
        if not tail:
            return []
        return [tail]


def extract_data_payload(line: str) -> Optional[str]:
    """Return the payload of a ``data: `` line, or None if there is nothing to classify.

    Blank separators, ``event:``/``id:``/comment lines, the ``[DONE]`` sentinel
    and empty payloads all yield None.
    """
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):].strip()
    if not payload or payload == DONE_SENTINEL:
        return None
    return payload


def format_sse_data(data: Any) -> bytes:
    """Frame a JSON-serialisable object as a single ``data:`` event."""
    json_str = json.dumps(data, ensure_ascii=False)
    return f"{DATA_PREFIX}{json_str}\n\n".encode("utf-8")
