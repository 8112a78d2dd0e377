"""Core module initialization."""

from .exceptions import (
    ConfigurationError,
    InvalidRequestError,
    ProxyError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)
from .sse import DONE_FRAME, LineDecoder, extract_data_payload, format_sse_data

__all__ = [
    "ConfigurationError",
    "DONE_FRAME",
    "InvalidRequestError",
    "LineDecoder",
    "ProxyError",
    "UpstreamConnectionError",
    "UpstreamError",
    "UpstreamStatusError",
    "UpstreamTimeoutError",
    "extract_data_payload",
    "format_sse_data",
]
