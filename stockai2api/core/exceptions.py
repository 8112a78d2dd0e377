"""Core exceptions for the gateway."""

from typing import Optional


class ProxyError(Exception):
    """Base exception for gateway errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(ProxyError):
    """Raised when an incoming request is invalid."""
    pass


class ConfigurationError(ProxyError):
    """Raised when there's an issue with the configuration."""
    pass


class UpstreamError(ProxyError):
    """Base class for failures talking to the StockAI upstream."""
    pass


class UpstreamStatusError(UpstreamError):
    """The upstream answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str, limit: Optional[int] = 200) -> None:
        snippet = body if limit is None else body[:limit]
        super().__init__(f"Upstream Error ({status_code}): {snippet}")
        self.status_code = status_code
        self.body = body


class UpstreamConnectionError(UpstreamError):
    """The upstream could not be reached or the transfer broke off."""
    pass


class UpstreamTimeoutError(UpstreamError):
    """The overall upstream deadline expired."""

    def __init__(self, message: str, timeout: Optional[float] = None) -> None:
        super().__init__(message)
        self.timeout = timeout
