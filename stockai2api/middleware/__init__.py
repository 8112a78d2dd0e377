"""Middleware modules for the gateway."""

from .gateway import CORS_HEADERS, gateway_middleware, unauthorized_response

__all__ = [
    "CORS_HEADERS",
    "gateway_middleware",
    "unauthorized_response",
]
