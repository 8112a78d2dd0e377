"""StockAI-2API - OpenAI-compatible gateway for the StockAI chat backend.

Accepts OpenAI Chat Completions requests, forwards them to StockAI's
UI-message chat endpoint and translates the reply back into OpenAI chat
completion chunks (streaming) or a single chat completion (buffered),
surfacing the model's thinking as ``reasoning_content``.

Example:
    >>> from stockai2api import create_app
    >>> import uvicorn
    >>> uvicorn.run(create_app(), host="0.0.0.0", port=3000)
"""

from .config_loader import GatewayConfig, build_gateway_config, load_config, load_gateway_config
from .logging import setup_logging
from .main import create_app, run

__all__ = [
    "GatewayConfig",
    "build_gateway_config",
    "create_app",
    "load_config",
    "load_gateway_config",
    "run",
    "setup_logging",
]
