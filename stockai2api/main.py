"""Main FastAPI application for the StockAI-2API gateway."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from .api import chat_completions, list_models, register_exception_handlers
from .auth import MasterKeyValidator
from .config_loader import GatewayConfig, load_gateway_config
from .core.upstream import UpstreamClient
from .logging import setup_logging
from .middleware import gateway_middleware

logger = logging.getLogger("stockai2api")


def create_app(
    config: Optional[GatewayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Factory function to create the FastAPI application.

    Args:
        config: Gateway configuration; loaded from the config file when omitted.
        transport: Optional httpx transport for upstream calls (in-process
            fakes); the network is used when omitted.

    Returns:
        The configured FastAPI application instance.
    """
    if config is None:
        config = load_gateway_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"StockAI-2API running on port {config.port}")
        logger.info(f"Loaded {len(config.models)} models")
        if not config.auth_enabled:
            logger.warning("Master key check is disabled")
        yield

    # No docs routes: every unmatched path answers 404
    app = FastAPI(
        title="StockAI-2API",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.upstream = UpstreamClient(config, transport=transport)
    app.state.auth = MasterKeyValidator.from_config(config)

    register_exception_handlers(app)
    app.middleware("http")(gateway_middleware)

    app.post("/v1/chat/completions")(chat_completions)
    app.get("/v1/models")(list_models)
    return app


def run() -> None:
    """Load configuration and serve the gateway with uvicorn."""
    import uvicorn

    config = load_gateway_config()
    setup_logging(config.log_level)
    uvicorn.run(create_app(config), host=config.host, port=config.port)


__all__ = ["create_app", "run"]
