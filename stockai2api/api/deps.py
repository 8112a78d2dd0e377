"""FastAPI dependencies exposing the app-scoped, read-only collaborators."""

from fastapi import Request

from ..config_loader import GatewayConfig
from ..core.upstream import UpstreamClient


def get_config(request: Request) -> GatewayConfig:
    return request.app.state.config


def get_upstream(request: Request) -> UpstreamClient:
    return request.app.state.upstream
