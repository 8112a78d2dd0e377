"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

from typing import Any, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from stockai2api.config_loader import DEFAULT_CONFIG, GatewayConfig, build_gateway_config
from stockai2api.main import create_app
from stockai2api.testing import FakeUpstream

TEST_UPSTREAM_URL = "http://stockai.test/api/chat"
TEST_MASTER_KEY = "test-key"


# =============================================================================
# Gateway Configuration Builders
# =============================================================================


def build_test_config_data(
    *,
    api_url: str = TEST_UPSTREAM_URL,
    master_key: str = TEST_MASTER_KEY,
    timeout: float = 5.0,
    models: list[str] | None = None,
) -> dict[str, Any]:
    """Build a raw config mapping shaped like configs/config_default.yaml."""
    return {
        "server": {"host": "127.0.0.1", "port": 3999},
        "auth": {"master_key": master_key, "disable_sentinel": "1"},
        "upstream": {
            "api_url": api_url,
            "timeout_seconds": timeout,
            "error_body_limit": 200,
            "base_headers": dict(DEFAULT_CONFIG["upstream"]["base_headers"]),
            "fake_ip_headers": ["X-Forwarded-For", "X-Real-IP", "Client-IP"],
        },
        "models": {
            "list": models if models is not None else ["openai/gpt-4o-mini", "z-ai/glm-4.6"],
            "default": "openai/gpt-4o-mini",
            "owned_by": "stockai-2api",
        },
        "logging": {"level": "DEBUG"},
    }


def build_test_config(**kwargs: Any) -> GatewayConfig:
    return build_gateway_config(build_test_config_data(**kwargs))


def build_test_client(
    transport: Optional[httpx.AsyncBaseTransport] = None, **config_kwargs: Any
) -> TestClient:
    """A TestClient for a gateway whose upstream calls go to ``transport``."""
    return TestClient(create_app(build_test_config(**config_kwargs), transport=transport))


def auth_headers(key: str = TEST_MASTER_KEY) -> dict[str, str]:
    return {"Authorization": f"Bearer {key}"}


@pytest.fixture
def gateway_config() -> GatewayConfig:
    return build_test_config()


@pytest.fixture
def fake_upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(gateway_config: GatewayConfig, fake_upstream: FakeUpstream) -> TestClient:
    """A TestClient whose upstream is ``fake_upstream``."""
    return TestClient(create_app(gateway_config, transport=fake_upstream.transport()))
