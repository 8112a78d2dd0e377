"""Configuration loading from YAML files with environment variable support."""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml
from dotenv import dotenv_values

from .core.exceptions import ConfigurationError

logger = logging.getLogger("stockai2api")

# Default path to the config file (relative to project root)
DEFAULT_CONFIG_PATH = "configs/config_default.yaml"

# Environment variable to override the config path
CONFIG_PATH_ENV = "STOCKAI2API_CONFIG"

DEFAULT_MASTER_KEY = "sk-stockai-free"
AUTH_DISABLE_SENTINEL = "1"
DEFAULT_TIMEOUT = 60.0
DEFAULT_ERROR_BODY_LIMIT = 200

DEFAULT_MODELS = (
    "openai/gpt-4o-mini",
    "stockai/news",
    "arcee-ai/trinity-mini",
    "deepcogito/cogito-v2.1-671b",
    "deepseek/deepseek-chat-v3.1",
    "google/gemini-2.0-flash",
    "google/gemini-3-pro",
    "google/gemini-3-pro-backup",
    "z-ai/glm-4.5-air",
    "z-ai/glm-4.6",
    "moonshotai/kimi-k2",
    "moonshotai/kimi-k2-thinking",
    "meta/llama-4-scout",
    "meituan/longcat-flash-chat",
    "meituan/longcat-flash-chat-search",
    "mistral/mistral-small",
    "openai/gpt-oss-20b",
    "qwen/qwen3-coder",
    "alibaba/tongyi-deepresearch-30b-a3b",
)

# Mirrors configs/config_default.yaml; used when that file is absent.
DEFAULT_CONFIG: dict[str, Any] = {
    "server": {"host": "${STOCKAI2API_HOST:-0.0.0.0}", "port": "${PORT:-3000}"},
    "auth": {
        "master_key": "${API_KEY:-" + DEFAULT_MASTER_KEY + "}",
        "disable_sentinel": AUTH_DISABLE_SENTINEL,
    },
    "upstream": {
        "api_url": "https://free.stockai.trade/api/chat",
        "timeout_seconds": DEFAULT_TIMEOUT,
        "error_body_limit": DEFAULT_ERROR_BODY_LIMIT,
        "base_headers": {
            "authority": "free.stockai.trade",
            "accept": "*/*",
            "accept-language": "zh-CN,zh;q=0.9,en;q=0.8",
            "content-type": "application/json",
            "origin": "https://free.stockai.trade",
            "referer": "https://free.stockai.trade/",
            "user-agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36"
            ),
            "sec-ch-ua": '"Chromium";v="142", "Google Chrome";v="142", "Not_A Brand";v="99"',
            "sec-ch-ua-mobile": "?0",
            "sec-ch-ua-platform": '"Windows"',
            "sec-fetch-dest": "empty",
            "sec-fetch-mode": "cors",
            "sec-fetch-site": "same-origin",
            "priority": "u=1, i",
        },
        "fake_ip_headers": ["X-Forwarded-For", "X-Real-IP", "Client-IP"],
    },
    "models": {
        "list": list(DEFAULT_MODELS),
        "default": "openai/gpt-4o-mini",
        "owned_by": "stockai-2api",
    },
    "logging": {"level": "${STOCKAI2API_LOG_LEVEL:-INFO}"},
}


@dataclass(frozen=True)
class GatewayConfig:
    """Immutable runtime configuration, built once at startup."""

    upstream_url: str
    host: str = "0.0.0.0"
    port: int = 3000
    master_key: str = DEFAULT_MASTER_KEY
    auth_disable_sentinel: str = AUTH_DISABLE_SENTINEL
    upstream_timeout: float = DEFAULT_TIMEOUT
    upstream_headers: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    fake_ip_headers: tuple[str, ...] = ("X-Forwarded-For", "X-Real-IP", "Client-IP")
    error_body_limit: int = DEFAULT_ERROR_BODY_LIMIT
    models: tuple[str, ...] = DEFAULT_MODELS
    default_model: str = "openai/gpt-4o-mini"
    owned_by: str = "stockai-2api"
    log_level: str = "INFO"

    @property
    def auth_enabled(self) -> bool:
        return self.master_key != self.auth_disable_sentinel


def resolve_config_path(path: str) -> Path:
    """Resolve config path relative to project root if needed."""
    if Path(path).is_absolute():
        return Path(path)
    project_root = Path(__file__).parent.parent
    return project_root / path


def resolve_env_path(config_path: Path, env_path: str | None = None) -> Path:
    """Resolve the env file path for a config file."""
    if env_path:
        return resolve_config_path(env_path)
    stem = config_path.stem
    if stem.startswith("config_"):
        suffix = stem[len("config_"):]
        return config_path.with_name(f".env_{suffix}")
    return config_path.with_name(".env")


def load_env_values(env_path: Path) -> dict[str, str]:
    """Load environment values from a .env file without mutating os.environ."""
    if not env_path.exists():
        return {}
    raw_values = dotenv_values(env_path)
    return {key: value for key, value in raw_values.items() if value is not None}


def load_config(
    path: str | None = None,
    env_path: str | None = None,
    substitute_env: bool = True,
) -> dict:
    """Load the raw configuration mapping from a YAML file.

    Args:
        path: Path to the config file. Defaults to STOCKAI2API_CONFIG,
              or configs/config_default.yaml in the project root.
        env_path: Optional .env path override for env substitution.
        substitute_env: Whether to substitute environment variables in the config.

    Returns:
        Parsed configuration dictionary.

    Raises:
        ConfigurationError: If an explicitly requested file is missing or
            the file is not valid YAML.
    """
    explicit = path is not None or bool(os.getenv(CONFIG_PATH_ENV))
    if path is None:
        path = os.getenv(CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH

    config_path = resolve_config_path(path)

    env_values: dict[str, str] = {}
    if substitute_env:
        env_file = resolve_env_path(config_path, env_path)
        if env_file.exists():
            logger.info(f"Loading environment variables from {env_file}")
            env_values = load_env_values(env_file)

    if not config_path.exists():
        if explicit:
            logger.error(f"Config file not found: {config_path}")
            raise ConfigurationError(f"Config file not found: {config_path}")
        logger.warning(f"Config file not found: {config_path}; using built-in defaults")
        data: Any = DEFAULT_CONFIG
    else:
        logger.info(f"Loading configuration from {config_path}")
        try:
            with config_path.open("r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config root must be a mapping: {config_path}")

    if substitute_env:
        data = _substitute_env_vars(data, env_values)

    return data


_ENV_PATTERN = re.compile(
    r"\$\{(?P<braced>[A-Za-z_][A-Za-z0-9_]*)(?::-(?P<default>[^}]*))?\}"
    r"|\$(?P<simple>[A-Za-z_][A-Za-z0-9_]*)"
)


def _substitute_env_vars(
    obj: Any, env_values: Mapping[str, str] | None = None
) -> Any:
    """Recursively substitute environment variables in configuration values.

    Supports three formats:
    - ${VAR_NAME}: Braced format
    - ${VAR_NAME:-fallback}: Braced format with a fallback for unset variables
    - $VAR_NAME: Simple format

    Unset variables without a fallback keep their literal placeholder.
    """
    env_values = env_values or {}

    if isinstance(obj, dict):
        return {k: _substitute_env_vars(v, env_values) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_substitute_env_vars(item, env_values) for item in obj]
    if isinstance(obj, str):

        def replace_var(match: re.Match) -> str:
            var_name = match.group("braced") or match.group("simple")
            value = env_values.get(var_name)
            if value is None:
                value = os.getenv(var_name)
            if value is None:
                fallback = match.group("default")
                if fallback is not None:
                    return fallback
                logger.warning(
                    f"CONFIG ERROR: Environment variable '${var_name}' is not set! "
                    f"The literal placeholder will be used."
                )
                return match.group(0)
            return value

        return _ENV_PATTERN.sub(replace_var, obj)
    return obj


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"'{name}' must be a mapping")
    return value


def _as_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}") from exc


def _as_float(value: Any, key: str) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}") from exc
    if result <= 0:
        raise ConfigurationError(f"'{key}' must be positive, got {value!r}")
    return result


def build_gateway_config(data: Mapping[str, Any]) -> GatewayConfig:
    """Validate a raw config mapping and freeze it into a GatewayConfig."""
    server = _section(data, "server")
    auth = _section(data, "auth")
    upstream = _section(data, "upstream")
    models = _section(data, "models")
    logging_cfg = _section(data, "logging")

    api_url = str(upstream.get("api_url") or "").strip()
    if not api_url:
        raise ConfigurationError("'upstream.api_url' is required")

    base_headers = upstream.get("base_headers") or {}
    if not isinstance(base_headers, Mapping):
        raise ConfigurationError("'upstream.base_headers' must be a mapping")

    fake_ip_headers = upstream.get("fake_ip_headers")
    if fake_ip_headers is None:
        fake_ip_headers = ["X-Forwarded-For", "X-Real-IP", "Client-IP"]
    if not isinstance(fake_ip_headers, list):
        raise ConfigurationError("'upstream.fake_ip_headers' must be a list")

    model_list = models.get("list")
    if model_list is None:
        model_list = list(DEFAULT_MODELS)
    if not isinstance(model_list, list):
        raise ConfigurationError("'models.list' must be a list")
    model_ids = tuple(str(m) for m in model_list if m)

    default_model = str(models.get("default") or (model_ids[0] if model_ids else "")).strip()
    if not default_model:
        raise ConfigurationError("'models.default' is required when 'models.list' is empty")

    master_key = auth.get("master_key")
    if master_key is None or str(master_key) == "":
        master_key = DEFAULT_MASTER_KEY

    return GatewayConfig(
        host=str(server.get("host") or "0.0.0.0"),
        port=_as_int(server.get("port", 3000), "server.port"),
        master_key=str(master_key),
        auth_disable_sentinel=str(auth.get("disable_sentinel") or AUTH_DISABLE_SENTINEL),
        upstream_url=api_url,
        upstream_timeout=_as_float(
            upstream.get("timeout_seconds", DEFAULT_TIMEOUT), "upstream.timeout_seconds"
        ),
        upstream_headers=MappingProxyType(
            {str(k): str(v) for k, v in base_headers.items()}
        ),
        fake_ip_headers=tuple(str(h) for h in fake_ip_headers),
        error_body_limit=_as_int(
            upstream.get("error_body_limit", DEFAULT_ERROR_BODY_LIMIT),
            "upstream.error_body_limit",
        ),
        models=model_ids,
        default_model=default_model,
        owned_by=str(models.get("owned_by") or "stockai-2api"),
        log_level=str(logging_cfg.get("level") or "INFO").upper(),
    )


def load_gateway_config(
    path: str | None = None, env_path: str | None = None
) -> GatewayConfig:
    """Load, substitute and validate the configuration in one step."""
    config = build_gateway_config(load_config(path, env_path))
    logger.info(
        "Configuration loaded: upstream=%s, %d models", config.upstream_url, len(config.models)
    )
    return config
