"""Models listing endpoint - OpenAI compatible."""

import logging
import time

from fastapi import Depends

from ...config_loader import GatewayConfig
from ..deps import get_config

logger = logging.getLogger("stockai2api")


async def list_models(config: GatewayConfig = Depends(get_config)) -> dict:
    """List available models in OpenAI API format.

    GET /v1/models
    """
    logger.info("Received models list request")
    created = int(time.time())
    return {
        "object": "list",
        "data": [
            {
                "id": model_id,
                "object": "model",
                "created": created,
                "owned_by": config.owned_by,
            }
            for model_id in config.models
        ],
    }
