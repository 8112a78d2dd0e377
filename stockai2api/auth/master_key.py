"""Static master-key authentication for the gateway."""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass

from ..config_loader import GatewayConfig

logger = logging.getLogger("stockai2api")

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class MasterKeyValidator:
    """Compares the Authorization header against the configured master key.

    Setting the master key to the disable sentinel turns the check off.
    """

    master_key: str
    disable_sentinel: str = "1"

    @classmethod
    def from_config(cls, config: GatewayConfig) -> MasterKeyValidator:
        return cls(master_key=config.master_key, disable_sentinel=config.auth_disable_sentinel)

    @property
    def enabled(self) -> bool:
        return self.master_key != self.disable_sentinel

    def is_authorized(self, authorization: str | None) -> bool:
        """Check a raw ``Authorization`` header value.

        The header must be exactly ``Bearer <master_key>``.
        """
        if not self.enabled:
            return True
        if not authorization:
            return False
        expected = f"{BEARER_PREFIX}{self.master_key}"
        return hmac.compare_digest(authorization.encode("utf-8"), expected.encode("utf-8"))
