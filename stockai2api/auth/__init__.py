"""Authentication module for the gateway."""

from .master_key import MasterKeyValidator

__all__ = ["MasterKeyValidator"]
