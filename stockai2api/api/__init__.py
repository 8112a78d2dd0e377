"""API layer: routes, dependencies and error rendering."""

from .errors import register_exception_handlers
from .routes import chat_completions, list_models

__all__ = [
    "chat_completions",
    "list_models",
    "register_exception_handlers",
]
