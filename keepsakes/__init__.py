"""Keepsakes: a guest memory wall for one event."""

from .web import create_app

__version__ = "0.1.0"

__all__ = ["create_app", "__version__"]
