"""API endpoints."""

from trademind.api.routes import router

__all__ = [
    "router",
]
