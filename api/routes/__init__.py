"""API Routes Package."""

from api.routes import health, webhooks

__all__ = [
    "health",
    "webhooks",
]
