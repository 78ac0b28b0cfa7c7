"""Core data models."""

from core.models.mapping import OrderMapping

__all__ = [
    "OrderMapping",
]
