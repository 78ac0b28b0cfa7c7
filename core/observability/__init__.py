"""
Observability Module for the sync middleware

Provides:
- Structured logging with correlation IDs (topic, order, product, sku)
"""

from core.observability.logging import (
    configure_logging,
    get_logger,
    CorrelationContext,
    get_correlation_context,
    with_correlation,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "CorrelationContext",
    "get_correlation_context",
    "with_correlation",
]
