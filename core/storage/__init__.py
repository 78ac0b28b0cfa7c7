"""Core storage - persisted order mapping table."""

from core.storage.order_map import (
    OrderMappingStore,
    serialize_orders,
)

__all__ = [
    "OrderMappingStore",
    "serialize_orders",
]
