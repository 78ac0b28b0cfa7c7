"""Sync services.

- orders: paid orders → accounting documents, cancellations → voids
- products: product webhooks → ERP product upserts
- poller: ERP price/stock changes → Shopify
"""

from sync.orders import OrderOutcome, OrderSyncService, build_sales_document
from sync.products import ProductOutcome, ProductSyncService, build_product_payloads
from sync.poller import InventoryPoller, PollSummary

__all__ = [
    "OrderOutcome",
    "OrderSyncService",
    "build_sales_document",
    "ProductOutcome",
    "ProductSyncService",
    "build_product_payloads",
    "InventoryPoller",
    "PollSummary",
]
