"""Shopify Package.

Webhook payload models and the Admin API client.
"""

from connectors.shopify.shopify_client import ShopifyAdminClient, ShopifyApiConfig
from connectors.shopify.shopify_models import (
    ShopifyCustomer,
    ShopifyOrder,
    ShopifyProduct,
    ShopifyVariant,
    VariantRef,
)

__all__ = [
    "ShopifyAdminClient",
    "ShopifyApiConfig",
    "ShopifyCustomer",
    "ShopifyOrder",
    "ShopifyProduct",
    "ShopifyVariant",
    "VariantRef",
]
