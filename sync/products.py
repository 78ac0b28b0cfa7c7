"""Product webhooks → HGI product upserts."""

from decimal import Decimal
from enum import Enum
from typing import List

from connectors.erp_base import ERPConnector, ProductPayload
from connectors.shopify.shopify_models import ShopifyProduct
from core.observability.logging import get_logger


logger = get_logger(__name__)

DEFAULT_VARIANT_TITLE = "Default Title"


class ProductOutcome(str, Enum):
    UPSERTED = "upserted"
    NO_SKUS = "no_skus"


def build_product_payloads(product: ShopifyProduct, active: bool) -> List[ProductPayload]:
    """One payload per variant carrying a SKU."""
    payloads = []
    for variant in product.variants:
        if not variant.sku:
            continue
        description = product.title
        if variant.title and variant.title != DEFAULT_VARIANT_TITLE:
            description = f"{product.title} - {variant.title}"
        payloads.append(ProductPayload(
            code=variant.sku,
            description=description,
            price=variant.price if variant.price is not None else Decimal("0"),
            active=active,
            ecommerce=True,
        ))
    return payloads


class ProductSyncService:
    """Stateless product translation; resending a product is harmless."""

    def __init__(self, connector: ERPConnector):
        self.connector = connector

    async def handle_product_update(self, product: ShopifyProduct) -> ProductOutcome:
        return await self._upsert(product, active=product.is_active)

    async def handle_product_delete(self, product: ShopifyProduct) -> ProductOutcome:
        # Deleted products are deactivated in HGI, never removed.
        return await self._upsert(product, active=False)

    async def _upsert(self, product: ShopifyProduct, active: bool) -> ProductOutcome:
        payloads = build_product_payloads(product, active)
        if not payloads:
            logger.info("No SKUs to update")
            return ProductOutcome.NO_SKUS

        await self.connector.upsert_products(payloads)
        return ProductOutcome.UPSERTED
