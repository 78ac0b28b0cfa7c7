"""Shopify Admin API client.

Used by the inventory poller to push ERP-side changes back to the store:
- variant lookup by SKU (GraphQL)
- price update by variant id (REST)
- absolute available quantity per inventory item and location (REST)
"""

import asyncio
import json
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

import aiohttp

from connectors.shopify.shopify_models import VariantRef
from core.errors import RemoteCallError
from core.observability.logging import get_logger


logger = get_logger(__name__)


VARIANT_BY_SKU_QUERY = """
query variantBySku($query: String!) {
  productVariants(first: 1, query: $query) {
    edges {
      node {
        legacyResourceId
        sku
        price
        inventoryItem { legacyResourceId }
      }
    }
  }
}
"""


@dataclass
class ShopifyApiConfig:
    """Configuration for the Shopify Admin API."""
    shop_domain: str
    access_token: str
    api_version: str = "2024-10"
    timeout_seconds: float = 20.0

    @property
    def admin_url(self) -> str:
        domain = self.shop_domain.replace("https://", "").rstrip("/")
        return f"https://{domain}/admin/api/{self.api_version}"


class ShopifyAdminClient:
    """Minimal Shopify Admin API client."""

    def __init__(self, config: ShopifyApiConfig):
        self.config = config
        self._session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> None:
        if self._session is None:
            self._session = aiohttp.ClientSession()

    async def disconnect(self) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    async def _request(self, method: str, path: str, data: Any = None) -> Any:
        if not self._session:
            await self.connect()

        url = f"{self.config.admin_url}/{path}"
        headers = {
            "X-Shopify-Access-Token": self.config.access_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

        try:
            async with self._session.request(
                method, url, headers=headers, json=data, timeout=timeout
            ) as response:
                text = await response.text()
                status = response.status
        except asyncio.TimeoutError as e:
            raise RemoteCallError(f"Shopify {method} {path} timed out", retryable=True) from e
        except aiohttp.ClientError as e:
            raise RemoteCallError(f"Shopify {method} {path} failed: {e}", retryable=True) from e

        if status >= 300:
            raise RemoteCallError(
                f"Shopify API error {status} on {method} {path}: {text[:500]}",
                status,
                text,
                retryable=status == 429 or status >= 500,
            )
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise RemoteCallError(f"Malformed JSON from Shopify {path}", status, text) from e

    async def graphql(self, query: str, variables: Dict[str, Any]) -> Dict[str, Any]:
        """Run a GraphQL query; GraphQL-level errors raise RemoteCallError."""
        result = await self._request("POST", "graphql.json", {"query": query, "variables": variables})
        if not isinstance(result, dict):
            raise RemoteCallError("Malformed GraphQL response", response_body=str(result)[:500])
        if result.get("errors"):
            raise RemoteCallError(
                f"GraphQL errors: {result['errors']}",
                response_body=json.dumps(result["errors"])[:500],
            )
        return result.get("data") or {}

    async def find_variant_by_sku(self, sku: str) -> Optional[VariantRef]:
        """First variant whose SKU matches exactly, or None."""
        escaped = sku.replace("\\", "\\\\").replace('"', '\\"')
        data = await self.graphql(VARIANT_BY_SKU_QUERY, {"query": f'sku:"{escaped}"'})
        edges = (data.get("productVariants") or {}).get("edges") or []

        for edge in edges:
            node = edge.get("node") or {}
            if node.get("sku") != sku:
                continue
            inventory_item = node.get("inventoryItem") or {}
            price = node.get("price")
            return VariantRef(
                variant_id=str(node["legacyResourceId"]),
                sku=sku,
                price=Decimal(str(price)) if price is not None else None,
                inventory_item_id=(
                    str(inventory_item["legacyResourceId"])
                    if inventory_item.get("legacyResourceId") else None
                ),
            )
        return None

    async def update_variant_price(self, variant_id: str, price: Decimal) -> None:
        await self._request(
            "PUT",
            f"variants/{variant_id}.json",
            {"variant": {"id": int(variant_id), "price": str(price)}},
        )

    async def set_inventory_quantity(
        self,
        inventory_item_id: str,
        location_id: str,
        quantity: int,
    ) -> None:
        """Set the absolute available quantity at a location."""
        await self._request(
            "POST",
            "inventory_levels/set.json",
            {
                "location_id": int(location_id),
                "inventory_item_id": int(inventory_item_id),
                "available": int(quantity),
            },
        )
