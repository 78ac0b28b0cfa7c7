"""HGI → Shopify price and stock polling.

Every `interval` seconds, asks HGI which products changed since the last
successful cycle and mirrors their price and available quantity onto the
matching Shopify variants (matched by SKU).
"""

import asyncio
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from connectors.erp_base import ChangedProduct, ERPConnector
from connectors.shopify.shopify_client import ShopifyAdminClient
from core.errors import SyncError
from core.observability.logging import get_logger, with_correlation
from core.security.credential_cache import utcnow


logger = get_logger(__name__)


@dataclass
class PollSummary:
    """Counters for one poll cycle."""
    seen: int = 0
    price_updates: int = 0
    stock_updates: int = 0
    skipped: int = 0
    failed: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class InventoryPoller:
    """Mirrors ERP-side product changes onto Shopify.

    Args:
        connector: ERP to read changes from
        commerce: Shopify Admin API client
        interval: Seconds between cycles
        location_id: Shopify location for stock; stock is not synced without it
        initial_lookback: How far back the first cycle looks
        clock: Returns the current aware UTC time
    """

    def __init__(
        self,
        connector: ERPConnector,
        commerce: ShopifyAdminClient,
        interval: float,
        location_id: Optional[str] = None,
        initial_lookback: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.connector = connector
        self.commerce = commerce
        self.interval = interval
        self.location_id = location_id
        self._clock = clock
        self.since: datetime = clock() - initial_lookback
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> PollSummary:
        """Run one cycle.

        The cursor only moves forward when every product synced, so failed
        products are picked up again next cycle.

        Raises:
            AuthError / RemoteCallError: Listing the changes failed
        """
        started_at = self._clock()
        products = await self.connector.list_changed_products(self.since)
        summary = PollSummary(seen=len(products))

        for product in products:
            with with_correlation(sku=product.code):
                try:
                    await self._sync_product(product, summary)
                except SyncError as e:
                    summary.failed += 1
                    logger.error(
                        f"Failed to sync product to Shopify: {e}",
                        extra_fields={
                            "status_code": getattr(e, "status_code", None),
                            "response_body": getattr(e, "response_body", None),
                        },
                    )

        if summary.failed == 0:
            self.since = started_at

        logger.info("Poll cycle finished", extra_fields=summary.to_dict())
        return summary

    async def _sync_product(self, product: ChangedProduct, summary: PollSummary) -> None:
        variant = await self.commerce.find_variant_by_sku(product.code)
        if variant is None:
            summary.skipped += 1
            logger.info("No Shopify variant for SKU, skipping")
            return

        if product.price is not None and variant.price != product.price:
            await self.commerce.update_variant_price(variant.variant_id, product.price)
            summary.price_updates += 1

        if product.stock is not None and self.location_id and variant.inventory_item_id:
            await self.commerce.set_inventory_quantity(
                variant.inventory_item_id,
                self.location_id,
                product.stock,
            )
            summary.stock_updates += 1

    async def _run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except SyncError as e:
                logger.error(f"Poll cycle failed: {e}")
            except Exception:
                logger.exception("Unexpected error in poll cycle")
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start the background loop (no-op if already running)."""
        if self.running:
            return
        self._task = asyncio.ensure_future(self._run())
        logger.info(f"Inventory poller started (every {self.interval:.0f}s)")

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to end."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Inventory poller stopped")
