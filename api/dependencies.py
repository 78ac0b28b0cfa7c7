"""Service wiring for the API.

All stateful components (credential cache, mapping store, HTTP sessions,
poller) are owned by one ServiceContainer created with the app. Routes get it
through the `get_container` dependency instead of module globals.
"""

from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request

from connectors.erp_base import ERPConfig, ERPConnector, create_connector
from connectors.shopify.shopify_client import ShopifyAdminClient, ShopifyApiConfig
from core.config import Settings
from core.observability.logging import get_logger
from core.storage.order_map import OrderMappingStore
from sync.orders import OrderSyncService
from sync.poller import InventoryPoller
from sync.products import ProductSyncService


logger = get_logger(__name__)


def erp_config_from_settings(settings: Settings) -> ERPConfig:
    return ERPConfig(
        connector_type="hgi",
        base_url=settings.hgi_base_url,
        company_id=settings.hgi_empresa,
        timeout_seconds=settings.http_timeout_seconds,
        auth_config={
            "user": settings.hgi_user,
            "password": settings.hgi_pass,
            "company": settings.hgi_company,
        },
    )


@dataclass
class ServiceContainer:
    """Owns the components handlers operate on."""
    settings: Settings
    connector: ERPConnector
    store: OrderMappingStore
    commerce: Optional[ShopifyAdminClient] = None
    poller: Optional[InventoryPoller] = None
    orders: OrderSyncService = field(init=False)
    products: ProductSyncService = field(init=False)

    def __post_init__(self) -> None:
        self.orders = OrderSyncService(self.connector, self.store, self.settings)
        self.products = ProductSyncService(self.connector)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ServiceContainer":
        connector = create_connector(erp_config_from_settings(settings))
        store = OrderMappingStore(settings.map_path)

        commerce = None
        poller = None
        if settings.shopify_configured:
            commerce = ShopifyAdminClient(ShopifyApiConfig(
                shop_domain=settings.shopify_shop_domain,
                access_token=settings.shopify_access_token,
                api_version=settings.shopify_api_version,
                timeout_seconds=settings.http_timeout_seconds,
            ))
            if settings.poll_interval_seconds > 0:
                poller = InventoryPoller(
                    connector,
                    commerce,
                    interval=settings.poll_interval_seconds,
                    location_id=settings.shopify_location_id,
                )

        return cls(
            settings=settings,
            connector=connector,
            store=store,
            commerce=commerce,
            poller=poller,
        )

    async def start(self) -> None:
        """Load persisted state and open remote sessions.

        Raises:
            PersistenceError: The mapping file exists but cannot be read
        """
        if not self.settings.shopify_secret:
            logger.warning("SHOPIFY_SECRET is empty; every webhook will be rejected")
        missing = self.settings.missing()
        if missing:
            logger.error(f"Incomplete HGI settings, missing: {', '.join(missing)}")
        invalid = self.settings.invalid()
        if invalid:
            logger.error(
                f"Invalid HGI settings: {', '.join(invalid)}; "
                "order webhooks will fail until they are corrected"
            )

        self.store.load()
        await self.connector.connect()
        if self.commerce is not None:
            await self.commerce.connect()
        if self.poller is not None:
            self.poller.start()
        else:
            logger.info("Inventory poller disabled")

    async def stop(self) -> None:
        if self.poller is not None:
            await self.poller.stop()
        if self.commerce is not None:
            await self.commerce.disconnect()
        await self.connector.disconnect()


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency returning the app's container."""
    return request.app.state.container
