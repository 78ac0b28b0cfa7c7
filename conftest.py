"""Shared pytest fixtures: fake ERP / Shopify collaborators and settings."""

import asyncio
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

import pytest

from connectors.erp_base import (
    AccountingDocumentPayload,
    ChangedProduct,
    CreatedDocumentRef,
    ERPConfig,
    ERPConnectionStatus,
    ERPConnector,
    ProductPayload,
    VoidDocumentPayload,
)
from connectors.shopify.shopify_models import VariantRef
from core.config import Settings
from core.errors import RemoteCallError
from core.storage.order_map import OrderMappingStore


class FakeConnector(ERPConnector):
    """Records every call instead of talking to HGI."""

    def __init__(self):
        super().__init__(ERPConfig(connector_type="fake"))
        self.document_id: Optional[str] = "4521"
        self.create_delay = 0.0
        self.create_error: Optional[Exception] = None
        self.void_error: Optional[Exception] = None
        self.upsert_error: Optional[Exception] = None
        self.changed: List[ChangedProduct] = []
        self.created: List[AccountingDocumentPayload] = []
        self.voided: List[VoidDocumentPayload] = []
        self.upserts: List[List[ProductPayload]] = []
        self.listed_since: List[datetime] = []

    async def connect(self) -> None:
        self._connection_status = ERPConnectionStatus.CONNECTED

    async def disconnect(self) -> None:
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    async def upsert_products(self, products):
        self.upserts.append(list(products))
        if self.upsert_error:
            raise self.upsert_error

    async def list_changed_products(self, since):
        self.listed_since.append(since)
        return list(self.changed)

    async def create_accounting_document(self, document):
        self.created.append(document)
        if self.create_delay:
            await asyncio.sleep(self.create_delay)
        if self.create_error:
            raise self.create_error
        return CreatedDocumentRef(document_id=self.document_id)

    async def void_accounting_document(self, request):
        self.voided.append(request)
        if self.void_error:
            raise self.void_error


class FakeCommerce:
    """In-memory stand-in for ShopifyAdminClient."""

    def __init__(self):
        self.variants: Dict[str, VariantRef] = {}
        self.failing_skus = set()
        self.price_updates = []
        self.stock_updates = []

    def add_variant(self, sku: str, variant_id: str, price: str, inventory_item_id: Optional[str] = None):
        self.variants[sku] = VariantRef(
            variant_id=variant_id,
            sku=sku,
            price=Decimal(price),
            inventory_item_id=inventory_item_id,
        )

    async def find_variant_by_sku(self, sku):
        if sku in self.failing_skus:
            raise RemoteCallError("Shopify API error 502", 502, "bad gateway", retryable=True)
        return self.variants.get(sku)

    async def update_variant_price(self, variant_id, price):
        self.price_updates.append((variant_id, price))

    async def set_inventory_quantity(self, inventory_item_id, location_id, quantity):
        self.stock_updates.append((inventory_item_id, location_id, quantity))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        shopify_secret="test-secret",
        hgi_base_url="http://hgi.test/",
        hgi_user="api",
        hgi_pass="secret",
        hgi_company="1",
        hgi_empresa="1",
        hgi_comprobante="FV",
        hgi_cuenta_ingreso="413505",
        hgi_cuenta_cliente="130505",
        map_path=tmp_path / "map.json",
        poll_interval_seconds=0,
    )


@pytest.fixture
def fake_connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def fake_commerce() -> FakeCommerce:
    return FakeCommerce()


@pytest.fixture
def store(settings) -> OrderMappingStore:
    s = OrderMappingStore(settings.map_path)
    s.load()
    return s
