"""Shopify data models.

Webhook payloads (products/*, orders/*) and the variant reference returned by
the Admin API lookup. Only the fields the sync reads are declared; anything
else in the payload is ignored.
"""

from decimal import Decimal
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class ShopifyBaseModel(BaseModel):
    """Base model for Shopify payloads."""

    class Config:
        populate_by_name = True
        extra = "ignore"


class ShopifyVariant(ShopifyBaseModel):
    """Product variant inside a product webhook."""
    id: Optional[Union[int, str]] = None
    sku: Optional[str] = None
    title: Optional[str] = None
    price: Optional[Decimal] = None
    inventory_item_id: Optional[Union[int, str]] = None

    @field_validator("sku")
    @classmethod
    def _blank_sku_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class ShopifyProduct(ShopifyBaseModel):
    """products/update and products/delete payload."""
    id: Optional[Union[int, str]] = None
    title: str = ""
    status: Optional[str] = None
    variants: List[ShopifyVariant] = Field(default_factory=list)

    @field_validator("title", mode="before")
    @classmethod
    def _title_default(cls, value):
        return value or ""

    @property
    def is_active(self) -> bool:
        return (self.status or "").lower() == "active"


class ShopifyCustomer(ShopifyBaseModel):
    id: Optional[Union[int, str]] = None
    email: Optional[str] = None


class ShopifyOrder(ShopifyBaseModel):
    """orders/create, orders/updated, orders/paid and orders/cancelled payload."""
    id: Union[int, str]
    financial_status: Optional[str] = None
    customer: Optional[ShopifyCustomer] = None
    total_price: Optional[Decimal] = None
    created_at: Optional[str] = None
    cancel_reason: Optional[str] = None
    cancelled_at: Optional[str] = None

    @property
    def order_id(self) -> str:
        """Idempotency key: the order id as a string."""
        return str(self.id)

    @property
    def is_paid(self) -> bool:
        return (self.financial_status or "").lower() == "paid"

    @property
    def customer_email(self) -> Optional[str]:
        if self.customer and self.customer.email:
            return self.customer.email
        return None


class VariantRef(ShopifyBaseModel):
    """Variant located through the Admin API."""
    variant_id: str
    sku: str
    price: Optional[Decimal] = None
    inventory_item_id: Optional[str] = None
