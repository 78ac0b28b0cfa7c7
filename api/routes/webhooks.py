"""Shopify webhook endpoints.

Each endpoint verifies the delivery signature against the raw body, parses
the payload and hands it to the matching sync service. Returning 200 tells
Shopify the delivery is done; any 5xx makes it redeliver later.
"""

import json
from enum import Enum
from typing import Awaitable, Callable, Optional, Type, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ValidationError

from api.dependencies import ServiceContainer, get_container
from connectors.shopify.shopify_models import ShopifyOrder, ShopifyProduct
from core.errors import SignatureError, SyncError
from core.observability.logging import get_logger, with_correlation
from core.security.signature import SIGNATURE_HEADER, verify_signature


router = APIRouter()
logger = get_logger(__name__)

WEBHOOK_ID_HEADER = "X-Shopify-Webhook-Id"

PayloadT = TypeVar("PayloadT", bound=BaseModel)


class WebhookResponse(BaseModel):
    """Acknowledgement returned to Shopify."""
    status: str
    outcome: str


async def _read_payload(
    request: Request,
    container: ServiceContainer,
    model: Type[PayloadT],
) -> PayloadT:
    raw_body = await request.body()
    try:
        verify_signature(
            raw_body,
            container.settings.shopify_secret,
            request.headers.get(SIGNATURE_HEADER),
        )
    except SignatureError:
        logger.warning("Rejected webhook with invalid signature", extra_fields={"path": request.url.path})
        raise

    try:
        return model.model_validate(json.loads(raw_body))
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid payload: {e}")


async def _dispatch(
    topic: str,
    request: Request,
    container: ServiceContainer,
    model: Type[PayloadT],
    handler: Callable[[PayloadT], Awaitable[Enum]],
    order_id: Callable[[PayloadT], Optional[str]] = lambda p: None,
    product_id: Callable[[PayloadT], Optional[str]] = lambda p: None,
) -> WebhookResponse:
    payload = await _read_payload(request, container, model)

    with with_correlation(
        topic=topic,
        webhook_id=request.headers.get(WEBHOOK_ID_HEADER),
        order_id=order_id(payload),
        product_id=product_id(payload),
    ):
        try:
            outcome = await handler(payload)
        except SyncError as e:
            logger.error(
                f"{topic} error: {e}",
                extra_fields={
                    "error_type": type(e).__name__,
                    "status_code": getattr(e, "status_code", None),
                    "response_body": getattr(e, "response_body", None),
                    **e.context,
                },
            )
            raise
        except Exception:
            logger.exception(f"{topic} failed unexpectedly")
            raise

        logger.info(f"{topic} handled", extra_fields={"outcome": outcome.value})
        return WebhookResponse(status="ok", outcome=outcome.value)


def _order_id(order: ShopifyOrder) -> str:
    return order.order_id


def _product_id(product: ShopifyProduct) -> Optional[str]:
    return str(product.id) if product.id is not None else None


# =============================================================================
# Products
# =============================================================================

@router.post("/products/update", response_model=WebhookResponse)
async def product_updated(request: Request, container: ServiceContainer = Depends(get_container)):
    return await _dispatch(
        "products/update", request, container, ShopifyProduct,
        container.products.handle_product_update, product_id=_product_id,
    )


@router.post("/products/delete", response_model=WebhookResponse)
async def product_deleted(request: Request, container: ServiceContainer = Depends(get_container)):
    return await _dispatch(
        "products/delete", request, container, ShopifyProduct,
        container.products.handle_product_delete, product_id=_product_id,
    )


# =============================================================================
# Orders
# =============================================================================

@router.post("/orders/create", response_model=WebhookResponse)
async def order_created(request: Request, container: ServiceContainer = Depends(get_container)):
    return await _dispatch(
        "orders/create", request, container, ShopifyOrder,
        container.orders.handle_order_created, order_id=_order_id,
    )


@router.post("/orders/updated", response_model=WebhookResponse)
async def order_updated(request: Request, container: ServiceContainer = Depends(get_container)):
    return await _dispatch(
        "orders/updated", request, container, ShopifyOrder,
        container.orders.handle_order_updated, order_id=_order_id,
    )


@router.post("/orders/paid", response_model=WebhookResponse)
async def order_paid(request: Request, container: ServiceContainer = Depends(get_container)):
    return await _dispatch(
        "orders/paid", request, container, ShopifyOrder,
        container.orders.handle_order_paid, order_id=_order_id,
    )


@router.post("/orders/cancelled", response_model=WebhookResponse)
async def order_cancelled(request: Request, container: ServiceContainer = Depends(get_container)):
    return await _dispatch(
        "orders/cancelled", request, container, ShopifyOrder,
        container.orders.handle_order_cancelled, order_id=_order_id,
    )
