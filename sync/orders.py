"""Order webhooks → HGI accounting documents.

A paid order produces exactly one sales document; the OrderMappingStore is
the idempotency record. A cancelled order voids the document it produced.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from connectors.erp_base import (
    AccountingDocumentPayload,
    AccountingLinePayload,
    DocumentState,
    ERPConnector,
    VoidDocumentPayload,
)
from connectors.shopify.shopify_models import ShopifyOrder
from core.config import Settings
from core.models.mapping import OrderMapping
from core.observability.logging import get_logger
from core.storage.order_map import OrderMappingStore


logger = get_logger(__name__)


class OrderOutcome(str, Enum):
    """What handling an order event did."""
    CREATED = "created"
    ALREADY_PROCESSED = "already_processed"
    SKIPPED_NOT_PAID = "skipped_not_paid"
    VOIDED = "voided"
    NO_MAPPING = "no_mapping"
    NEEDS_RECONCILIATION = "needs_reconciliation"


def build_sales_document(order: ShopifyOrder, settings: Settings) -> AccountingDocumentPayload:
    """Two-line sales document: revenue credit, receivable debit.

    Taxes are not split out; the whole order total goes to the revenue account.
    """
    order_id = order.order_id
    party = order.customer_email or settings.hgi_tercero_default or None
    total = order.total_price or 0

    return AccountingDocumentPayload(
        company=settings.company_code,
        voucher_type=settings.hgi_comprobante,
        date=order.created_at or datetime.now(timezone.utc).isoformat(),
        notes=f"Shopify order {order_id}",
        lines=[
            AccountingLinePayload(
                account=settings.hgi_cuenta_ingreso,
                detail=f"Venta {order_id}",
                reference=order_id,
                debit=0,
                credit=total,
            ),
            AccountingLinePayload(
                account=settings.hgi_cuenta_cliente,
                detail=f"Cliente {party or 'N/A'}",
                party=party,
                debit=total,
                credit=0,
            ),
        ],
    )


def build_void_notes(order: ShopifyOrder) -> str:
    reason = order.cancel_reason or "unspecified"
    return f"Shopify cancel {order.order_id} ({reason}) {order.cancelled_at or ''}".rstrip()


class OrderSyncService:
    """Dispatches order events against the ERP and the mapping store."""

    def __init__(self, connector: ERPConnector, store: OrderMappingStore, settings: Settings):
        self.connector = connector
        self.store = store
        self.settings = settings

    async def handle_order_created(self, order: ShopifyOrder) -> OrderOutcome:
        return await self._record_if_paid(order)

    async def handle_order_updated(self, order: ShopifyOrder) -> OrderOutcome:
        return await self._record_if_paid(order)

    async def handle_order_paid(self, order: ShopifyOrder) -> OrderOutcome:
        return await self.record_paid_order(order)

    async def _record_if_paid(self, order: ShopifyOrder) -> OrderOutcome:
        if not order.is_paid:
            logger.info(
                "Order not paid yet, nothing to record",
                extra_fields={"financial_status": order.financial_status},
            )
            return OrderOutcome.SKIPPED_NOT_PAID
        return await self.record_paid_order(order)

    async def record_paid_order(self, order: ShopifyOrder) -> OrderOutcome:
        """Create the sales document for an order unless one already exists."""
        order_id = order.order_id
        created = False

        async def create_document(key: str) -> OrderMapping:
            nonlocal created
            document = build_sales_document(order, self.settings)
            ref = await self.connector.create_accounting_document(document)
            created = True
            mapping = OrderMapping(
                company_code=document.company,
                voucher_type=document.voucher_type,
                document_reference=ref.document_id,
            )
            if mapping.document_reference is None:
                logger.warning(
                    "Document created but its number is unknown; mapping stored with null reference",
                    extra_fields={"order_id": key},
                )
            return mapping

        mapping = await self.store.create_if_absent(order_id, create_document)

        if not created:
            logger.info("Order already processed", extra_fields={"document_reference": mapping.document_reference})
            return OrderOutcome.ALREADY_PROCESSED

        logger.info(
            "[HGI DocumentosContables/Crear] ok",
            extra_fields=mapping.model_dump(),
        )
        return OrderOutcome.CREATED

    async def handle_order_cancelled(self, order: ShopifyOrder) -> OrderOutcome:
        """Void the order's document; a never-recorded order is a no-op.

        Waits for an in-flight document creation for the same order first.
        """
        mapping: Optional[OrderMapping] = await self.store.settled(order.order_id)
        if mapping is None:
            logger.info("No mapping for cancelled order, nothing to void")
            return OrderOutcome.NO_MAPPING

        if mapping.document_reference is None:
            logger.error(
                "Cancelled order has a mapping without document number; void it manually in HGI",
                extra_fields=mapping.model_dump(),
            )
            return OrderOutcome.NEEDS_RECONCILIATION

        await self.connector.void_accounting_document(
            VoidDocumentPayload(
                company=mapping.company_code,
                voucher_type=mapping.voucher_type,
                document_id=mapping.document_reference,
                state=DocumentState.VOIDED,
                notes=build_void_notes(order),
            )
        )
        logger.info("[HGI DocumentosContables/Actualizar] voided", extra_fields=mapping.model_dump())
        return OrderOutcome.VOIDED
