"""HGI ERP Connector.

Implements the ERPConnector interface for the HGI cloud ERP.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import ValidationError

from connectors.erp_base import (
    AccountingDocumentPayload,
    ChangedProduct,
    CreatedDocumentRef,
    ERPConfig,
    ERPConnectionStatus,
    ERPConnector,
    ProductPayload,
    VoidDocumentPayload,
    register_connector,
)
from connectors.hgi.hgi_auth import HGIAuthConfig, HGIAuthProvider
from connectors.hgi.hgi_client import HGIApiClient, HGIApiConfig
from connectors.hgi.hgi_models import (
    HGIDocument,
    HGIDocumentLine,
    HGIDocumentUpdate,
    HGIProduct,
    HGIProductRecord,
    extract_document_id,
)
from core.errors import RemoteCallError
from core.observability.logging import get_logger


logger = get_logger(__name__)

PRODUCTS_UPDATE = "Api/Productos/Actualizar"
PRODUCTS_LIST = "Api/Productos/Obtener"
DOCUMENTS_CREATE = "Api/DocumentosContables/Crear"
DOCUMENTS_UPDATE = "Api/DocumentosContables/Actualizar"


# =============================================================================
# Normalized → HGI translation
# =============================================================================

def to_hgi_product(product: ProductPayload) -> HGIProduct:
    return HGIProduct(
        Codigo=product.code,
        Descripcion=product.description,
        Precio=float(product.price),
        Estado=1 if product.active else 0,
        Ecommerce=1 if product.ecommerce else 0,
    )


def to_hgi_document(document: AccountingDocumentPayload) -> HGIDocument:
    return HGIDocument(
        Empresa=document.company,
        IdComprobante=document.voucher_type,
        Fecha=document.date,
        Observaciones=document.notes,
        ComprobanteDetalle=[
            HGIDocumentLine(
                CuentaNIIF=line.account,
                Detalle=line.detail,
                Referencia=line.reference,
                Debito=float(line.debit),
                Credito=float(line.credit),
                Tercero=line.party,
            )
            for line in document.lines
        ],
    )


def to_hgi_void(request: VoidDocumentPayload) -> HGIDocumentUpdate:
    return HGIDocumentUpdate(
        Empresa=request.company,
        IdComprobante=request.voucher_type,
        Documento=request.document_id,
        Estado=int(request.state),
        Observaciones=request.notes,
    )


def from_hgi_product(record: HGIProductRecord) -> Optional[ChangedProduct]:
    if not record.Codigo:
        return None
    return ChangedProduct(
        code=record.Codigo,
        price=record.Precio,
        stock=int(record.Existencia) if record.Existencia is not None else None,
        description=record.Descripcion,
        metadata={"modified_at": record.FechaModificacion} if record.FechaModificacion else {},
    )


@register_connector("hgi")
class HGIConnector(ERPConnector):
    """HGI connector implementation.

    Required configuration:
    - base_url: HGI API root (e.g. https://cloud2.hgi.com.co:9323/)
    - auth_config.user / auth_config.password
    - auth_config.company: cod_compania
    - company_id: cod_empresa
    """

    def __init__(
        self,
        config: ERPConfig,
        auth_provider: Optional[HGIAuthProvider] = None,
    ):
        super().__init__(config)

        self._auth_provider = auth_provider or HGIAuthProvider(
            HGIAuthConfig(
                base_url=config.base_url or "",
                user=config.auth_config.get("user", ""),
                password=config.auth_config.get("password", ""),
                company=str(config.auth_config.get("company", "")),
                empresa=str(config.company_id or ""),
                timeout_seconds=config.timeout_seconds,
            )
        )
        self._api_client = HGIApiClient(
            self._auth_provider,
            HGIApiConfig(
                base_url=config.base_url or "",
                timeout_seconds=config.timeout_seconds,
            ),
        )

    @property
    def auth_provider(self) -> HGIAuthProvider:
        return self._auth_provider

    # =========================================================================
    # Connection Management
    # =========================================================================

    async def connect(self) -> None:
        await self._api_client.connect()
        self._connection_status = ERPConnectionStatus.CONNECTED

    async def disconnect(self) -> None:
        await self._api_client.disconnect()
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    # =========================================================================
    # Products
    # =========================================================================

    async def upsert_products(self, products: List[ProductPayload]) -> None:
        body = [to_hgi_product(p).to_api() for p in products]
        result = await self._api_client.request("PUT", PRODUCTS_UPDATE, data=body)
        logger.info(
            f"[HGI {PRODUCTS_UPDATE}] ok",
            extra_fields={
                "sent": len(body),
                "returned": len(result) if isinstance(result, list) else None,
            },
        )

    async def list_changed_products(self, since: datetime) -> List[ChangedProduct]:
        data = await self._api_client.request(
            "GET",
            PRODUCTS_LIST,
            params={"fecha_modificacion": since.isoformat()},
        )
        if data is None:
            return []
        if not isinstance(data, list):
            raise RemoteCallError(
                f"Expected a list from {PRODUCTS_LIST}",
                response_body=str(data)[:500],
            )

        changed = []
        for item in data:
            try:
                product = from_hgi_product(HGIProductRecord.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed product record: {e}")
                continue
            if product is not None:
                changed.append(product)
        return changed

    # =========================================================================
    # Accounting Documents
    # =========================================================================

    async def create_accounting_document(
        self,
        document: AccountingDocumentPayload,
    ) -> CreatedDocumentRef:
        body = [to_hgi_document(document).to_api()]
        result: Any = await self._api_client.request("POST", DOCUMENTS_CREATE, data=body)

        document_id = extract_document_id(result)
        if document_id is None:
            logger.warning(
                "Could not read the document number from the HGI response",
                extra_fields={"response": str(result)[:500]},
            )
        return CreatedDocumentRef(document_id=document_id, raw_response=result)

    async def void_accounting_document(self, request: VoidDocumentPayload) -> None:
        body = [to_hgi_void(request).to_api()]
        await self._api_client.request("PUT", DOCUMENTS_UPDATE, data=body)
