"""HGI data models.

These are HGI-specific models that map to the HGI REST API schema (Spanish
field names). They are separate from the normalized payloads in
connectors/erp_base.py.
"""

from decimal import Decimal
from typing import Any, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# HGI API Models
# =============================================================================

class HGIBaseModel(BaseModel):
    """Base model for HGI API entities."""

    class Config:
        populate_by_name = True

    def to_api(self) -> dict:
        """Serialize with HGI field names, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class HGIAuthResponse(HGIBaseModel):
    """Response of Api/Autenticar."""
    jwtToken: Optional[str] = Field(None, alias="jwtToken")
    passwordExpiration: Optional[str] = Field(None, alias="passwordExpiration")
    error: Optional[Any] = Field(None, alias="error")


class HGIProduct(HGIBaseModel):
    """Product as sent to Api/Productos/Actualizar."""
    Codigo: str = Field(..., alias="Codigo")
    Descripcion: str = Field(..., alias="Descripcion")
    Precio: float = Field(0.0, alias="Precio")
    Estado: int = Field(1, alias="Estado")          # 1 active, 0 inactive
    Ecommerce: int = Field(1, alias="Ecommerce")


class HGIDocumentLine(HGIBaseModel):
    """Line of an accounting document (ComprobanteDetalle)."""
    CuentaNIIF: str = Field(..., alias="CuentaNIIF")
    Detalle: str = Field(..., alias="Detalle")
    Referencia: Optional[str] = Field(None, alias="Referencia")
    Debito: float = Field(0.0, alias="Debito")
    Credito: float = Field(0.0, alias="Credito")
    Tercero: Optional[str] = Field(None, alias="Tercero")


class HGIDocument(HGIBaseModel):
    """Accounting document as sent to Api/DocumentosContables/Crear."""
    Empresa: int = Field(..., alias="Empresa")
    IdComprobante: str = Field(..., alias="IdComprobante")
    Fecha: str = Field(..., alias="Fecha")
    Observaciones: str = Field("", alias="Observaciones")
    ComprobanteDetalle: List[HGIDocumentLine] = Field(default_factory=list, alias="ComprobanteDetalle")


class HGIDocumentUpdate(HGIBaseModel):
    """Document state change as sent to Api/DocumentosContables/Actualizar."""
    Empresa: int = Field(..., alias="Empresa")
    IdComprobante: str = Field(..., alias="IdComprobante")
    Documento: str = Field(..., alias="Documento")
    Estado: int = Field(..., alias="Estado")        # 2 = voided
    Observaciones: str = Field("", alias="Observaciones")


class HGIProductRecord(HGIBaseModel):
    """Product as returned by Api/Productos/Obtener."""
    Codigo: Optional[str] = Field(None, alias="Codigo")
    Descripcion: Optional[str] = Field(None, alias="Descripcion")
    Precio: Optional[Decimal] = Field(None, alias="Precio")
    Existencia: Optional[Decimal] = Field(None, alias="Existencia")
    FechaModificacion: Optional[str] = Field(None, alias="FechaModificacion")


def extract_document_id(data: Any) -> Optional[str]:
    """Pull the created document number out of a Crear response.

    The API answers with a list of results (or occasionally a bare object);
    the number appears as Documento, Id or documento depending on version.
    """
    created = data[0] if isinstance(data, list) and data else data
    if not isinstance(created, dict):
        return None
    for key in ("Documento", "Id", "documento"):
        value = created.get(key)
        if value not in (None, ""):
            return str(value)
    return None
