"""Order to accounting document mapping record."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderMapping(BaseModel):
    """Where a Shopify order was filed in the ERP.

    Attributes:
        company_code: Accounting entity the document was filed under
        voucher_type: Document template/series code (e.g. "FV")
        document_reference: ERP document id; None if the create response
            could not be parsed
    """
    model_config = ConfigDict(frozen=True)

    company_code: int = Field(..., description="ERP company (cod_empresa)")
    voucher_type: str = Field(..., description="Voucher/document type code")
    document_reference: Optional[str] = Field(None, description="ERP document id")
