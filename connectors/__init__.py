"""ERP Connectors - Pluggable ERP system integrations.

This package contains the abstract ERP interface, the HGI implementation and
the Shopify Admin API client.

Key Design Principle:
- Sync services and API routes depend ONLY on the ERPConnector interface
- Methods take NORMALIZED payloads (ProductPayload, AccountingDocumentPayload...)
- No HGI-specific types leak through the interface

To add a new ERP:
1. Create a new folder (e.g., siigo/)
2. Implement ERPConnector interface
3. Register using @register_connector decorator
"""

from connectors.erp_base import (
    # Core interface
    ERPConnector,
    ERPConfig,
    ERPConnectionStatus,
    DocumentState,

    # Normalized payloads
    ProductPayload,
    AccountingLinePayload,
    AccountingDocumentPayload,
    VoidDocumentPayload,
    CreatedDocumentRef,
    ChangedProduct,

    # Factory functions
    create_connector,
    register_connector,
    list_available_connectors,
)

# Register bundled connectors
import connectors.hgi  # noqa: F401

__all__ = [
    # Core interface
    "ERPConnector",
    "ERPConfig",
    "ERPConnectionStatus",
    "DocumentState",

    # Normalized payloads
    "ProductPayload",
    "AccountingLinePayload",
    "AccountingDocumentPayload",
    "VoidDocumentPayload",
    "CreatedDocumentRef",
    "ChangedProduct",

    # Factory
    "create_connector",
    "register_connector",
    "list_available_connectors",
]
