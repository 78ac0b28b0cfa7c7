"""Abstract ERP Connector Interface.

This module defines the abstract interface that ERP connectors implement.
It is intentionally ERP-agnostic - no HGI field names here.

Connectors implement this interface to:
1. Authenticate with their ERP
2. Upsert products coming from the commerce platform
3. Create and void accounting documents for orders
4. Report products changed on the ERP side (for the polling sync)

Key Design Principles:
- Sync services and API routes depend ONLY on this interface
- Payloads are NORMALIZED pydantic models; connectors translate them
- ERP-specific implementations live in connector subfolders
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ERPConnectionStatus(str, Enum):
    """Connection status to ERP system."""
    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"


class DocumentState(int, Enum):
    """State flag of an accounting document."""
    ACTIVE = 1
    VOIDED = 2


# =============================================================================
# Normalized Payload Models (ERP-Agnostic)
# =============================================================================

class ProductPayload(BaseModel):
    """A product as the ERP should hold it."""
    code: str = Field(..., description="Product code (the Shopify SKU)")
    description: str
    price: Decimal = Field(default=Decimal("0"))
    active: bool = True
    ecommerce: bool = Field(default=True, description="Published on the web store")


class AccountingLinePayload(BaseModel):
    """One debit or credit line of an accounting document."""
    account: str = Field(..., description="Ledger account code")
    detail: str
    reference: Optional[str] = None
    debit: Decimal = Field(default=Decimal("0"))
    credit: Decimal = Field(default=Decimal("0"))
    party: Optional[str] = Field(default=None, description="Third party (customer) identifier")


class AccountingDocumentPayload(BaseModel):
    """Normalized accounting document for creation."""
    company: int
    voucher_type: str
    date: str = Field(..., description="ISO-8601 document date")
    notes: str = ""
    lines: List[AccountingLinePayload] = Field(default_factory=list)

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))


class VoidDocumentPayload(BaseModel):
    """Request to void a previously created document."""
    company: int
    voucher_type: str
    document_id: str
    state: DocumentState = DocumentState.VOIDED
    notes: str = ""


class CreatedDocumentRef(BaseModel):
    """Reference to a document created in the ERP.

    document_id is None when the response could not be parsed.
    """
    document_id: Optional[str] = None
    raw_response: Any = None


class ChangedProduct(BaseModel):
    """A product modified on the ERP side."""
    code: str
    price: Optional[Decimal] = None
    stock: Optional[int] = Field(default=None, description="Available quantity, if reported")
    description: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Configuration
# =============================================================================

@dataclass
class ERPConfig:
    """Configuration for an ERP connector.

    Generic configuration that can be extended by specific connectors.
    """
    connector_type: str                     # "hgi", ...
    base_url: Optional[str] = None          # ERP API endpoint
    company_id: Optional[str] = None        # Company/entity within ERP
    timeout_seconds: float = 20.0

    # Authentication (connector-specific)
    auth_config: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Abstract Connector Interface
# =============================================================================

class ERPConnector(ABC):
    """Abstract base class for ERP connectors.

    All methods raise core.errors.AuthError when credentials cannot be
    obtained and core.errors.RemoteCallError for failed remote calls.
    """

    def __init__(self, config: ERPConfig):
        self.config = config
        self._connection_status = ERPConnectionStatus.DISCONNECTED

    # -------------------------------------------------------------------------
    # Connection Management
    # -------------------------------------------------------------------------

    @abstractmethod
    async def connect(self) -> None:
        """Open HTTP resources. Does not authenticate eagerly."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Release HTTP resources."""
        pass

    @property
    def connection_status(self) -> ERPConnectionStatus:
        return self._connection_status

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    @abstractmethod
    async def upsert_products(self, products: List[ProductPayload]) -> None:
        """Create or update products by code."""
        pass

    @abstractmethod
    async def list_changed_products(self, since: datetime) -> List[ChangedProduct]:
        """Products modified in the ERP at or after `since`."""
        pass

    # -------------------------------------------------------------------------
    # Accounting Documents
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_accounting_document(
        self,
        document: AccountingDocumentPayload,
    ) -> CreatedDocumentRef:
        """Create one accounting document. Never retried automatically."""
        pass

    @abstractmethod
    async def void_accounting_document(self, request: VoidDocumentPayload) -> None:
        """Mark a document as voided."""
        pass


# =============================================================================
# Connector Factory
# =============================================================================

_connector_registry: Dict[str, type] = {}


def register_connector(connector_type: str):
    """Decorator to register a connector implementation."""
    def decorator(cls):
        _connector_registry[connector_type] = cls
        return cls
    return decorator


def create_connector(config: ERPConfig) -> ERPConnector:
    """Create a connector instance from configuration.

    Args:
        config: ERPConfig with connector_type specified

    Returns:
        Configured connector instance

    Raises:
        ValueError: If connector_type is not registered
    """
    connector_type = config.connector_type.lower()

    if connector_type not in _connector_registry:
        available = list(_connector_registry.keys())
        raise ValueError(
            f"Unknown connector type: {connector_type}. "
            f"Available: {available}"
        )

    connector_class = _connector_registry[connector_type]
    return connector_class(config)


def list_available_connectors() -> List[str]:
    """List all registered connector types."""
    return list(_connector_registry.keys())
