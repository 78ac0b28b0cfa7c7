"""HGI Connector Package.

Implements the ERPConnector interface for the HGI cloud ERP.
"""

from connectors.hgi.hgi_connector import HGIConnector
from connectors.hgi.hgi_auth import HGIAuthProvider, HGIAuthConfig
from connectors.hgi.hgi_client import HGIApiClient, HGIApiConfig, RetryConfig
from connectors.hgi.hgi_models import (
    HGIProduct,
    HGIDocument,
    HGIDocumentLine,
    HGIDocumentUpdate,
    HGIProductRecord,
)

__all__ = [
    # Connector
    "HGIConnector",
    # Auth
    "HGIAuthProvider",
    "HGIAuthConfig",
    # Client
    "HGIApiClient",
    "HGIApiConfig",
    "RetryConfig",
    # Models
    "HGIProduct",
    "HGIDocument",
    "HGIDocumentLine",
    "HGIDocumentUpdate",
    "HGIProductRecord",
]
