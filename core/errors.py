"""Error taxonomy for the sync middleware.

Every failure the service can surface maps to one of these types. The HTTP
layer turns them into status codes; everything else just raises.
"""

from typing import Any, Dict, Optional


class SyncError(Exception):
    """Base exception for sync failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class AuthError(SyncError):
    """Credential acquisition against the ERP failed."""
    pass


class SignatureError(SyncError):
    """Inbound webhook failed its authenticity check."""
    pass


class RemoteCallError(SyncError):
    """Non-2xx, malformed or timed-out response from a remote API."""

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        response_body: str = "",
        retryable: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.status_code = status_code
        self.response_body = response_body
        self.retryable = retryable


class PersistenceError(SyncError):
    """The order mapping table could not be read or written."""
    pass
