"""Security module - credential caching, webhook signatures."""

from core.security.credential_cache import (
    AuthResult,
    Credential,
    CredentialCache,
)
from core.security.signature import (
    SIGNATURE_HEADER,
    compute_signature,
    is_valid_signature,
    verify_signature,
)

__all__ = [
    "AuthResult",
    "Credential",
    "CredentialCache",
    "SIGNATURE_HEADER",
    "compute_signature",
    "is_valid_signature",
    "verify_signature",
]
