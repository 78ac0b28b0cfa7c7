"""Shopify webhook signature verification.

Shopify signs each delivery with HMAC-SHA256 of the raw request body, keyed
by the app's webhook secret, base64-encoded in X-Shopify-Hmac-Sha256.
"""

import base64
import hashlib
import hmac
from typing import Optional

from core.errors import SignatureError


SIGNATURE_HEADER = "X-Shopify-Hmac-Sha256"


def compute_signature(raw_body: bytes, secret: str) -> str:
    """Base64 HMAC-SHA256 digest of the body."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def is_valid_signature(raw_body: bytes, secret: str, signature: Optional[str]) -> bool:
    """Constant-time comparison of the received signature against the body."""
    if not secret or not signature:
        return False
    expected = compute_signature(raw_body, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().encode("utf-8"))


def verify_signature(raw_body: bytes, secret: str, signature: Optional[str]) -> None:
    """Raise SignatureError unless the signature matches."""
    if not is_valid_signature(raw_body, secret, signature):
        raise SignatureError("Invalid webhook signature")
