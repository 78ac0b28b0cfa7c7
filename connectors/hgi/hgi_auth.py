"""HGI Authentication Provider.

Obtains the JWT used by every HGI API call and keeps it in a
CredentialCache so concurrent webhooks share one authentication request.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import aiohttp
from pydantic import ValidationError

from connectors.hgi.hgi_models import HGIAuthResponse
from core.errors import AuthError
from core.observability.logging import get_logger
from core.security.credential_cache import AuthResult, Credential, CredentialCache, utcnow


logger = get_logger(__name__)


@dataclass
class HGIAuthConfig:
    """Configuration for HGI authentication.

    Attributes:
        base_url: HGI API root, ending with "/"
        user: API user (usuario)
        password: API password (clave)
        company: cod_compania
        empresa: cod_empresa
        timeout_seconds: Bound on the authentication request
    """
    base_url: str
    user: str
    password: str
    company: str
    empresa: str
    timeout_seconds: float = 20.0

    @property
    def token_endpoint(self) -> str:
        """Get the authentication endpoint."""
        return f"{self.base_url}Api/Autenticar"


def parse_expiration(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 expiry hint; naive values are taken as UTC."""
    if not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        logger.warning(f"Ignoring unparseable expiration hint: {value!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class HGIAuthProvider:
    """Authentication provider for HGI.

    Usage:
        auth = HGIAuthProvider(HGIAuthConfig(...))
        credential = await auth.get_credential()
        headers = {"Authorization": credential.authorization_header}
    """

    def __init__(
        self,
        config: HGIAuthConfig,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.config = config
        self.cache = CredentialCache(authenticate=self.authenticate, clock=clock)

    async def get_credential(self) -> Credential:
        """Cached credential, renewed through a single shared request."""
        return await self.cache.acquire()

    def invalidate(self) -> None:
        """Drop the cached token (e.g. after the API answered 401)."""
        self.cache.invalidate()

    async def authenticate(self) -> AuthResult:
        """Call Api/Autenticar once.

        Raises:
            AuthError: Network failure, non-200 status, error payload or
                response without jwtToken
        """
        params = {
            "usuario": self.config.user,
            "clave": self.config.password,
            "cod_compania": self.config.company,
            "cod_empresa": self.config.empresa,
        }
        timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(self.config.token_endpoint, params=params) as response:
                    body = await response.text()
                    if response.status != 200:
                        raise AuthError(
                            f"Token request failed: {response.status} - {body}",
                            context={"status_code": response.status},
                        )
                    try:
                        data = await response.json(content_type=None)
                    except ValueError as e:
                        raise AuthError(f"Malformed authentication response: {body[:200]}") from e
        except asyncio.TimeoutError as e:
            raise AuthError("Authentication request timed out") from e
        except aiohttp.ClientError as e:
            raise AuthError(f"Authentication request failed: {e}") from e

        return self.parse_response(data)

    @staticmethod
    def parse_response(data) -> AuthResult:
        """Turn an Api/Autenticar body into an AuthResult."""
        if not isinstance(data, dict):
            raise AuthError("Malformed authentication response")
        try:
            parsed = HGIAuthResponse.model_validate(data)
        except ValidationError as e:
            raise AuthError(f"Malformed authentication response: {e}") from e

        if parsed.error:
            raise AuthError(f"HGI rejected credentials: {parsed.error}")
        if not parsed.jwtToken:
            raise AuthError("No jwtToken in HGI authentication response")

        return AuthResult(
            token=parsed.jwtToken,
            expires_hint=parse_expiration(parsed.passwordExpiration),
        )
