"""Bearer credential cache with single-flight renewal.

Holds the one ERP bearer token the process uses. Concurrent callers that find
the token missing or expired share a single authentication call.

Usage:
    cache = CredentialCache(authenticate=provider.authenticate)
    credential = await cache.acquire()
    headers = {"Authorization": credential.authorization_header}
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from core.concurrency import SingleFlight
from core.errors import AuthError
from core.observability.logging import get_logger


logger = get_logger(__name__)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Credential:
    """Bearer token with an absolute expiry."""
    token: str
    expires_at: datetime

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at

    @property
    def authorization_header(self) -> str:
        return f"Bearer {self.token}"


@dataclass(frozen=True)
class AuthResult:
    """What a successful authentication call returns.

    Attributes:
        token: Opaque bearer string
        expires_hint: Expiry advertised by the server, if any
    """
    token: str
    expires_hint: Optional[datetime] = None


class CredentialCache:
    """Caches one credential and serializes its renewal.

    Args:
        authenticate: Coroutine function performing the remote call
        clock: Returns the current aware UTC time
        safety_margin: Renew this long before the advertised expiry
        default_validity: Assumed lifetime when the server gives no hint
        minimum_validity: Floor on the lifetime of a fresh credential
    """

    def __init__(
        self,
        authenticate: Callable[[], Awaitable[AuthResult]],
        clock: Callable[[], datetime] = utcnow,
        safety_margin: timedelta = timedelta(seconds=60),
        default_validity: timedelta = timedelta(minutes=10),
        minimum_validity: timedelta = timedelta(minutes=2),
    ):
        self._authenticate = authenticate
        self._clock = clock
        self.safety_margin = safety_margin
        self.default_validity = default_validity
        self.minimum_validity = minimum_validity
        self._credential: Optional[Credential] = None
        self._flight: SingleFlight[Credential] = SingleFlight()

    @property
    def current(self) -> Optional[Credential]:
        return self._credential

    @property
    def refreshing(self) -> bool:
        return self._flight.in_flight

    async def acquire(self) -> Credential:
        """Return a valid credential, renewing it if needed.

        Raises:
            AuthError: The renewal this call waited on failed
        """
        credential = self._credential
        if credential is not None and credential.is_valid(self._clock()):
            return credential
        return await self._flight.do(self._refresh)

    def invalidate(self) -> None:
        """Forget the cached credential so the next acquire renews it."""
        self._credential = None

    async def _refresh(self) -> Credential:
        try:
            result = await self._authenticate()
        except AuthError as e:
            logger.error(f"Authentication failed: {e}")
            raise
        except Exception as e:
            logger.error(f"Authentication failed: {type(e).__name__}: {e}")
            raise AuthError(f"Authentication failed: {e}") from e

        if not result.token:
            raise AuthError("Authentication response carried no token")

        now = self._clock()
        hinted = result.expires_hint or (now + self.default_validity)
        expires_at = max(hinted - self.safety_margin, now + self.minimum_validity)

        credential = Credential(token=result.token, expires_at=expires_at)
        self._credential = credential
        logger.info(
            "Credential renewed",
            extra_fields={"expires_at": expires_at.isoformat()},
        )
        return credential
