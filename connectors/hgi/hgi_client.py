"""HGI HTTP Client.

Low-level HTTP client for HGI API calls.
Handles authentication headers, retries, timeouts and error mapping.
"""

from typing import Any, Dict, Optional, Tuple
from dataclasses import dataclass, field
import asyncio
import json

import aiohttp

from connectors.hgi.hgi_auth import HGIAuthProvider
from core.errors import RemoteCallError
from core.observability.logging import get_logger


logger = get_logger(__name__)

IDEMPOTENT_METHODS = ("GET", "PUT")


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    exponential_base: float = 2.0
    retry_on_status: Tuple[int, ...] = (429, 500, 502, 503, 504)

    def get_delay(self, attempt: int) -> float:
        """Calculate delay for retry attempt (exponential backoff)."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        return min(delay, self.max_delay)


@dataclass
class HGIApiConfig:
    """Configuration for HGI API client."""
    base_url: str
    timeout_seconds: float = 20.0
    retry_config: RetryConfig = field(default_factory=RetryConfig)

    def url(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint.lstrip('/')}"


class HGIApiClient:
    """HTTP client for the HGI API.

    Provides:
    - Bearer-authenticated API calls
    - One token refresh on 401/403
    - Retries with backoff for idempotent methods (GET/PUT)
    - Bounded timeouts on every request

    POST requests create documents and are never retried here: a timed-out
    create may have succeeded remotely.

    Usage:
        client = HGIApiClient(auth_provider, api_config)
        await client.connect()
        created = await client.request("POST", "Api/DocumentosContables/Crear", data=[doc])
    """

    def __init__(self, auth_provider: HGIAuthProvider, api_config: HGIApiConfig):
        self.auth_provider = auth_provider
        self.api_config = api_config
        self._session: Optional[aiohttp.ClientSession] = None

    async def connect(self) -> None:
        """Initialize HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession()

    async def disconnect(self) -> None:
        """Close HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def _headers(self) -> Dict[str, str]:
        credential = await self.auth_provider.get_credential()
        return {
            "Authorization": credential.authorization_header,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, str]] = None,
        data: Any = None,
    ) -> Any:
        """Make an authenticated API request.

        Args:
            method: HTTP method
            endpoint: Path relative to the base URL (e.g. "Api/Productos/Actualizar")
            params: Query parameters
            data: JSON body

        Returns:
            Decoded JSON response, or None for an empty body

        Raises:
            AuthError: No credential could be obtained
            RemoteCallError: Non-2xx status, malformed body or timeout
        """
        if not self._session:
            await self.connect()

        method = method.upper()
        url = self.api_config.url(endpoint)
        retry_config = self.api_config.retry_config
        max_retries = retry_config.max_retries if method in IDEMPOTENT_METHODS else 0
        timeout = aiohttp.ClientTimeout(total=self.api_config.timeout_seconds)
        refreshed = False
        attempt = 0

        while True:
            headers = await self._headers()
            try:
                async with self._session.request(
                    method,
                    url,
                    headers=headers,
                    params=params,
                    json=data,
                    timeout=timeout,
                ) as response:
                    response_text = await response.text()
                    status = response.status
            except asyncio.TimeoutError as e:
                if attempt < max_retries:
                    delay = retry_config.get_delay(attempt)
                    logger.warning(f"{method} {endpoint} timed out, retrying in {delay:.1f}s")
                    attempt += 1
                    await asyncio.sleep(delay)
                    continue
                raise RemoteCallError(
                    f"{method} {endpoint} timed out after {self.api_config.timeout_seconds}s",
                    retryable=True,
                ) from e
            except aiohttp.ClientError as e:
                if attempt < max_retries:
                    delay = retry_config.get_delay(attempt)
                    logger.warning(
                        f"{method} {endpoint} failed with {type(e).__name__}: {e}, "
                        f"retrying in {delay:.1f}s"
                    )
                    attempt += 1
                    await asyncio.sleep(delay)
                    continue
                raise RemoteCallError(f"{method} {endpoint} failed: {e}", retryable=True) from e

            # Success
            if status < 300:
                if not response_text.strip():
                    return None
                try:
                    return json.loads(response_text)
                except json.JSONDecodeError as e:
                    raise RemoteCallError(
                        f"Malformed JSON from {method} {endpoint}",
                        status,
                        response_text,
                    ) from e

            if status in (401, 403) and not refreshed:
                logger.warning(f"Got {status} from {endpoint}, refreshing token")
                self.auth_provider.invalidate()
                refreshed = True
                continue

            if status in retry_config.retry_on_status and attempt < max_retries:
                delay = retry_config.get_delay(attempt)
                logger.warning(
                    f"Request failed with {status}, "
                    f"retrying in {delay:.1f}s (attempt {attempt + 1}/{max_retries})"
                )
                attempt += 1
                await asyncio.sleep(delay)
                continue

            raise RemoteCallError(
                f"HGI API error {status} on {method} {endpoint}: {response_text[:500]}",
                status,
                response_text,
                retryable=status in retry_config.retry_on_status,
            )
