"""Tests for the bearer credential cache and HGI auth response parsing."""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from connectors.hgi.hgi_auth import HGIAuthProvider, parse_expiration
from core.errors import AuthError
from core.security.credential_cache import AuthResult, Credential, CredentialCache


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class CountingAuthenticator:
    """Authenticate callable returning token-1, token-2, ... after a delay."""

    def __init__(self, expires_hint=None, error=None, delay=0.01):
        self.calls = 0
        self.expires_hint = expires_hint
        self.error = error
        self.delay = delay

    async def __call__(self) -> AuthResult:
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return AuthResult(token=f"token-{self.calls}", expires_hint=self.expires_hint)


class TestCredentialCache:

    def test_concurrent_acquire_makes_one_call(self):
        auth = CountingAuthenticator()
        cache = CredentialCache(authenticate=auth, clock=FakeClock())

        async def main():
            return await asyncio.gather(*(cache.acquire() for _ in range(25)))

        credentials = asyncio.run(main())
        assert auth.calls == 1
        assert {c.token for c in credentials} == {"token-1"}
        assert cache.refreshing is False

    def test_valid_credential_served_from_cache(self):
        auth = CountingAuthenticator()
        clock = FakeClock()
        cache = CredentialCache(authenticate=auth, clock=clock)

        async def main():
            first = await cache.acquire()
            clock.advance(minutes=5)
            second = await cache.acquire()
            return first, second

        first, second = asyncio.run(main())
        assert auth.calls == 1
        assert first is second

    def test_expired_credential_is_never_returned(self):
        auth = CountingAuthenticator()
        clock = FakeClock()
        cache = CredentialCache(authenticate=auth, clock=clock)

        async def main():
            first = await cache.acquire()
            clock.now = first.expires_at
            second = await cache.acquire()
            return first, second

        first, second = asyncio.run(main())
        assert auth.calls == 2
        assert first.token == "token-1"
        assert second.token == "token-2"
        assert second.is_valid(clock.now)

    def test_expiry_defaults_to_ten_minutes_minus_margin(self):
        cache = CredentialCache(authenticate=CountingAuthenticator(), clock=FakeClock())
        credential = asyncio.run(cache.acquire())
        assert credential.expires_at == NOW + timedelta(minutes=9)

    def test_expiry_hint_is_reduced_by_safety_margin(self):
        hint = NOW + timedelta(hours=1)
        cache = CredentialCache(authenticate=CountingAuthenticator(expires_hint=hint), clock=FakeClock())
        credential = asyncio.run(cache.acquire())
        assert credential.expires_at == hint - timedelta(seconds=60)

    def test_past_expiry_hint_gets_minimum_validity(self):
        hint = NOW - timedelta(days=1)
        cache = CredentialCache(authenticate=CountingAuthenticator(expires_hint=hint), clock=FakeClock())
        credential = asyncio.run(cache.acquire())
        assert credential.expires_at == NOW + timedelta(minutes=2)

    def test_failure_reaches_all_waiters_then_allows_retry(self):
        auth = CountingAuthenticator(error=AuthError("bad password"))
        cache = CredentialCache(authenticate=auth, clock=FakeClock())

        async def main():
            results = await asyncio.gather(
                *(cache.acquire() for _ in range(5)),
                return_exceptions=True,
            )
            auth.error = None
            recovered = await cache.acquire()
            return results, recovered

        results, recovered = asyncio.run(main())
        assert all(isinstance(r, AuthError) for r in results)
        assert auth.calls == 2
        assert recovered.token == "token-2"
        assert cache.current is recovered

    def test_unexpected_errors_are_wrapped_as_auth_error(self):
        auth = CountingAuthenticator(error=ConnectionResetError("reset"))
        cache = CredentialCache(authenticate=auth, clock=FakeClock())

        with pytest.raises(AuthError):
            asyncio.run(cache.acquire())
        assert cache.current is None

    def test_invalidate_forces_renewal(self):
        auth = CountingAuthenticator()
        cache = CredentialCache(authenticate=auth, clock=FakeClock())

        async def main():
            await cache.acquire()
            cache.invalidate()
            return await cache.acquire()

        credential = asyncio.run(main())
        assert auth.calls == 2
        assert credential.token == "token-2"

    def test_authorization_header(self):
        credential = Credential(token="abc", expires_at=NOW)
        assert credential.authorization_header == "Bearer abc"
        assert not credential.is_valid(NOW)


class TestHGIAuthResponse:

    def test_token_and_expiration_parsed(self):
        result = HGIAuthProvider.parse_response({
            "jwtToken": "jwt-123",
            "passwordExpiration": "2030-01-01T00:00:00",
        })
        assert result.token == "jwt-123"
        assert result.expires_hint == datetime(2030, 1, 1, tzinfo=timezone.utc)

    def test_missing_expiration_gives_no_hint(self):
        result = HGIAuthProvider.parse_response({"jwtToken": "jwt-123"})
        assert result.expires_hint is None

    @pytest.mark.parametrize("body", [
        {"error": "Usuario o clave invalidos"},
        {"jwtToken": ""},
        {},
        ["not", "an", "object"],
    ])
    def test_error_payloads_raise(self, body):
        with pytest.raises(AuthError):
            HGIAuthProvider.parse_response(body)

    def test_parse_expiration_variants(self):
        assert parse_expiration(None) is None
        assert parse_expiration("garbage") is None
        assert parse_expiration("2030-01-01T00:00:00Z") == datetime(2030, 1, 1, tzinfo=timezone.utc)
