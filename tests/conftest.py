"""Pytest configuration and fixtures for TokenKeeper tests.

Every store takes an injectable clock so expiry can be exercised by moving
a FakeClock forward instead of sleeping.
"""

import os
from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing app modules
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-long-enough-0123456789"
os.environ["JWT_ISSUER"] = "tokenkeeper-test"
os.environ["JWT_AUDIENCE"] = "tokenkeeper-test-api"

# Test user credentials
TEST_USERNAME = "alice"
TEST_EMAIL = "alice@x.com"
TEST_PASSWORD = "pw123456"

TEST_SECRET = os.environ["JWT_SECRET_KEY"]
TEST_ISSUER = os.environ["JWT_ISSUER"]
TEST_AUDIENCE = os.environ["JWT_AUDIENCE"]


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime.now(UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def codec():
    from tokenkeeper.services.token_codec import TokenCodec

    return TokenCodec(
        TEST_SECRET,
        issuer=TEST_ISSUER,
        audience=TEST_AUDIENCE,
        expires_in="24h",
    )


@pytest.fixture
def refresh_store(clock):
    from tokenkeeper.services.refresh_tokens import InMemoryRefreshTokenStore

    return InMemoryRefreshTokenStore(7 * 24 * 3600, clock=clock)


@pytest.fixture
def active_tokens(clock):
    from tokenkeeper.services.active_tokens import InMemoryActiveTokenIndex

    return InMemoryActiveTokenIndex(clock=clock)


@pytest.fixture
def blacklist(codec, clock):
    from tokenkeeper.services.token_blacklist import InMemoryTokenBlacklist

    return InMemoryTokenBlacklist(codec, clock=clock)


@pytest.fixture
def password_hasher():
    """Argon2 with minimal cost so tests stay fast."""
    from tokenkeeper.services.passwords import Argon2PasswordHasher

    return Argon2PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture
def user_store():
    from tokenkeeper.services.users import InMemoryUserStore

    return InMemoryUserStore()


@pytest.fixture
def make_auth_service(user_store, password_hasher, codec, refresh_store, blacklist, active_tokens):
    """Factory so tests can flip policy flags."""
    from tokenkeeper.services.auth import AuthService

    def _make(**policy) -> AuthService:
        return AuthService(
            users=user_store,
            password_hasher=password_hasher,
            codec=codec,
            refresh_tokens=refresh_store,
            blacklist=blacklist,
            active_tokens=active_tokens,
            **policy,
        )

    return _make


@pytest.fixture
def auth_service(make_auth_service):
    return make_auth_service()


@pytest_asyncio.fixture
async def registered(auth_service):
    """Register the test user; returns (user, token bundle)."""
    tokens = await auth_service.register(
        username=TEST_USERNAME,
        email=TEST_EMAIL,
        password=TEST_PASSWORD,
    )
    user = await auth_service.users.find_by_email(TEST_EMAIL)
    return user, tokens


@pytest_asyncio.fixture
async def async_client(auth_service) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against an app wired to the test auth service."""
    from tokenkeeper.core.config import Settings
    from tokenkeeper.main import create_app

    app = create_app(Settings(), auth_service=auth_service)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    def _headers(token: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    return _headers
