"""Token lifecycle services."""

from tokenkeeper.services.active_tokens import ActiveTokenIndex, InMemoryActiveTokenIndex
from tokenkeeper.services.auth import (
    AuthError,
    AuthService,
    BadRequestError,
    ConflictError,
    InvalidCredentialsError,
    UnauthorizedError,
)
from tokenkeeper.services.passwords import Argon2PasswordHasher, PasswordHasher
from tokenkeeper.services.refresh_tokens import (
    InMemoryRefreshTokenStore,
    RefreshTokenInvalidError,
    RefreshTokenStore,
)
from tokenkeeper.services.token_blacklist import InMemoryTokenBlacklist, RevocationList
from tokenkeeper.services.token_codec import TokenCodec, parse_expires_in
from tokenkeeper.services.token_reaper import TokenReaperService
from tokenkeeper.services.users import InMemoryUserStore, UserStore

__all__ = [
    "ActiveTokenIndex",
    "Argon2PasswordHasher",
    "AuthError",
    "AuthService",
    "BadRequestError",
    "ConflictError",
    "InMemoryActiveTokenIndex",
    "InMemoryRefreshTokenStore",
    "InMemoryTokenBlacklist",
    "InMemoryUserStore",
    "InvalidCredentialsError",
    "PasswordHasher",
    "RefreshTokenInvalidError",
    "RefreshTokenStore",
    "RevocationList",
    "TokenCodec",
    "TokenReaperService",
    "UnauthorizedError",
    "UserStore",
    "parse_expires_in",
]
