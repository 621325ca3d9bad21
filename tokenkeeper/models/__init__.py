"""Data models for TokenKeeper."""

from tokenkeeper.models.token import (
    AccessTokenClaims,
    BlacklistStats,
    RefreshTokenRecord,
    RevocationEntry,
)
from tokenkeeper.models.user import User

__all__ = [
    "AccessTokenClaims",
    "BlacklistStats",
    "RefreshTokenRecord",
    "RevocationEntry",
    "User",
]
