"""Token lifecycle records."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class AccessTokenClaims:
    """Claims recovered from a verified access token.

    Never stored; rebuilt from the signed payload on every verification.
    """

    subject: str
    email: str
    username: str
    jti: str
    issued_at: datetime
    expires_at: datetime


@dataclass
class RefreshTokenRecord:
    """One outstanding, single-use refresh token."""

    token: str
    user_id: str
    expires_at: datetime


@dataclass
class RevocationEntry:
    """A blacklisted access token.

    Entries expire together with the token they deny; after ``expires_at``
    the signature check alone rejects the token.
    """

    token: str
    user_id: str
    expires_at: datetime
    reason: str


@dataclass
class BlacklistStats:
    """Blacklist size, overall and per user."""

    total: int
    by_user: dict[str, int] = field(default_factory=dict)
