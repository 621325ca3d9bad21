"""Single-use refresh tokens with rotation."""

import logging
import secrets
import threading
from datetime import timedelta
from typing import Protocol

from tokenkeeper.models.token import RefreshTokenRecord
from tokenkeeper.services.token_codec import Clock, utc_now

logger = logging.getLogger(__name__)

# 32 random bytes, hex encoded (256 bits of entropy)
REFRESH_TOKEN_BYTES = 32


class RefreshTokenInvalidError(Exception):
    """Refresh token is unknown, already used, or expired."""

    pass


class RefreshTokenStore(Protocol):
    def issue(self, user_id: str) -> str: ...

    def consume(self, token: str) -> str: ...

    def revoke_all_for_user(self, user_id: str) -> int: ...

    def sweep_expired(self) -> int: ...


class InMemoryRefreshTokenStore:
    """Process-local refresh token store.

    Designed for single-instance deployments; state is lost on restart.
    """

    def __init__(self, ttl_seconds: int, *, clock: Clock = utc_now) -> None:
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock
        self._records: dict[str, RefreshTokenRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def issue(self, user_id: str) -> str:
        """Create and store a new refresh token for a user."""
        token = secrets.token_hex(REFRESH_TOKEN_BYTES)
        record = RefreshTokenRecord(
            token=token,
            user_id=user_id,
            expires_at=self._clock() + self._ttl,
        )
        with self._lock:
            self._records[token] = record
        return token

    def consume(self, token: str) -> str:
        """Delete the token and return its user id.

        The lookup and delete happen under one lock acquisition, so a token
        can be consumed at most once. Expired records are dropped on the way.
        """
        with self._lock:
            record = self._records.pop(token, None)
        if record is None:
            raise RefreshTokenInvalidError("Refresh token is invalid or expired")
        if record.expires_at < self._clock():
            logger.debug("Discarded expired refresh token", extra={"user_id": record.user_id})
            raise RefreshTokenInvalidError("Refresh token is invalid or expired")
        return record.user_id

    def revoke_all_for_user(self, user_id: str) -> int:
        """Delete every refresh token belonging to a user. Returns count removed."""
        with self._lock:
            doomed = [t for t, r in self._records.items() if r.user_id == user_id]
            for token in doomed:
                del self._records[token]
        return len(doomed)

    def sweep_expired(self) -> int:
        """Delete every expired record. Returns count removed."""
        now = self._clock()
        with self._lock:
            expired = [t for t, r in self._records.items() if r.expires_at < now]
            for token in expired:
                del self._records[token]
        return len(expired)
