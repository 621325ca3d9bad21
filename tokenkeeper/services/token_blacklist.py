"""Revoked access tokens (blacklist).

Access tokens are self-contained, so the only way to stop one before its
``exp`` is to deny it explicitly. Each entry copies the token's own expiry
and can be dropped once that passes.
"""

import logging
import threading
from collections import Counter
from typing import Protocol

from tokenkeeper.models.token import BlacklistStats, RevocationEntry
from tokenkeeper.services.active_tokens import ActiveTokenIndex
from tokenkeeper.services.token_codec import Clock, TokenCodec, utc_now

logger = logging.getLogger(__name__)

DEFAULT_REVOCATION_REASON = "User logged out"


class RevocationList(Protocol):
    def add(self, token: str, user_id: str, reason: str = DEFAULT_REVOCATION_REASON) -> bool: ...

    def is_revoked(self, token: str) -> bool: ...

    def revoke_all_for_user(
        self, user_id: str, active_tokens: ActiveTokenIndex, reason: str
    ) -> int: ...

    def sweep_expired(self) -> int: ...

    def get_stats(self) -> BlacklistStats: ...


class InMemoryTokenBlacklist:
    """Process-local blacklist keyed by the full access-token string."""

    def __init__(self, codec: TokenCodec, *, clock: Clock = utc_now) -> None:
        self._codec = codec
        self._clock = clock
        self._entries: dict[str, RevocationEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def add(self, token: str, user_id: str, reason: str = DEFAULT_REVOCATION_REASON) -> bool:
        """Blacklist a token until its own expiry.

        Best effort: a token without a readable ``exp`` is logged and
        skipped, since it can't pass verification anyway. Returns whether
        an entry was stored.
        """
        expires_at = self._codec.peek_expiry(token)
        if expires_at is None:
            logger.warning(
                "Unreadable token expiry, not blacklisted",
                extra={"user_id": user_id, "reason": reason},
            )
            return False

        entry = RevocationEntry(token=token, user_id=user_id, expires_at=expires_at, reason=reason)
        with self._lock:
            self._entries[token] = entry
        logger.info("Token blacklisted", extra={"user_id": user_id, "reason": reason})
        return True

    def is_revoked(self, token: str) -> bool:
        """True while an unexpired entry exists; expired entries are dropped on read."""
        with self._lock:
            entry = self._entries.get(token)
            if entry is None:
                return False
            if entry.expires_at < self._clock():
                del self._entries[token]
                return False
            return True

    def revoke_all_for_user(
        self, user_id: str, active_tokens: ActiveTokenIndex, reason: str
    ) -> int:
        """Blacklist every token the index still tracks for the user.

        Tokens the index never saw are not (and cannot be) enumerated.
        Returns the number of entries stored.
        """
        drained = active_tokens.clear(user_id)
        revoked = sum(1 for token in drained if self.add(token, user_id, reason))
        if drained:
            logger.info(
                "Active tokens revoked",
                extra={"user_id": user_id, "revoked": revoked, "tracked": len(drained)},
            )
        return revoked

    def sweep_expired(self) -> int:
        """Delete every expired entry. Returns count removed."""
        now = self._clock()
        with self._lock:
            expired = [t for t, e in self._entries.items() if e.expires_at < now]
            for token in expired:
                del self._entries[token]
        return len(expired)

    def get_stats(self) -> BlacklistStats:
        with self._lock:
            by_user = Counter(e.user_id for e in self._entries.values())
            return BlacklistStats(total=len(self._entries), by_user=dict(by_user))
