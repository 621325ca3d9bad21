"""Per-user index of live access tokens."""

import threading
from datetime import datetime
from typing import Protocol

from tokenkeeper.services.token_codec import Clock, utc_now


class ActiveTokenIndex(Protocol):
    def track(self, user_id: str, token: str, expires_at: datetime | None = None) -> None: ...

    def untrack(self, user_id: str, token: str) -> None: ...

    def is_active(self, user_id: str, token: str) -> bool: ...

    def clear(self, user_id: str) -> set[str]: ...

    def sweep_expired(self) -> int: ...


class InMemoryActiveTokenIndex:
    """user_id -> {token: expires_at}.

    Advisory allow-list checked alongside the blacklist. Users with no
    tracked tokens have no entry at all.
    """

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._tokens: dict[str, dict[str, datetime | None]] = {}
        self._lock = threading.Lock()

    def track(self, user_id: str, token: str, expires_at: datetime | None = None) -> None:
        with self._lock:
            self._tokens.setdefault(user_id, {})[token] = expires_at

    def untrack(self, user_id: str, token: str) -> None:
        with self._lock:
            tokens = self._tokens.get(user_id)
            if tokens is None:
                return
            tokens.pop(token, None)
            if not tokens:
                del self._tokens[user_id]

    def is_active(self, user_id: str, token: str) -> bool:
        with self._lock:
            return token in self._tokens.get(user_id, {})

    def clear(self, user_id: str) -> set[str]:
        """Remove and return every token tracked for the user."""
        with self._lock:
            tokens = self._tokens.pop(user_id, {})
        return set(tokens)

    def sweep_expired(self) -> int:
        """Drop tokens past their recorded expiry. Returns count removed."""
        now = self._clock()
        removed = 0
        with self._lock:
            for user_id in list(self._tokens):
                tokens = self._tokens[user_id]
                expired = [t for t, exp in tokens.items() if exp is not None and exp < now]
                for token in expired:
                    del tokens[token]
                removed += len(expired)
                if not tokens:
                    del self._tokens[user_id]
        return removed
