"""Password hashing (Argon2id)."""

from typing import Protocol

from argon2 import PasswordHasher as Argon2Hasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...

    def compare(self, password: str, password_hash: str) -> bool: ...


class Argon2PasswordHasher:
    """Argon2id hasher with recommended parameters.

    Defaults: Memory 64 MiB, Time 3 iterations, Parallelism 4.
    """

    def __init__(
        self,
        *,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ):
        self._ph = Argon2Hasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            hash_len=32,
            salt_len=16,
        )

    def hash(self, password: str) -> str:
        """Hash a password using Argon2id."""
        return self._ph.hash(password)

    def compare(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash using constant-time comparison."""
        try:
            return self._ph.verify(password_hash, password)
        except (VerifyMismatchError, VerificationError, InvalidHashError):
            return False
