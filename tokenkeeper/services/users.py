"""User lookup and persistence."""

import asyncio
import logging
from dataclasses import replace
from typing import Protocol
from uuid import uuid4

from tokenkeeper.models.user import User

logger = logging.getLogger(__name__)


class DuplicateUserError(Exception):
    """Email or username is already registered."""

    pass


class UserStore(Protocol):
    async def find_by_id(self, user_id: str) -> User | None: ...

    async def find_by_email(self, email: str) -> User | None: ...

    async def create(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        nickname: str | None = None,
    ) -> User: ...

    async def update_password_hash(self, user_id: str, password_hash: str) -> None: ...


class InMemoryUserStore:
    """Dict-backed UserStore for single-instance deployments and tests.

    Emails are matched case-insensitively. Returned users are copies, so
    callers can't mutate stored state by accident.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._lock = asyncio.Lock()

    async def find_by_id(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return replace(user) if user else None

    async def find_by_email(self, email: str) -> User | None:
        needle = email.strip().lower()
        for user in self._users.values():
            if user.email.lower() == needle:
                return replace(user)
        return None

    async def create(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        nickname: str | None = None,
    ) -> User:
        async with self._lock:
            for existing in self._users.values():
                if existing.email.lower() == email.strip().lower():
                    raise DuplicateUserError("Email already registered")
                if existing.username.lower() == username.lower():
                    raise DuplicateUserError("Username already registered")

            user = User(
                id=uuid4().hex,
                username=username,
                email=email.strip(),
                password_hash=password_hash,
                nickname=nickname,
            )
            self._users[user.id] = user
        logger.debug("User created", extra={"user_id": user.id})
        return replace(user)

    async def update_password_hash(self, user_id: str, password_hash: str) -> None:
        async with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise KeyError(user_id)
            user.password_hash = password_hash

    async def set_active(self, user_id: str, is_active: bool) -> None:
        """Enable or disable an account."""
        async with self._lock:
            user = self._users.get(user_id)
            if user is None:
                raise KeyError(user_id)
            user.is_active = is_active
