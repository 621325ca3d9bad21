"""User record as seen by the authentication service."""

from dataclasses import dataclass, field
from datetime import UTC, datetime


@dataclass
class User:
    """An account that can authenticate.

    Only the fields the token lifecycle needs; profile data beyond
    nickname belongs to whatever backs the UserStore.
    """

    id: str
    username: str
    email: str
    password_hash: str
    is_active: bool = True
    nickname: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
