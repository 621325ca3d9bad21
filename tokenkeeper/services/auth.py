"""Authentication service: register, login, refresh, logout and revocation."""

import logging
from typing import Any

from tokenkeeper.core.config import Settings
from tokenkeeper.models.token import BlacklistStats
from tokenkeeper.models.user import User
from tokenkeeper.services.active_tokens import ActiveTokenIndex, InMemoryActiveTokenIndex
from tokenkeeper.services.passwords import Argon2PasswordHasher, PasswordHasher
from tokenkeeper.services.refresh_tokens import (
    InMemoryRefreshTokenStore,
    RefreshTokenInvalidError,
    RefreshTokenStore,
)
from tokenkeeper.services.token_blacklist import InMemoryTokenBlacklist, RevocationList
from tokenkeeper.services.token_codec import (
    TokenCodec,
    TokenError,
    TokenExpiredError,
    parse_expires_in,
)
from tokenkeeper.services.users import DuplicateUserError, InMemoryUserStore, UserStore

logger = logging.getLogger(__name__)

TOKEN_TYPE = "Bearer"

REASON_LOGOUT = "User logged out"
REASON_NEW_LOGIN = "New login from another device"
REASON_FORCED_LOGOUT = "Admin forced logout"
REASON_PASSWORD_CHANGED = "Password changed"

_INVALID_CREDENTIALS = "Invalid email or password"


class AuthError(Exception):
    """Base authentication error."""

    pass


class InvalidCredentialsError(AuthError):
    """Invalid email or password.

    Subclasses record why, for logging only; all share the same message so
    responses can't be used to enumerate accounts.
    """

    def __init__(self, message: str = _INVALID_CREDENTIALS):
        super().__init__(message)


class UserNotFoundError(InvalidCredentialsError):
    """No account with that email."""

    pass


class UserInactiveError(InvalidCredentialsError):
    """User account is deactivated."""

    pass


class IncorrectPasswordError(InvalidCredentialsError):
    """Password does not match."""

    pass


class UnauthorizedError(AuthError):
    """Token or refresh token is expired, invalid, revoked or inactive."""

    pass


class BadRequestError(AuthError):
    """Request is well-formed but not acceptable."""

    pass


class ConflictError(AuthError):
    """Resource already exists."""

    pass


class AuthService:
    """Token lifecycle orchestration.

    The only component callers use. Owns the refresh-token store, the
    blacklist and the active-token index; the reaper only deletes expired
    rows from them.
    """

    def __init__(
        self,
        *,
        users: UserStore,
        password_hasher: PasswordHasher,
        codec: TokenCodec,
        refresh_tokens: RefreshTokenStore,
        blacklist: RevocationList,
        active_tokens: ActiveTokenIndex,
        single_device_login: bool = False,
        revoke_sessions_on_password_change: bool = False,
    ):
        self.users = users
        self.password_hasher = password_hasher
        self.codec = codec
        self.refresh_tokens = refresh_tokens
        self.blacklist = blacklist
        self.active_tokens = active_tokens
        self.single_device_login = single_device_login
        self.revoke_sessions_on_password_change = revoke_sessions_on_password_change
        # Verified against when the email is unknown, to keep timing uniform
        self._dummy_hash = password_hasher.hash("dummy-password-for-timing")

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        users: UserStore | None = None,
        password_hasher: PasswordHasher | None = None,
    ) -> "AuthService":
        """Build a service with in-memory stores configured from settings."""
        codec = TokenCodec(
            settings.effective_jwt_secret_key,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            expires_in=settings.jwt_expires_in,
            algorithm=settings.jwt_algorithm,
            leeway_seconds=settings.jwt_leeway_seconds,
        )
        if password_hasher is None:
            password_hasher = Argon2PasswordHasher(
                time_cost=settings.password_hash_time_cost,
                memory_cost=settings.password_hash_memory_cost,
                parallelism=settings.password_hash_parallelism,
            )
        return cls(
            users=users if users is not None else InMemoryUserStore(),
            password_hasher=password_hasher,
            codec=codec,
            refresh_tokens=InMemoryRefreshTokenStore(
                parse_expires_in(settings.refresh_token_expires_in)
            ),
            blacklist=InMemoryTokenBlacklist(codec),
            active_tokens=InMemoryActiveTokenIndex(),
            single_device_login=settings.single_device_login,
            revoke_sessions_on_password_change=settings.revoke_sessions_on_password_change,
        )

    # --- Public operations ---

    async def register(
        self,
        *,
        username: str,
        email: str,
        password: str,
        nickname: str | None = None,
    ) -> dict[str, Any]:
        """Create an account and return its first token bundle."""
        try:
            user = await self.users.create(
                username=username,
                email=email,
                password_hash=self.password_hasher.hash(password),
                nickname=nickname,
            )
        except DuplicateUserError as e:
            raise ConflictError(str(e)) from e

        logger.info("User registered", extra={"user_id": user.id})
        return self._issue_tokens(user)

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials and return the user.

        Raises a subclass of InvalidCredentialsError; callers should not
        expose which one.
        """
        user = await self.users.find_by_email(email)

        if user is None:
            self.password_hasher.compare(password, self._dummy_hash)
            raise UserNotFoundError()

        if not user.is_active:
            raise UserInactiveError()

        if not self.password_hasher.compare(password, user.password_hash):
            raise IncorrectPasswordError()

        return user

    async def login(self, email: str, password: str) -> dict[str, Any]:
        """Authenticate and issue a new token bundle.

        With single-device login on, every existing session is revoked
        before the new tokens are issued.
        """
        try:
            user = await self.authenticate(email, password)
        except InvalidCredentialsError as e:
            logger.warning("Login failed", extra={"failure": type(e).__name__})
            raise

        if self.single_device_login:
            self._revoke_all_sessions(user.id, REASON_NEW_LOGIN)

        logger.info("User logged in", extra={"user_id": user.id})
        return self._issue_tokens(user)

    async def refresh_access_token(self, refresh_token: str) -> dict[str, Any]:
        """Exchange a refresh token for a new bundle (rotation)."""
        try:
            user_id = self.refresh_tokens.consume(refresh_token)
        except RefreshTokenInvalidError as e:
            raise UnauthorizedError("Refresh token is invalid or expired") from e

        user = await self.users.find_by_id(user_id)
        if user is None or not user.is_active:
            logger.warning("Refresh rejected for missing or disabled user", extra={"user_id": user_id})
            raise UnauthorizedError("User does not exist or is disabled")

        return self._issue_tokens(user)

    async def change_password(
        self,
        user_id: str,
        current_password: str,
        new_password: str,
        confirm_password: str,
    ) -> dict[str, str]:
        if new_password != confirm_password:
            raise BadRequestError("New password does not match confirm password")
        if new_password == current_password:
            raise BadRequestError("New password cannot be the same as the current password")

        user = await self.users.find_by_id(user_id)
        if user is None:
            raise UnauthorizedError("User does not exist or is disabled")
        if not self.password_hasher.compare(current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")

        await self.users.update_password_hash(user.id, self.password_hasher.hash(new_password))
        logger.info("Password changed", extra={"user_id": user.id})

        if self.revoke_sessions_on_password_change:
            self._revoke_all_sessions(user.id, REASON_PASSWORD_CHANGED)

        return {"message": "Password changed successfully"}

    async def logout(self, token: str, user_id: str) -> dict[str, str]:
        """Revoke one access token and the user's refresh chain."""
        self.blacklist.add(token, user_id, REASON_LOGOUT)
        self.active_tokens.untrack(user_id, token)
        self.refresh_tokens.revoke_all_for_user(user_id)
        logger.info("User logged out", extra={"user_id": user_id})
        return {"message": "Logout successful"}

    async def force_logout_user(
        self, user_id: str, reason: str = REASON_FORCED_LOGOUT
    ) -> dict[str, str]:
        """Revoke every tracked session of a user (admin action)."""
        revoked = self._revoke_all_sessions(user_id, reason)
        logger.info(
            "Forced logout", extra={"user_id": user_id, "revoked": revoked, "reason": reason}
        )
        return {"message": "User has been forced offline"}

    def is_token_active(self, user_id: str, token: str) -> bool:
        return self.active_tokens.is_active(user_id, token)

    async def authenticate_token(self, token: str) -> User:
        """Resolve a bearer token to its user, or raise UnauthorizedError.

        Signature and expiry first, then the blacklist, then the active
        index, then the user record. Any codec failure rejects the token.
        """
        try:
            claims = self.codec.verify(token)
        except TokenExpiredError as e:
            raise UnauthorizedError("Token has expired") from e
        except TokenError as e:
            raise UnauthorizedError("Invalid token") from e

        if self.blacklist.is_revoked(token):
            logger.warning("Revoked token presented", extra={"user_id": claims.subject})
            raise UnauthorizedError("Token has been revoked")

        if not self.active_tokens.is_active(claims.subject, token):
            logger.warning("Inactive token presented", extra={"user_id": claims.subject})
            raise UnauthorizedError("Token is no longer active")

        user = await self.users.find_by_id(claims.subject)
        if user is None or not user.is_active:
            raise UnauthorizedError("User does not exist or is disabled")
        return user

    def get_blacklist_stats(self) -> BlacklistStats:
        return self.blacklist.get_stats()

    # --- Internals ---

    def _issue_tokens(self, user: User) -> dict[str, Any]:
        """Create access and refresh tokens for a user."""
        access_token = self.codec.issue(subject=user.id, email=user.email, username=user.username)
        self.active_tokens.track(user.id, access_token, self.codec.peek_expiry(access_token))
        return {
            "access_token": access_token,
            "refresh_token": self.refresh_tokens.issue(user.id),
            "token_type": TOKEN_TYPE,
            "expires_in": self.codec.expires_in_seconds,
        }

    def _revoke_all_sessions(self, user_id: str, reason: str) -> int:
        """Blacklist every tracked access token and drop every refresh token."""
        revoked = self.blacklist.revoke_all_for_user(user_id, self.active_tokens, reason)
        self.refresh_tokens.revoke_all_for_user(user_id)
        return revoked
