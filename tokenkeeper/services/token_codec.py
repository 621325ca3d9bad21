"""Signed access-token codec (JWT via PyJWT)."""

import logging
import re
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt

from tokenkeeper.models.token import AccessTokenClaims

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN_SECONDS = 24 * 60 * 60

_DURATION_RE = re.compile(r"^(\d+)([smhd])$")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 60 * 60, "d": 24 * 60 * 60}

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(UTC)


def parse_expires_in(value: str) -> int:
    """Parse a compact duration (``30s``, ``15m``, ``24h``, ``7d``) into seconds.

    Anything that doesn't match ``<int><s|m|h|d>`` falls back to 24 hours.
    """
    match = _DURATION_RE.match(value.strip()) if value else None
    if match is None:
        logger.debug("Unparsable duration %r, using %ss", value, DEFAULT_EXPIRES_IN_SECONDS)
        return DEFAULT_EXPIRES_IN_SECONDS
    amount, unit = match.groups()
    return int(amount) * _UNIT_SECONDS[unit]


class TokenError(Exception):
    """JWT token error."""

    pass


class TokenExpiredError(TokenError):
    """JWT token has expired."""

    pass


class BadSignatureError(TokenError):
    """JWT signature does not match the signing key."""

    pass


class InvalidIssuerOrAudienceError(TokenError):
    """JWT was issued by someone else or for someone else."""

    pass


class MalformedTokenError(TokenError):
    """JWT could not be decoded or is missing required claims."""

    pass


class TokenCodec:
    """Issues and verifies signed access tokens. Holds no token state."""

    def __init__(
        self,
        secret: str,
        *,
        issuer: str,
        audience: str,
        expires_in: str = "24h",
        algorithm: str = "HS256",
        leeway_seconds: int = 0,
        clock: Clock = utc_now,
    ):
        self._secret = secret
        self._issuer = issuer
        self._audience = audience
        self._algorithm = algorithm
        self._leeway = leeway_seconds
        self._clock = clock
        self.expires_in_seconds = parse_expires_in(expires_in)

    def issue(self, *, subject: str, email: str, username: str) -> str:
        """Sign a fresh access token for a user."""
        now = self._clock()
        payload = {
            "iss": self._issuer,
            "aud": self._audience,
            "sub": str(subject),
            "email": email,
            "username": username,
            "jti": uuid4().hex,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(seconds=self.expires_in_seconds)).timestamp()),
            "type": "access",
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return str(token)

    def verify(self, token: str) -> AccessTokenClaims:
        """Check signature, issuer, audience and expiry; return the claims.

        Does not consult the blacklist.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience,
                issuer=self._issuer,
                leeway=self._leeway,
                options={"require": ["exp", "iat", "sub", "jti", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise BadSignatureError("Token signature is invalid") from e
        except (jwt.InvalidIssuerError, jwt.InvalidAudienceError) as e:
            raise InvalidIssuerOrAudienceError("Token issuer or audience is invalid") from e
        except jwt.PyJWTError as e:
            raise MalformedTokenError(f"Invalid token: {e}") from e
        except OverflowError as e:
            raise MalformedTokenError("Invalid token: numeric claim out of range") from e

        if payload.get("type") != "access":
            raise MalformedTokenError("Not an access token")
        return self._claims_from_payload(payload)

    def peek_expiry(self, token: str) -> datetime | None:
        """Read ``exp`` without verifying the signature.

        Returns None when the token can't be decoded or carries no usable expiry.
        """
        try:
            payload = jwt.decode(
                token,
                options={"verify_signature": False, "verify_exp": False},
                algorithms=[self._algorithm],
            )
        except jwt.PyJWTError:
            return None
        exp = payload.get("exp")
        if not isinstance(exp, int | float):
            return None
        try:
            return datetime.fromtimestamp(exp, tz=UTC)
        except (OverflowError, ValueError, OSError):
            # NaN, infinity or beyond the platform time_t range
            return None

    @staticmethod
    def _claims_from_payload(payload: dict[str, Any]) -> AccessTokenClaims:
        try:
            return AccessTokenClaims(
                subject=str(payload["sub"]),
                email=str(payload.get("email", "")),
                username=str(payload.get("username", "")),
                jti=str(payload["jti"]),
                issued_at=datetime.fromtimestamp(payload["iat"], tz=UTC),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=UTC),
            )
        except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
            raise MalformedTokenError(f"Invalid token claims: {e}") from e
