"""TokenKeeper configuration loaded from environment variables."""

import secrets
from functools import cached_property, lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ALLOWED_JWT_ALGORITHMS = {"HS256", "HS384", "HS512"}
_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

MIN_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings.

    Duration fields (``jwt_expires_in``, ``refresh_token_expires_in``) use the
    compact ``<int><s|m|h|d>`` grammar; unparsable values fall back to 24h.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "TokenKeeper"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Signing
    jwt_secret_key: str = ""
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "tokenkeeper"
    jwt_audience: str = "tokenkeeper-api"
    jwt_expires_in: str = "24h"
    refresh_token_expires_in: str = "7d"
    jwt_leeway_seconds: int = Field(default=0, ge=0)

    # Session policy
    single_device_login: bool = False
    revoke_sessions_on_password_change: bool = False

    # Background cleanup
    token_cleanup_interval_seconds: int = Field(default=3600, ge=1)

    # Argon2id parameters (64 MiB, 3 iterations, 4 lanes)
    password_hash_time_cost: int = Field(default=3, ge=1)
    password_hash_memory_cost: int = Field(default=65536, ge=1024)
    password_hash_parallelism: int = Field(default=4, ge=1)

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def validate_jwt_secret_key(cls, v: str | None) -> str:
        if v is None:
            return ""
        v = str(v).strip()
        if v and len(v) < MIN_SECRET_LENGTH:
            raise ValueError(f"JWT_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters")
        return v

    @field_validator("jwt_algorithm")
    @classmethod
    def validate_jwt_algorithm(cls, v: str) -> str:
        v = v.upper()
        if v not in _ALLOWED_JWT_ALGORITHMS:
            raise ValueError(
                f"JWT_ALGORITHM must be one of {', '.join(sorted(_ALLOWED_JWT_ALGORITHMS))}"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        v = v.upper()
        if v not in _ALLOWED_LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(_ALLOWED_LOG_LEVELS))}")
        return v

    @cached_property
    def effective_jwt_secret_key(self) -> str:
        """Signing secret, or a random per-process one if none is configured.

        A generated secret means every token becomes unverifiable on restart.
        """
        return self.jwt_secret_key or secrets.token_urlsafe(48)

    def check_security_configuration(self) -> list[str]:
        """Return warnings for insecure but accepted settings."""
        warnings: list[str] = []
        if not self.jwt_secret_key:
            warnings.append(
                "JWT_SECRET_KEY is not set; using a random per-process secret. "
                "Issued tokens will not survive a restart."
            )
        if self.debug:
            warnings.append("DEBUG is enabled; OpenAPI docs are exposed.")
        if self.jwt_leeway_seconds > 300:
            warnings.append(
                f"JWT_LEEWAY_SECONDS={self.jwt_leeway_seconds} extends token lifetime "
                "by more than five minutes."
            )
        return warnings


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
