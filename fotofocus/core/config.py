"""
Configuration helpers for the FotoFocus backend.

Every tunable (database URL, token signing key, registration/reset windows,
SMTP, upload directory) is read once from the environment into a frozen
Settings instance so routers/services never fetch os.environ directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
import os
import warnings

_DEV_JWT_SECRET = "dev-secret-change-me"


@dataclass(frozen=True)
class Settings:
    """Typed view of environment variables."""

    app_env: str
    database_url: str
    jwt_secret: str
    token_ttl_seconds: int
    registration_code_ttl_seconds: int
    registration_resend_seconds: int
    registration_max_attempts: int
    password_reset_ttl_seconds: int
    min_password_length: int
    smtp_host: str
    smtp_port: int
    smtp_user: str
    smtp_password: str
    smtp_from: str
    uploads_dir: str
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"


@lru_cache
def get_settings() -> Settings:
    """Read the current environment and build a Settings instance."""
    def _int(value: str | None, default: int) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _list(value: str | None) -> tuple[str, ...]:
        if not value:
            return ()
        return tuple(item.strip() for item in value.split(",") if item.strip())

    app_env = (os.getenv("APP_ENV") or "dev").strip().lower()
    jwt_secret = os.getenv("JWT_SECRET", "").strip()
    if not jwt_secret:
        if app_env == "prod":
            raise RuntimeError("JWT_SECRET must be configured in production.")
        jwt_secret = _DEV_JWT_SECRET
        warnings.warn(
            "JWT_SECRET is not set. Using insecure development fallback key.",
            RuntimeWarning,
            stacklevel=2,
        )

    return Settings(
        app_env=app_env,
        database_url=os.getenv("DATABASE_URL", "sqlite:///./fotofocus.db").strip(),
        jwt_secret=jwt_secret,
        token_ttl_seconds=_int(os.getenv("TOKEN_TTL_SECONDS"), 7 * 24 * 60 * 60),
        registration_code_ttl_seconds=_int(os.getenv("REGISTRATION_CODE_TTL_SECONDS"), 600),
        registration_resend_seconds=_int(os.getenv("REGISTRATION_RESEND_SECONDS"), 60),
        registration_max_attempts=_int(os.getenv("REGISTRATION_MAX_ATTEMPTS"), 5),
        password_reset_ttl_seconds=_int(os.getenv("PASSWORD_RESET_TTL_SECONDS"), 900),
        min_password_length=_int(os.getenv("MIN_PASSWORD_LENGTH"), 6),
        smtp_host=os.getenv("SMTP_HOST", "").strip(),
        smtp_port=_int(os.getenv("SMTP_PORT"), 587),
        smtp_user=os.getenv("SMTP_USER", "").strip(),
        smtp_password=os.getenv("SMTP_PASSWORD", ""),
        smtp_from=os.getenv("SMTP_FROM", os.getenv("SMTP_USER", "")).strip(),
        uploads_dir=os.getenv("UPLOADS_DIR", os.path.join(os.getcwd(), "uploads")),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        cors_origins=_list(os.getenv("CORS_ORIGINS")),
    )
