"""
Authentication and password recovery use cases.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from typing import Optional

from fotofocus.core.config import Settings
from fotofocus.core.errors import (
    DeliveryFailed,
    InvalidCredentials,
    InvalidOrExpiredToken,
    ValidationError,
    WeakPassword,
)
from fotofocus.core.mailer import Mailer
from fotofocus.core.security import (
    generate_reset_token,
    hash_password,
    password_needs_rehash,
    sha256_hex,
    verify_password,
)
from fotofocus.core.utils import as_utc, utcnow
from fotofocus.repositories.account_repository import AccountRepository
from fotofocus.services.token_service import TokenService

logger = logging.getLogger(__name__)

RESET_GENERIC_MESSAGE = "If the email exists, we sent a reset instruction."
RESET_DEV_MESSAGE = "Reset token created (DEV)."


@dataclass
class LoginSuccess:
    token: str
    user: dict


@dataclass
class ResetRequestResult:
    message: str
    token: Optional[str] = None

    def as_dict(self) -> dict:
        payload = {"message": self.message}
        if self.token:
            payload["token"] = self.token
        return payload


class AuthService:
    """Handles login and password reset flows."""

    def __init__(self, repository: AccountRepository, tokens: TokenService, mailer: Mailer, settings: Settings) -> None:
        self.repository = repository
        self.tokens = tokens
        self.mailer = mailer
        self.settings = settings

    def _now(self) -> datetime:
        return utcnow()

    # -------------------------------------- login --------------------------------------
    def login(self, email: str, password: str) -> LoginSuccess:
        raw_email = (email or "").strip().lower()
        if not raw_email or not password:
            raise ValidationError("email and password required")
        user = self.repository.get_user_by_email(raw_email)
        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        if password_needs_rehash(user.password_hash):
            self.repository.update_user_password(user.id, hash_password(password))
        token = self.tokens.issue(user.id, user.email)
        return LoginSuccess(token=token, user={"id": user.id, "email": user.email})

    # -------------------------------------- password reset --------------------------------------
    def request_password_reset(self, email: str) -> ResetRequestResult:
        raw = (email or "").strip().lower()
        if not raw:
            raise ValidationError("email required")
        generic = ResetRequestResult(message=RESET_GENERIC_MESSAGE)
        user = self.repository.get_user_by_email(raw)
        if not user:
            return generic

        token = generate_reset_token()
        expires_at = self._now() + timedelta(seconds=self.settings.password_reset_ttl_seconds)
        self.repository.replace_reset_token(user.id, sha256_hex(token), expires_at)
        logger.info("Password reset issued for user %s", user.id)
        try:
            self.mailer.send_password_reset(user.email, token)
        except DeliveryFailed:
            logger.error("Password reset delivery failed for user %s", user.id)

        if self.settings.is_production:
            return generic
        return ResetRequestResult(message=RESET_DEV_MESSAGE, token=token)

    def reset_password(self, token: str, new_password: str) -> None:
        token_value = (token or "").strip()
        if not token_value or not new_password:
            raise ValidationError("token and newPassword required")
        if len(new_password) < self.settings.min_password_length:
            raise WeakPassword(f"Password must be at least {self.settings.min_password_length} characters")
        token_hash = sha256_hex(token_value)
        record = self.repository.get_reset_token(token_hash)
        if not record:
            raise InvalidOrExpiredToken()
        if as_utc(record.expires_at) < self._now():
            self.repository.delete_reset_token(token_hash)
            raise InvalidOrExpiredToken()
        if not self.repository.consume_reset_token(token_hash, hash_password(new_password)):
            raise InvalidOrExpiredToken()
        logger.info("Password reset completed for user %s", record.user_id)
