"""
Two-phase signup: a pending registration holds a hashed 6-digit code until the
caller proves ownership of the email address.

Per email the ledger moves NONE -> PENDING -> NONE, where leaving PENDING
means the user was created, the code expired, or a fresh request replaced it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
import logging

from sqlalchemy.exc import IntegrityError

from fotofocus.core.config import Settings
from fotofocus.core.errors import (
    AlreadyRegistered,
    DeliveryFailed,
    Expired,
    InvalidCode,
    NotFound,
    Throttled,
    TooManyAttempts,
    ValidationError,
    WeakPassword,
)
from fotofocus.core.mailer import Mailer
from fotofocus.core.security import digests_match, generate_code, hash_password, sha256_hex
from fotofocus.core.utils import as_utc, utcnow
from fotofocus.domain.serializers import public_user
from fotofocus.domain.validation import normalize_email
from fotofocus.repositories.account_repository import AccountRepository
from fotofocus.services.token_service import TokenService

logger = logging.getLogger(__name__)


@dataclass
class VerifiedRegistration:
    token: str
    user: dict


class RegistrationService:
    """Pending-registration ledger."""

    def __init__(self, repository: AccountRepository, tokens: TokenService, mailer: Mailer, settings: Settings) -> None:
        self.repository = repository
        self.tokens = tokens
        self.mailer = mailer
        self.settings = settings

    def _now(self) -> datetime:
        return utcnow()

    def request(self, email: str, password: str, confirm_password: str | None = None) -> None:
        email = normalize_email(email)
        if not password:
            raise ValidationError("email and password required")
        if confirm_password is not None and confirm_password != password:
            raise ValidationError("Passwords do not match")
        if len(password) < self.settings.min_password_length:
            raise WeakPassword(f"Password must be at least {self.settings.min_password_length} characters")
        if self.repository.user_exists(email):
            raise AlreadyRegistered()

        now = self._now()
        pending = self.repository.get_pending(email)
        if pending:
            elapsed = now - as_utc(pending.last_sent_at)
            if elapsed < timedelta(seconds=self.settings.registration_resend_seconds):
                raise Throttled("Please wait before requesting another code.")

        code = generate_code()
        self.repository.save_pending(
            email,
            password_hash=hash_password(password),
            code_hash=sha256_hex(code),
            expires_at=now + timedelta(seconds=self.settings.registration_code_ttl_seconds),
            sent_at=now,
        )
        try:
            self.mailer.send_verification_code(email, code)
        except DeliveryFailed:
            # No code reached the caller, so the entry must not throttle a retry.
            self.repository.delete_pending(email)
            raise
        logger.info("Registration code issued for %s", email)

    def verify(self, email: str, code: str) -> VerifiedRegistration:
        email = normalize_email(email)
        code_value = str(code or "").strip()
        if not code_value:
            raise ValidationError("email and code required")

        pending = self.repository.get_pending(email)
        if not pending:
            raise NotFound("No pending registration for this email.")
        if as_utc(pending.expires_at) < self._now():
            self.repository.delete_pending(email)
            raise Expired()
        # The attempt is spent before the compare so parallel guesses cannot overrun the cap.
        if not self.repository.claim_pending_attempt(email, self.settings.registration_max_attempts):
            raise TooManyAttempts()
        if not digests_match(sha256_hex(code_value), pending.code_hash):
            raise InvalidCode()

        try:
            user = self.repository.promote_pending(email)
        except IntegrityError as exc:
            raise AlreadyRegistered() from exc
        if user is None:
            raise NotFound("No pending registration for this email.")
        logger.info("Registration verified for user %s", user.id)
        return VerifiedRegistration(token=self.tokens.issue(user.id, user.email), user=public_user(user))
