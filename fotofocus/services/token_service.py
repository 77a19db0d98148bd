"""Bearer session tokens (issue and verify)."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

import jwt

from fotofocus.core.errors import InvalidToken
from fotofocus.core.utils import utcnow

_ALGORITHM = "HS256"


@dataclass(frozen=True)
class Identity:
    """Verified caller extracted from a bearer token."""

    user_id: int
    email: str


class TokenService:
    """Signs time-boxed bearer tokens binding a user id and email."""

    def __init__(self, secret: str, ttl_seconds: int = 7 * 24 * 60 * 60) -> None:
        if not secret:
            raise RuntimeError("A signing secret is required for bearer tokens.")
        self._secret = secret
        self.ttl_seconds = max(60, ttl_seconds)

    def issue(self, user_id: int, email: str) -> str:
        now = utcnow()
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + timedelta(seconds=self.ttl_seconds),
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def verify(self, token: str | None) -> Identity:
        if not token:
            raise InvalidToken()
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                options={"require": ["sub", "exp"]},
            )
        except jwt.PyJWTError as exc:
            raise InvalidToken() from exc
        try:
            user_id = int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidToken() from exc
        email = payload.get("email")
        if user_id <= 0 or not isinstance(email, str):
            raise InvalidToken()
        return Identity(user_id=user_id, email=email)
