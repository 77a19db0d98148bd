"""Users, pending registrations and password reset tokens."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select, update

from fotofocus.db.models import PasswordResetToken, PendingRegistration, User
from fotofocus.db.session import Database


class AccountRepository:
    """CRUD helpers for identity tables."""

    def __init__(self, database: Database) -> None:
        self.database = database

    # -------------------------- users --------------------------
    def get_user(self, user_id: int) -> Optional[User]:
        with self.database.session() as session:
            return session.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self.database.session() as session:
            stmt = select(User).where(User.email == email)
            return session.execute(stmt).scalar_one_or_none()

    def user_exists(self, email: str) -> bool:
        with self.database.session() as session:
            stmt = select(User.id).where(User.email == email).limit(1)
            return session.execute(stmt).first() is not None

    def update_user_password(self, user_id: int, password_hash: str) -> None:
        with self.database.session() as session:
            session.execute(update(User).where(User.id == user_id).values(password_hash=password_hash))
            session.commit()

    def update_user_name(self, user_id: int, name: str | None) -> Optional[User]:
        with self.database.session() as session:
            user = session.get(User, user_id)
            if not user:
                return None
            user.name = name
            session.commit()
            return user

    def set_user_avatar(self, user_id: int, avatar_url: str) -> tuple[Optional[User], Optional[str]]:
        """Store the new avatar and return (user, previous avatar reference)."""
        with self.database.session() as session:
            user = session.get(User, user_id)
            if not user:
                return None, None
            previous = user.avatar_url
            user.avatar_url = avatar_url
            session.commit()
            return user, previous

    # -------------------------- pending registrations --------------------------
    def get_pending(self, email: str) -> Optional[PendingRegistration]:
        with self.database.session() as session:
            return session.get(PendingRegistration, email)

    def save_pending(
        self,
        email: str,
        *,
        password_hash: str,
        code_hash: str,
        expires_at: datetime,
        sent_at: datetime,
    ) -> None:
        entity = PendingRegistration(
            email=email,
            password_hash=password_hash,
            code_hash=code_hash,
            expires_at=expires_at,
            attempts=0,
            last_sent_at=sent_at,
        )
        with self.database.session() as session:
            session.merge(entity)
            session.commit()

    def delete_pending(self, email: str) -> None:
        with self.database.session() as session:
            session.execute(delete(PendingRegistration).where(PendingRegistration.email == email))
            session.commit()

    def claim_pending_attempt(self, email: str, max_attempts: int) -> bool:
        """Spend one verification attempt; False once ``max_attempts`` are used up."""
        with self.database.session() as session:
            stmt = (
                update(PendingRegistration)
                .where(PendingRegistration.email == email, PendingRegistration.attempts < max_attempts)
                .values(attempts=PendingRegistration.attempts + 1)
            )
            claimed = session.execute(stmt).rowcount == 1
            session.commit()
            return claimed

    def promote_pending(self, email: str) -> Optional[User]:
        """Create the user from a pending registration and drop the pending row atomically."""
        with self.database.transaction() as session:
            pending = session.get(PendingRegistration, email)
            if not pending:
                return None
            user = User(email=email, password_hash=pending.password_hash)
            session.add(user)
            session.delete(pending)
            session.flush()
            return user

    # -------------------------- password reset tokens --------------------------
    def replace_reset_token(self, user_id: int, token_hash: str, expires_at: datetime) -> None:
        with self.database.transaction() as session:
            session.execute(delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id))
            session.add(PasswordResetToken(token_hash=token_hash, user_id=user_id, expires_at=expires_at))

    def get_reset_token(self, token_hash: str) -> Optional[PasswordResetToken]:
        with self.database.session() as session:
            return session.get(PasswordResetToken, token_hash)

    def delete_reset_token(self, token_hash: str) -> None:
        with self.database.session() as session:
            session.execute(delete(PasswordResetToken).where(PasswordResetToken.token_hash == token_hash))
            session.commit()

    def consume_reset_token(self, token_hash: str, password_hash: str) -> bool:
        """Apply the new password and delete the token in one unit of work."""
        with self.database.transaction() as session:
            record = session.get(PasswordResetToken, token_hash)
            if not record:
                return False
            session.execute(update(User).where(User.id == record.user_id).values(password_hash=password_hash))
            session.delete(record)
            return True
