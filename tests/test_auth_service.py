from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from fotofocus.core.errors import (
    InvalidCredentials,
    InvalidOrExpiredToken,
    ValidationError,
    WeakPassword,
)
from fotofocus.core.security import sha256_hex
from fotofocus.core.utils import utcnow
from fotofocus.db.models import PasswordResetToken
from fotofocus.services.auth_service import RESET_GENERIC_MESSAGE, AuthService


@pytest.fixture()
def svc(accounts, tokens, mailer, settings):
    return AuthService(accounts, tokens, mailer, settings)


def _reset_rows(database) -> int:
    with database.session() as session:
        return session.execute(select(func.count()).select_from(PasswordResetToken)).scalar_one()


def test_login_returns_token_for_valid_credentials(svc, make_user, tokens, password):
    user_id = make_user("ana@example.com")

    result = svc.login("ANA@example.com ", password)

    assert result.user == {"id": user_id, "email": "ana@example.com"}
    assert tokens.verify(result.token).user_id == user_id


def test_login_failures_share_one_error(svc, make_user, password):
    make_user("ana@example.com")
    with pytest.raises(InvalidCredentials) as wrong_password:
        svc.login("ana@example.com", "nope-nope")
    with pytest.raises(InvalidCredentials) as unknown_user:
        svc.login("ghost@example.com", password)
    assert wrong_password.value.message == unknown_user.value.message

    with pytest.raises(ValidationError):
        svc.login("", "")


def test_reset_flow_in_dev_returns_raw_token(svc, make_user, accounts, database):
    user_id = make_user("ana@example.com")

    result = svc.request_password_reset("ana@example.com")

    assert result.token
    record = accounts.get_reset_token(sha256_hex(result.token))
    assert record.user_id == user_id
    assert _reset_rows(database) == 1

    svc.reset_password(result.token, "brand-new")

    assert svc.login("ana@example.com", "brand-new").user["id"] == user_id
    assert _reset_rows(database) == 0
    with pytest.raises(InvalidOrExpiredToken):
        svc.reset_password(result.token, "another-one")


def test_new_reset_request_replaces_older_tokens(svc, make_user, database):
    make_user("ana@example.com")
    first = svc.request_password_reset("ana@example.com").token
    second = svc.request_password_reset("ana@example.com").token

    assert _reset_rows(database) == 1
    with pytest.raises(InvalidOrExpiredToken):
        svc.reset_password(first, "brand-new")
    svc.reset_password(second, "brand-new")


def test_reset_rejects_expired_and_weak(svc, make_user, monkeypatch, database):
    make_user("ana@example.com")
    token = svc.request_password_reset("ana@example.com").token

    with pytest.raises(WeakPassword):
        svc.reset_password(token, "12345")

    later = utcnow() + timedelta(minutes=16)
    monkeypatch.setattr(svc, "_now", lambda: later)
    with pytest.raises(InvalidOrExpiredToken):
        svc.reset_password(token, "brand-new")
    assert _reset_rows(database) == 0


def test_unknown_token_is_rejected(svc):
    with pytest.raises(InvalidOrExpiredToken):
        svc.reset_password("f" * 64, "brand-new")


def test_production_reset_response_is_generic(accounts, tokens, mailer, prod_settings, make_user):
    svc = AuthService(accounts, tokens, mailer, prod_settings)
    make_user("ana@example.com")

    known = svc.request_password_reset("ana@example.com")
    unknown = svc.request_password_reset("ghost@example.com")

    assert known.as_dict() == unknown.as_dict() == {"message": RESET_GENERIC_MESSAGE}
    assert "ana@example.com" in mailer.reset_tokens


def test_reset_delivery_failure_is_not_surfaced(svc, make_user, mailer):
    make_user("ana@example.com")
    mailer.fail = True

    result = svc.request_password_reset("ana@example.com")

    assert result.token
