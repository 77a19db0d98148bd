from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
import threading

import pytest
from sqlalchemy import func, select

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
from fotofocus.core.security import verify_password
from fotofocus.core.utils import utcnow
from fotofocus.db.models import PendingRegistration, User
from fotofocus.services.registration_service import RegistrationService


@pytest.fixture()
def svc(accounts, tokens, mailer, settings):
    return RegistrationService(accounts, tokens, mailer, settings)


def _wrong(code: str) -> str:
    return "000000" if code != "000000" else "111111"


def _count(database, model) -> int:
    with database.session() as session:
        return session.execute(select(func.count()).select_from(model)).scalar_one()


def test_request_then_verify_creates_exactly_one_user(svc, mailer, accounts, tokens, database):
    svc.request("New@Example.com", "secret123", "secret123")
    code = mailer.codes["new@example.com"]

    pending = accounts.get_pending("new@example.com")
    assert pending.code_hash != code
    assert pending.password_hash.startswith("argon2$")

    result = svc.verify("new@example.com", f"  {code} ")

    assert result.user["email"] == "new@example.com"
    assert tokens.verify(result.token).user_id == result.user["id"]
    assert accounts.get_pending("new@example.com") is None
    assert _count(database, User) == 1
    assert _count(database, PendingRegistration) == 0
    assert verify_password("secret123", accounts.get_user_by_email("new@example.com").password_hash)


def test_request_validates_input(svc):
    with pytest.raises(ValidationError):
        svc.request("", "secret123")
    with pytest.raises(ValidationError):
        svc.request("a@example.com", "secret123", "different")
    with pytest.raises(WeakPassword):
        svc.request("a@example.com", "12345")


def test_request_for_existing_user_is_rejected(svc, make_user):
    make_user("taken@example.com")
    with pytest.raises(AlreadyRegistered):
        svc.request("taken@example.com", "secret123")


def test_second_request_within_window_is_throttled(svc, mailer, accounts, monkeypatch):
    svc.request("a@example.com", "secret123")
    first_code = mailer.codes["a@example.com"]
    with pytest.raises(Throttled):
        svc.request("a@example.com", "secret123")

    with pytest.raises(InvalidCode):
        svc.verify("a@example.com", _wrong(first_code))
    assert accounts.get_pending("a@example.com").attempts == 1

    later = utcnow() + timedelta(seconds=61)
    monkeypatch.setattr(svc, "_now", lambda: later)
    svc.request("a@example.com", "secret123")

    assert accounts.get_pending("a@example.com").attempts == 0


def test_verify_without_pending_entry(svc):
    with pytest.raises(NotFound):
        svc.verify("ghost@example.com", "123456")


def test_expired_code_deletes_pending_entry(svc, mailer, accounts, monkeypatch):
    svc.request("late@example.com", "secret123")
    code = mailer.codes["late@example.com"]

    later = utcnow() + timedelta(minutes=11)
    monkeypatch.setattr(svc, "_now", lambda: later)
    with pytest.raises(Expired):
        svc.verify("late@example.com", code)

    assert accounts.get_pending("late@example.com") is None


def test_sixth_attempt_fails_even_with_correct_code(svc, mailer, accounts, database):
    svc.request("b@example.com", "secret123")
    code = mailer.codes["b@example.com"]

    for expected in range(1, 6):
        with pytest.raises(InvalidCode):
            svc.verify("b@example.com", _wrong(code))
        assert accounts.get_pending("b@example.com").attempts == expected

    with pytest.raises(TooManyAttempts):
        svc.verify("b@example.com", code)

    assert accounts.get_pending("b@example.com") is not None
    assert _count(database, User) == 0


def test_delivery_failure_leaves_no_pending_entry(svc, mailer, accounts):
    mailer.fail = True
    with pytest.raises(DeliveryFailed):
        svc.request("c@example.com", "secret123")

    assert accounts.get_pending("c@example.com") is None

    mailer.fail = False
    svc.request("c@example.com", "secret123")
    assert "c@example.com" in mailer.codes


def test_parallel_guesses_cannot_exceed_attempt_cap(svc, mailer, accounts, monkeypatch):
    svc.request("d@example.com", "secret123")
    wrong = _wrong(mailer.codes["d@example.com"])
    guesses = 12
    barrier = threading.Barrier(guesses, timeout=10)
    read_pending = accounts.get_pending

    def get_pending_then_wait(email):
        row = read_pending(email)
        barrier.wait()
        return row

    monkeypatch.setattr(accounts, "get_pending", get_pending_then_wait)

    def guess():
        try:
            svc.verify("d@example.com", wrong)
        except (InvalidCode, TooManyAttempts) as exc:
            return type(exc)
        return None

    with ThreadPoolExecutor(max_workers=guesses) as pool:
        outcomes = list(pool.map(lambda _: guess(), range(guesses)))

    assert outcomes.count(InvalidCode) == 5
    assert outcomes.count(TooManyAttempts) == guesses - 5
    assert read_pending("d@example.com").attempts == 5
