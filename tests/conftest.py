"""
Shared fixtures: an isolated SQLite database per test, real local blob
storage under tmp_path and a mailer fake that records what would be sent.
"""
from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest
from PIL import Image

# Keeps the package importable when the suite runs from a plain checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from fotofocus.core.config import Settings  # noqa: E402
from fotofocus.core.errors import DeliveryFailed  # noqa: E402
from fotofocus.core.rate_limiter import reset_rate_limits  # noqa: E402
from fotofocus.core.security import hash_password  # noqa: E402
from fotofocus.core.storage import LocalBlobStorage  # noqa: E402
from fotofocus.db.models import User  # noqa: E402
from fotofocus.db.session import Database  # noqa: E402
from fotofocus.repositories.account_repository import AccountRepository  # noqa: E402
from fotofocus.repositories.content_repository import ContentRepository  # noqa: E402
from fotofocus.repositories.feed_repository import FeedRepository  # noqa: E402
from fotofocus.repositories.follow_repository import FollowRepository  # noqa: E402
from fotofocus.services.token_service import TokenService  # noqa: E402

TEST_PASSWORD = "secret123"


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = dict(
        app_env="dev",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        jwt_secret="test-secret",
        token_ttl_seconds=7 * 24 * 60 * 60,
        registration_code_ttl_seconds=600,
        registration_resend_seconds=60,
        registration_max_attempts=5,
        password_reset_ttl_seconds=900,
        min_password_length=6,
        smtp_host="",
        smtp_port=587,
        smtp_user="",
        smtp_password="",
        smtp_from="",
        uploads_dir=str(tmp_path / "uploads"),
    )
    values.update(overrides)
    return Settings(**values)


class FakeMailer:
    """Records the last code/token per address; ``fail`` simulates an SMTP outage."""

    def __init__(self) -> None:
        self.codes: dict[str, str] = {}
        self.reset_tokens: dict[str, str] = {}
        self.fail = False

    def send_verification_code(self, to_email: str, code: str) -> bool:
        if self.fail:
            raise DeliveryFailed()
        self.codes[to_email] = code
        return True

    def send_password_reset(self, to_email: str, token: str) -> bool:
        if self.fail:
            raise DeliveryFailed()
        self.reset_tokens[to_email] = token
        return True


def png_bytes(color=(200, 60, 40), size=(24, 16)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture()
def settings(tmp_path):
    return make_settings(tmp_path)


@pytest.fixture()
def database(settings):
    db = Database(settings.database_url)
    db.connect()
    db.create_all()
    yield db
    db.disconnect()


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def storage(settings):
    return LocalBlobStorage(settings.uploads_dir)


@pytest.fixture()
def tokens(settings):
    return TokenService(settings.jwt_secret, settings.token_ttl_seconds)


@pytest.fixture()
def accounts(database):
    return AccountRepository(database)


@pytest.fixture()
def content_repo(database):
    return ContentRepository(database)


@pytest.fixture()
def feed_repo(database):
    return FeedRepository(database)


@pytest.fixture()
def follow_repo(database):
    return FollowRepository(database)


@pytest.fixture()
def make_user(database):
    """Insert a user row directly and return its id."""

    def _make(email: str, password: str = TEST_PASSWORD, **fields) -> int:
        with database.transaction() as session:
            user = User(email=email, password_hash=hash_password(password), **fields)
            session.add(user)
            session.flush()
            return user.id

    return _make


@pytest.fixture()
def client(settings, mailer, storage):
    from fastapi.testclient import TestClient

    from fotofocus.app import create_app

    reset_rate_limits()
    app = create_app(settings, database=Database(settings.database_url), mailer=mailer, storage=storage)
    with TestClient(app) as test_client:
        yield test_client
    reset_rate_limits()


@pytest.fixture()
def prod_settings(tmp_path):
    return make_settings(tmp_path, app_env="prod")


@pytest.fixture()
def password():
    return TEST_PASSWORD


@pytest.fixture()
def png():
    return png_bytes


@pytest.fixture()
def saved_image(storage):
    """Store a real image and return its public reference."""

    def _save(folder: str = "photos") -> str:
        return storage.save(png_bytes(), "image/png", folder=folder)

    return _save
