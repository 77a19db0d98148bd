from __future__ import annotations

import os

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from fotofocus.core.errors import Forbidden, NotFound, ValidationError
from fotofocus.db.models import Rating
from fotofocus.services.content_service import ContentService


@pytest.fixture()
def svc(content_repo, storage):
    return ContentService(content_repo, storage)


@pytest.fixture()
def photo(svc, make_user, png):
    owner = make_user("owner@example.com")
    challenge = svc.create_challenge(owner, "Sunset", "golden hour")
    return svc.submit_photo(challenge["id"], owner, (png(), "image/png"), "  first  ")


def test_create_challenge_requires_title(svc, make_user):
    owner = make_user("owner@example.com")
    with pytest.raises(ValidationError):
        svc.create_challenge(owner, "   ")


def test_create_challenge_with_cover(svc, make_user, png, storage):
    owner = make_user("owner@example.com")

    challenge = svc.create_challenge(owner, "Sunset", "", (png(), "image/png"))

    assert challenge["description"] is None
    assert challenge["coverUrl"].startswith("/uploads/covers/")
    assert challenge["creator"]["email"] == "owner@example.com"
    assert challenge["photoCount"] == 0


def test_update_challenge_is_creator_only(svc, make_user):
    owner = make_user("owner@example.com")
    other = make_user("other@example.com")
    challenge = svc.create_challenge(owner, "Sunset")

    with pytest.raises(Forbidden):
        svc.update_challenge(challenge["id"], other, "Mine now", None)
    with pytest.raises(ValidationError):
        svc.update_challenge(challenge["id"], owner, "  ", None)

    updated = svc.update_challenge(challenge["id"], owner, " Dusk ", "new text")
    assert (updated["title"], updated["description"]) == ("Dusk", "new text")
    with pytest.raises(NotFound):
        svc.update_challenge(999, owner, "x", None)


def test_list_challenges_counts_photos(svc, photo):
    listed = svc.list_challenges()
    assert [c["photoCount"] for c in listed] == [1]


def test_submit_photo_validations(svc, make_user, png):
    owner = make_user("owner@example.com")
    challenge = svc.create_challenge(owner, "Sunset")

    with pytest.raises(ValidationError):
        svc.submit_photo(challenge["id"], owner, None, None)
    with pytest.raises(ValidationError):
        svc.submit_photo(challenge["id"], owner, (b"not an image", "image/png"), None)
    with pytest.raises(NotFound):
        svc.submit_photo(999, owner, (png(), "image/png"), None)


def test_submitted_photo_shape(photo):
    assert photo["caption"] == "first"
    assert photo["userEmail"] == "owner@example.com"
    assert photo["imageUrl"].startswith("/uploads/photos/")
    assert (photo["avgRating"], photo["ratingCount"]) == (0.0, 0)


def test_rating_twice_keeps_one_row(svc, photo, make_user, database):
    rater = make_user("rater@example.com")

    svc.rate_photo(photo["id"], rater, 2)
    result = svc.rate_photo(photo["id"], rater, "5")

    assert result["photo"] == {"id": photo["id"], "avgRating": 5.0, "ratingCount": 1}
    with database.session() as session:
        assert session.execute(select(func.count()).select_from(Rating)).scalar_one() == 1


@pytest.mark.parametrize("value", [0, 6, 3.5, "abc", None, True])
def test_rating_out_of_range(svc, photo, value):
    with pytest.raises(ValidationError):
        svc.rate_photo(photo["id"], photo["userId"], value)


def test_rating_unknown_photo(svc, make_user):
    rater = make_user("rater@example.com")
    with pytest.raises(NotFound):
        svc.rate_photo(404, rater, 3)


def test_reply_to_reply_is_reparented(svc, photo, make_user):
    a = make_user("a@example.com")
    b = make_user("b@example.com")

    top = svc.add_comment(photo["id"], a, "top", None)
    reply = svc.add_comment(photo["id"], b, "reply", top["id"])
    nested = svc.add_comment(photo["id"], a, "reply to reply", reply["id"])

    assert reply["parentId"] == top["id"]
    assert nested["parentId"] == top["id"]

    tree = svc.list_comments(photo["id"])
    assert len(tree) == 1
    assert [r["text"] for r in tree[0]["replies"]] == ["reply", "reply to reply"]


def test_comment_parent_must_be_on_same_photo(svc, photo, make_user, png):
    a = make_user("a@example.com")
    other = svc.submit_photo(photo["challengeId"], a, (png(), "image/png"), None)
    foreign = svc.add_comment(other["id"], a, "elsewhere", None)

    with pytest.raises(ValidationError):
        svc.add_comment(photo["id"], a, "hi", foreign["id"])
    with pytest.raises(NotFound):
        svc.add_comment(photo["id"], a, "hi", 12345)
    with pytest.raises(ValidationError):
        svc.add_comment(photo["id"], a, "   ", None)


def test_user_photos_include_challenge(svc, photo):
    listed = svc.list_user_photos(photo["userId"])
    assert listed[0]["challenge"] == {"id": photo["challengeId"], "title": "Sunset"}


def _stored_files(settings, folder):
    path = os.path.join(settings.uploads_dir, folder)
    return os.listdir(path) if os.path.isdir(path) else []


def test_failed_insert_removes_uploaded_blobs(svc, content_repo, make_user, png, settings, monkeypatch):
    owner = make_user("owner@example.com")
    challenge = svc.create_challenge(owner, "Sunset")

    def fail(*args, **kwargs):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(content_repo, "create_photo", fail)
    monkeypatch.setattr(content_repo, "create_challenge", fail)

    with pytest.raises(SQLAlchemyError):
        svc.submit_photo(challenge["id"], owner, (png(), "image/png"), None)
    with pytest.raises(SQLAlchemyError):
        svc.create_challenge(owner, "Dusk", None, (png(), "image/png"))

    assert _stored_files(settings, "photos") == []
    assert _stored_files(settings, "covers") == []
