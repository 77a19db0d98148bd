from __future__ import annotations

import os

import pytest
from sqlalchemy.exc import SQLAlchemyError

from fotofocus.core.errors import NotFound, ValidationError
from fotofocus.services.feed_service import FeedService
from fotofocus.services.follow_service import FollowService
from fotofocus.services.profile_service import ProfileService


@pytest.fixture()
def feed(feed_repo, storage):
    return FeedService(feed_repo, storage)


@pytest.fixture()
def follows(follow_repo, accounts):
    return FollowService(follow_repo, accounts)


@pytest.fixture()
def profiles(accounts, content_repo, follow_repo, storage):
    return ProfileService(accounts, content_repo, follow_repo, storage)


def test_follow_is_idempotent(follows, make_user):
    a = make_user("a@example.com")
    b = make_user("b@example.com")

    follows.follow(a, b)
    follows.follow(a, b)

    assert [u["id"] for u in follows.followers(b)] == [a]
    assert [u["id"] for u in follows.following(a)] == [b]
    assert follows.is_following(a, b) is True

    follows.unfollow(a, b)
    follows.unfollow(a, b)
    assert follows.is_following(a, b) is False


def test_follow_rules(follows, make_user):
    a = make_user("a@example.com")
    with pytest.raises(ValidationError):
        follows.follow(a, a)
    with pytest.raises(NotFound):
        follows.follow(a, 999)


def test_post_needs_text_or_image(feed, make_user, png):
    a = make_user("a@example.com")
    with pytest.raises(ValidationError):
        feed.create_post(a, "   ", None)

    post = feed.create_post(a, None, (png(), "image/png"))
    assert post["text"] is None
    assert post["imageUrl"].startswith("/uploads/posts/")


def test_feed_pagination_and_liked_by_me(feed, make_user):
    a = make_user("a@example.com")
    b = make_user("b@example.com")
    ids = [feed.create_post(a, f"post {n}")["id"] for n in range(5)]

    feed.like(ids[-1], b)
    feed.like(ids[-1], b)
    feed.add_comment(ids[-1], a, "first!")

    page = feed.list_posts(b, take=2)
    assert [p["id"] for p in page] == [ids[4], ids[3]]
    assert page[0]["likedByMe"] is True
    assert (page[0]["likeCount"], page[0]["commentCount"]) == (1, 1)
    assert page[1]["likedByMe"] is False

    rest = feed.list_posts(None, take=50, cursor=page[-1]["id"])
    assert [p["id"] for p in rest] == [ids[2], ids[1], ids[0]]
    assert all(p["likedByMe"] is False for p in feed.list_posts(None))

    feed.unlike(ids[-1], b)
    assert feed.list_posts(b, take=1)[0]["likeCount"] == 0


def test_liked_posts_listing(feed, make_user):
    a = make_user("a@example.com")
    b = make_user("b@example.com")
    liked = feed.create_post(a, "liked")["id"]
    feed.create_post(a, "ignored")

    feed.like(liked, b)

    assert [p["id"] for p in feed.list_liked_posts(b, b)] == [liked]
    assert feed.list_liked_posts(b, None)[0]["likedByMe"] is False


def test_post_comments_need_post_and_text(feed, make_user):
    a = make_user("a@example.com")
    post = feed.create_post(a, "hello")["id"]
    with pytest.raises(NotFound):
        feed.add_comment(999, a, "hi")
    with pytest.raises(ValidationError):
        feed.add_comment(post, a, "  ")
    with pytest.raises(NotFound):
        feed.like(999, a)

    feed.add_comment(post, a, "older")
    feed.add_comment(post, a, "newer")
    assert [c["text"] for c in feed.list_comments(post)] == ["newer", "older"]


def test_profile_name_and_avatar(profiles, make_user, png, storage):
    a = make_user("a@example.com")

    assert profiles.update_name(a, "  Ana ")["name"] == "Ana"
    assert profiles.update_name(a, "   ")["name"] is None

    first = profiles.set_avatar(a, png(), "image/png")["avatarUrl"]
    second = profiles.set_avatar(a, png(color=(0, 0, 255)), "image/png")["avatarUrl"]

    assert first != second
    assert storage.delete(first) is False
    with pytest.raises(NotFound):
        profiles.get_profile(999)


def test_stats(profiles, make_user, content_repo, follow_repo, saved_image):
    a = make_user("a@example.com")
    b = make_user("b@example.com")
    challenge = content_repo.create_challenge(a, "Sunset", None, None)
    photo = content_repo.create_photo(challenge.id, a, saved_image(), None)
    content_repo.upsert_rating(photo.id, b, 4)
    content_repo.upsert_rating(photo.id, a, 2)
    follow_repo.follow(b, a)

    stats = profiles.stats(a, b)

    assert stats == {
        "photoCount": 1,
        "challengeCount": 1,
        "followersCount": 1,
        "followingCount": 0,
        "avgRatingReceived": 3.0,
        "ratingCount": 2,
        "isFollowing": True,
    }
    assert profiles.stats(a, None)["isFollowing"] is False


def test_failed_post_insert_removes_image(feed, feed_repo, make_user, png, settings, monkeypatch):
    a = make_user("a@example.com")

    def fail(*args, **kwargs):
        raise SQLAlchemyError("insert failed")

    monkeypatch.setattr(feed_repo, "create_post", fail)
    with pytest.raises(SQLAlchemyError):
        feed.create_post(a, "with picture", (png(), "image/png"))

    posts_dir = os.path.join(settings.uploads_dir, "posts")
    assert not os.path.isdir(posts_dir) or os.listdir(posts_dir) == []
