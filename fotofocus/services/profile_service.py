"""Profile reads/edits and per-user statistics."""

from __future__ import annotations

import logging

from fotofocus.core.errors import NotFound
from fotofocus.domain.serializers import public_user
from fotofocus.domain.validation import optional_text
from fotofocus.repositories.account_repository import AccountRepository
from fotofocus.repositories.content_repository import ContentRepository
from fotofocus.repositories.follow_repository import FollowRepository

logger = logging.getLogger(__name__)

AVATAR_SIZE = (800, 800)


class ProfileService:
    def __init__(
        self,
        accounts: AccountRepository,
        content: ContentRepository,
        follows: FollowRepository,
        storage,
    ) -> None:
        self.accounts = accounts
        self.content = content
        self.follows = follows
        self.storage = storage

    def get_profile(self, user_id: int) -> dict:
        user = self.accounts.get_user(user_id)
        if not user:
            raise NotFound("User not found")
        return public_user(user)

    def update_name(self, user_id: int, name: str | None) -> dict:
        user = self.accounts.update_user_name(user_id, optional_text(name))
        if not user:
            raise NotFound("User not found")
        return public_user(user)

    def set_avatar(self, user_id: int, data: bytes, content_type: str | None) -> dict:
        if not self.accounts.get_user(user_id):
            raise NotFound("User not found")
        avatar_url = self.storage.save(data, content_type, folder="avatars", max_size=AVATAR_SIZE)
        user, previous = self.accounts.set_user_avatar(user_id, avatar_url)
        if user is None:
            self.storage.delete(avatar_url)
            raise NotFound("User not found")
        if previous and previous != avatar_url:
            self.storage.delete(previous)
        logger.info("Avatar replaced for user %s", user_id)
        return public_user(user)

    def stats(self, user_id: int, viewer_id: int | None = None) -> dict:
        if not self.accounts.get_user(user_id):
            raise NotFound("User not found")
        followers, following = self.follows.counts(user_id)
        avg_received, rating_count = self.content.ratings_received(user_id)
        is_following = False
        if viewer_id and viewer_id != user_id:
            is_following = self.follows.is_following(viewer_id, user_id)
        return {
            "photoCount": self.content.count_photos_by_user(user_id),
            "challengeCount": self.content.count_challenges_by_creator(user_id),
            "followersCount": followers,
            "followingCount": following,
            "avgRatingReceived": avg_received,
            "ratingCount": rating_count,
            "isFollowing": is_following,
        }
