"""Follow graph use cases."""

from __future__ import annotations

from fotofocus.core.errors import NotFound, ValidationError
from fotofocus.domain.serializers import public_user
from fotofocus.repositories.account_repository import AccountRepository
from fotofocus.repositories.follow_repository import FollowRepository


class FollowService:
    def __init__(self, repository: FollowRepository, accounts: AccountRepository) -> None:
        self.repository = repository
        self.accounts = accounts

    def follow(self, follower_id: int, target_id: int) -> dict:
        if follower_id == target_id:
            raise ValidationError("You cannot follow yourself")
        if not self.accounts.get_user(target_id):
            raise NotFound("User not found")
        self.repository.follow(follower_id, target_id)
        return {"success": True, "following": True}

    def unfollow(self, follower_id: int, target_id: int) -> dict:
        self.repository.unfollow(follower_id, target_id)
        return {"success": True, "following": False}

    def is_following(self, follower_id: int, target_id: int) -> bool:
        return self.repository.is_following(follower_id, target_id)

    def followers(self, user_id: int) -> list[dict]:
        return [public_user(u) for u in self.repository.followers(user_id)]

    def following(self, user_id: int) -> list[dict]:
        return [public_user(u) for u in self.repository.following(user_id)]
