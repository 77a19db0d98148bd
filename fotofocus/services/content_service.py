"""Challenge, photo, comment and rating use cases."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from fotofocus.core.errors import Forbidden, NotFound, ValidationError
from fotofocus.domain.serializers import challenge_dict, comment_dict, photo_dict
from fotofocus.domain.validation import optional_text, parse_rating, require_text
from fotofocus.repositories.content_repository import ContentRepository

CHALLENGE_COVER_SIZE = (1600, 900)
PHOTO_MAX_SIZE = (2048, 2048)


class ContentService:
    """Reads and writes on the challenge -> photo -> {rating, comment} graph."""

    def __init__(self, repository: ContentRepository, storage) -> None:
        self.repository = repository
        self.storage = storage

    # -------------------------------------- challenges --------------------------------------
    def list_challenges(self) -> list[dict]:
        return [challenge_dict(c, count) for c, count in self.repository.list_challenges()]

    def list_challenges_by_creator(self, user_id: int) -> list[dict]:
        return [challenge_dict(c, count) for c, count in self.repository.list_challenges_by_creator(user_id)]

    def get_challenge(self, challenge_id: int) -> dict:
        challenge = self.repository.get_challenge(challenge_id)
        if not challenge:
            raise NotFound("Challenge not found")
        return challenge_dict(challenge)

    def create_challenge(
        self,
        creator_id: int,
        title: str | None,
        description: str | None = None,
        cover: tuple[bytes, str | None] | None = None,
    ) -> dict:
        title_value = require_text(title, "title")
        cover_url = None
        if cover is not None:
            data, content_type = cover
            cover_url = self.storage.save(data, content_type, folder="covers", max_size=CHALLENGE_COVER_SIZE)
        try:
            challenge = self.repository.create_challenge(creator_id, title_value, optional_text(description), cover_url)
        except SQLAlchemyError:
            self.storage.delete(cover_url)
            raise
        return challenge_dict(challenge, 0)

    def update_challenge(self, challenge_id: int, actor_id: int, title: str | None, description: str | None) -> dict:
        challenge = self.repository.get_challenge(challenge_id)
        if not challenge:
            raise NotFound("Challenge not found")
        if challenge.creator_id != actor_id:
            raise Forbidden()
        values = {}
        if title is not None:
            values["title"] = require_text(title, "title")
        if description is not None:
            values["description"] = optional_text(description)
        return challenge_dict(self.repository.update_challenge(challenge_id, values))

    # -------------------------------------- photos --------------------------------------
    def list_challenge_photos(self, challenge_id: int) -> list[dict]:
        if not self.repository.get_challenge(challenge_id):
            raise NotFound("Challenge not found")
        return [photo_dict(p, avg, count) for p, avg, count in self.repository.list_photos_for_challenge(challenge_id)]

    def list_user_photos(self, user_id: int) -> list[dict]:
        return [
            photo_dict(p, avg, count, with_challenge=True)
            for p, avg, count in self.repository.list_photos_by_user(user_id)
        ]

    def get_photo(self, photo_id: int) -> dict:
        row = self.repository.get_photo_with_stats(photo_id)
        if not row:
            raise NotFound("Photo not found")
        photo, avg, count = row
        return photo_dict(photo, avg, count)

    def submit_photo(self, challenge_id: int, user_id: int, image: tuple[bytes, str | None] | None, caption: str | None) -> dict:
        if image is None:
            raise ValidationError("photo file required")
        if not self.repository.get_challenge(challenge_id):
            raise NotFound("Challenge not found")
        data, content_type = image
        image_url = self.storage.save(data, content_type, folder="photos", max_size=PHOTO_MAX_SIZE)
        try:
            photo = self.repository.create_photo(challenge_id, user_id, image_url, (caption or "").strip() or None)
        except SQLAlchemyError:
            self.storage.delete(image_url)
            raise
        return photo_dict(photo)

    # -------------------------------------- ratings --------------------------------------
    def rate_photo(self, photo_id: int, user_id: int, value) -> dict:
        score = parse_rating(value)
        if not self.repository.get_photo(photo_id):
            raise NotFound("Photo not found")
        self.repository.upsert_rating(photo_id, user_id, score)
        avg, count = self.repository.rating_stats(photo_id)
        return {"photo": {"id": photo_id, "avgRating": avg, "ratingCount": count}}

    # -------------------------------------- comments --------------------------------------
    def list_comments(self, photo_id: int) -> list[dict]:
        if not self.repository.get_photo(photo_id):
            raise NotFound("Photo not found")
        top_level: list[dict] = []
        by_id: dict[int, dict] = {}
        replies = []
        for comment in self.repository.list_comments(photo_id):
            if comment.parent_id is None:
                item = comment_dict(comment)
                item["replies"] = []
                by_id[comment.id] = item
                top_level.append(item)
            else:
                replies.append(comment)
        for reply in replies:
            parent = by_id.get(reply.parent_id)
            if parent is not None:
                parent["replies"].append(comment_dict(reply))
        return top_level

    def add_comment(self, photo_id: int, user_id: int, text: str | None, parent_id: int | None = None) -> dict:
        body = require_text(text, "text")
        if not self.repository.get_photo(photo_id):
            raise NotFound("Photo not found")
        final_parent = None
        if parent_id is not None:
            parent = self.repository.get_comment(parent_id)
            if not parent:
                raise NotFound("Parent comment not found")
            if parent.photo_id != photo_id:
                raise ValidationError("Parent comment belongs to another photo")
            # Replies to a reply attach to the top-level comment.
            final_parent = parent.parent_id or parent.id
        comment = self.repository.create_comment(photo_id, user_id, body, final_parent)
        return comment_dict(comment)
