"""Generic social feed: posts, post comments and likes."""

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from fotofocus.core.errors import NotFound, ValidationError
from fotofocus.domain.serializers import post_comment_dict, post_dict
from fotofocus.domain.validation import require_text
from fotofocus.repositories.feed_repository import FeedRepository

DEFAULT_PAGE = 20
MAX_PAGE = 50
POST_IMAGE_SIZE = (2048, 2048)


class FeedService:
    def __init__(self, repository: FeedRepository, storage) -> None:
        self.repository = repository
        self.storage = storage

    def _render(self, rows, viewer_id: int | None, *, all_liked: bool = False) -> list[dict]:
        liked: set[int] = set()
        if viewer_id and not all_liked:
            liked = self.repository.liked_post_ids(viewer_id, [post.id for post, _, _ in rows])
        return [
            post_dict(
                post,
                comment_count=comments,
                like_count=likes,
                liked_by_me=all_liked or post.id in liked,
            )
            for post, comments, likes in rows
        ]

    def list_posts(self, viewer_id: int | None, take: int | None = None, cursor: int | None = None) -> list[dict]:
        size = DEFAULT_PAGE if not take or take <= 0 else min(take, MAX_PAGE)
        return self._render(self.repository.list_posts(size, cursor), viewer_id)

    def list_user_posts(self, author_id: int, viewer_id: int | None) -> list[dict]:
        return self._render(self.repository.list_posts_by_user(author_id), viewer_id)

    def list_liked_posts(self, user_id: int, viewer_id: int | None) -> list[dict]:
        rows = self.repository.list_posts_liked_by(user_id)
        return self._render(rows, viewer_id, all_liked=viewer_id == user_id)

    def create_post(self, user_id: int, text: str | None, image: tuple[bytes, str | None] | None = None) -> dict:
        body = (text or "").strip() or None
        if not body and image is None:
            raise ValidationError("Post cannot be empty")
        image_url = None
        if image is not None:
            data, content_type = image
            image_url = self.storage.save(data, content_type, folder="posts", max_size=POST_IMAGE_SIZE)
        try:
            post = self.repository.create_post(user_id, body, image_url)
        except SQLAlchemyError:
            self.storage.delete(image_url)
            raise
        return post_dict(post)

    def _require_post(self, post_id: int) -> None:
        if not self.repository.get_post(post_id):
            raise NotFound("Post not found")

    def list_comments(self, post_id: int) -> list[dict]:
        self._require_post(post_id)
        return [post_comment_dict(c) for c in self.repository.list_comments(post_id)]

    def add_comment(self, post_id: int, user_id: int, text: str | None) -> dict:
        body = require_text(text, "Comment")
        self._require_post(post_id)
        return post_comment_dict(self.repository.create_comment(post_id, user_id, body))

    def like(self, post_id: int, user_id: int) -> dict:
        self._require_post(post_id)
        self.repository.like(post_id, user_id)
        return {"success": True, "liked": True}

    def unlike(self, post_id: int, user_id: int) -> dict:
        self.repository.unlike(post_id, user_id)
        return {"success": True, "liked": False}
