"""Posts, post comments and likes."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import delete, func, select

from fotofocus.db.models import Post, PostComment, PostLike
from fotofocus.db.session import Database


class FeedRepository:
    def __init__(self, database: Database) -> None:
        self.database = database

    def _posts_with_counts(self, *criteria, limit: int | None = None) -> list[tuple[Post, int, int]]:
        comments = (
            select(PostComment.post_id.label("post_id"), func.count(PostComment.id).label("n"))
            .group_by(PostComment.post_id)
            .subquery()
        )
        likes = (
            select(PostLike.post_id.label("post_id"), func.count(PostLike.id).label("n"))
            .group_by(PostLike.post_id)
            .subquery()
        )
        stmt = (
            select(Post, func.coalesce(comments.c.n, 0), func.coalesce(likes.c.n, 0))
            .outerjoin(comments, comments.c.post_id == Post.id)
            .outerjoin(likes, likes.c.post_id == Post.id)
            .where(*criteria)
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.database.session() as session:
            return [(row[0], int(row[1]), int(row[2])) for row in session.execute(stmt).all()]

    def list_posts(self, take: int, cursor: int | None = None) -> list[tuple[Post, int, int]]:
        criteria = [Post.id < cursor] if cursor else []
        return self._posts_with_counts(*criteria, limit=take)

    def list_posts_by_user(self, user_id: int) -> list[tuple[Post, int, int]]:
        return self._posts_with_counts(Post.user_id == user_id)

    def list_posts_liked_by(self, user_id: int) -> list[tuple[Post, int, int]]:
        liked = select(PostLike.post_id).where(PostLike.user_id == user_id)
        return self._posts_with_counts(Post.id.in_(liked))

    def liked_post_ids(self, user_id: int, post_ids: list[int]) -> set[int]:
        if not post_ids:
            return set()
        with self.database.session() as session:
            stmt = select(PostLike.post_id).where(PostLike.user_id == user_id, PostLike.post_id.in_(post_ids))
            return set(session.execute(stmt).scalars().all())

    def get_post(self, post_id: int) -> Optional[Post]:
        with self.database.session() as session:
            return session.get(Post, post_id)

    def create_post(self, user_id: int, text: str | None, image_url: str | None) -> Post:
        entity = Post(user_id=user_id, text=text, image_url=image_url)
        with self.database.session() as session:
            session.add(entity)
            session.commit()
            post_id = entity.id
        return self.get_post(post_id)

    # -------------------------- comments --------------------------
    def list_comments(self, post_id: int) -> list[PostComment]:
        with self.database.session() as session:
            stmt = (
                select(PostComment)
                .where(PostComment.post_id == post_id)
                .order_by(PostComment.created_at.desc(), PostComment.id.desc())
            )
            return list(session.execute(stmt).scalars().all())

    def get_comment(self, comment_id: int) -> Optional[PostComment]:
        with self.database.session() as session:
            return session.get(PostComment, comment_id)

    def create_comment(self, post_id: int, user_id: int, text: str) -> PostComment:
        entity = PostComment(post_id=post_id, user_id=user_id, text=text)
        with self.database.session() as session:
            session.add(entity)
            session.commit()
            comment_id = entity.id
        return self.get_comment(comment_id)

    # -------------------------- likes --------------------------
    def like(self, post_id: int, user_id: int) -> None:
        stmt = (
            self.database.insert(PostLike)
            .values(post_id=post_id, user_id=user_id)
            .on_conflict_do_nothing(index_elements=["post_id", "user_id"])
        )
        with self.database.session() as session:
            session.execute(stmt)
            session.commit()

    def unlike(self, post_id: int, user_id: int) -> None:
        with self.database.session() as session:
            session.execute(delete(PostLike).where(PostLike.post_id == post_id, PostLike.user_id == user_id))
            session.commit()
