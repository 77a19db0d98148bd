"""
Cascade deletion engine.

Removing a user, challenge, photo, post or comment must never leave orphaned
rows behind. Authorization and existence checks run first, outside any
transaction; the removal itself runs as one transaction so a failure at any
step leaves the store exactly as it was. Image blobs are removed after the
commit and only on a best-effort basis.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from fotofocus.core.errors import DeletionFailed, Forbidden, NotFound
from fotofocus.db.models import (
    Challenge,
    Comment,
    Follow,
    PasswordResetToken,
    Photo,
    Post,
    PostComment,
    PostLike,
    Rating,
    User,
)
from fotofocus.db.session import Database

logger = logging.getLogger(__name__)


def comment_closure(seed):
    """
    SELECT of the ids matching ``seed`` plus every transitive reply to them.

    Replies are only one level deep today, but the traversal follows
    parent_id links to any depth.
    """
    tree = select(Comment.id.label("id")).where(seed).cte("comment_tree", recursive=True)
    parent = tree.alias("parent")
    reply = aliased(Comment)
    tree = tree.union(select(reply.id).where(reply.parent_id == parent.c.id))
    return select(tree.c.id)


class CascadeDeletionEngine:
    """Consistent removal of deletion roots and everything that depends on them."""

    def __init__(self, database: Database, storage) -> None:
        self.database = database
        self.storage = storage

    # -------------------------------------- plumbing --------------------------------------
    def _load(self, model, entity_id: int, label: str):
        with self.database.session() as session:
            entity = session.get(model, entity_id)
        if entity is None:
            raise NotFound(f"{label} not found")
        return entity

    def _run(self, label: str, root_id: int, work: Callable[[Session], Iterable[str | None]]) -> None:
        try:
            with self.database.transaction() as session:
                blobs = [ref for ref in work(session) if ref]
        except SQLAlchemyError as exc:
            logger.exception("Cascade delete of %s %s failed", label, root_id)
            raise DeletionFailed(f"Failed to delete {label}") from exc
        logger.info("Deleted %s %s (%d blobs to clean up)", label, root_id, len(blobs))
        for ref in blobs:
            try:
                self.storage.delete(ref)
            except Exception:
                logger.warning("Blob cleanup failed for %s", ref, exc_info=True)

    # -------------------------------------- building blocks --------------------------------------
    def _purge_photos(self, session: Session, photo_ids: list[int]) -> list[str]:
        """Ratings, then comments (replies share the photo id), then the photos."""
        if not photo_ids:
            return []
        images = session.execute(select(Photo.image_url).where(Photo.id.in_(photo_ids))).scalars().all()
        session.execute(delete(Rating).where(Rating.photo_id.in_(photo_ids)))
        session.execute(delete(Comment).where(Comment.photo_id.in_(photo_ids)))
        session.execute(delete(Photo).where(Photo.id.in_(photo_ids)))
        return list(images)

    def _purge_challenges(self, session: Session, challenge_ids: list[int]) -> list[str]:
        if not challenge_ids:
            return []
        covers = session.execute(select(Challenge.cover_url).where(Challenge.id.in_(challenge_ids))).scalars().all()
        photo_ids = session.execute(select(Photo.id).where(Photo.challenge_id.in_(challenge_ids))).scalars().all()
        blobs = self._purge_photos(session, list(photo_ids))
        session.execute(delete(Challenge).where(Challenge.id.in_(challenge_ids)))
        return blobs + list(covers)

    def _purge_comment_trees(self, session: Session, seed) -> int:
        doomed = session.execute(comment_closure(seed)).scalars().all()
        if doomed:
            session.execute(delete(Comment).where(Comment.id.in_(doomed)))
        return len(doomed)

    def _purge_posts(self, session: Session, post_ids: list[int]) -> list[str]:
        if not post_ids:
            return []
        images = session.execute(select(Post.image_url).where(Post.id.in_(post_ids))).scalars().all()
        session.execute(delete(PostLike).where(PostLike.post_id.in_(post_ids)))
        session.execute(delete(PostComment).where(PostComment.post_id.in_(post_ids)))
        session.execute(delete(Post).where(Post.id.in_(post_ids)))
        return list(images)

    # -------------------------------------- user cascade steps --------------------------------------
    def _purge_user_challenges(self, session: Session, user_id: int) -> list[str]:
        ids = session.execute(select(Challenge.id).where(Challenge.creator_id == user_id)).scalars().all()
        return self._purge_challenges(session, list(ids))

    def _purge_user_photos(self, session: Session, user_id: int) -> list[str]:
        ids = session.execute(select(Photo.id).where(Photo.user_id == user_id)).scalars().all()
        return self._purge_photos(session, list(ids))

    def _purge_user_ratings(self, session: Session, user_id: int) -> None:
        session.execute(delete(Rating).where(Rating.user_id == user_id))

    def _purge_user_comments(self, session: Session, user_id: int) -> None:
        self._purge_comment_trees(session, Comment.user_id == user_id)

    def _purge_user_feed(self, session: Session, user_id: int) -> list[str]:
        session.execute(delete(PostLike).where(PostLike.user_id == user_id))
        session.execute(delete(PostComment).where(PostComment.user_id == user_id))
        ids = session.execute(select(Post.id).where(Post.user_id == user_id)).scalars().all()
        return self._purge_posts(session, list(ids))

    def _purge_follows(self, session: Session, user_id: int) -> None:
        session.execute(
            delete(Follow).where(or_(Follow.follower_id == user_id, Follow.following_id == user_id))
        )

    # -------------------------------------- public operations --------------------------------------
    def delete_user(self, user_id: int, actor_id: int) -> None:
        if actor_id != user_id:
            raise Forbidden()
        user = self._load(User, user_id, "User")

        def work(session: Session) -> list[str | None]:
            blobs: list[str | None] = []
            blobs += self._purge_user_challenges(session, user_id)
            blobs += self._purge_user_photos(session, user_id)
            self._purge_user_ratings(session, user_id)
            self._purge_user_comments(session, user_id)
            blobs += self._purge_user_feed(session, user_id)
            self._purge_follows(session, user_id)
            session.execute(delete(PasswordResetToken).where(PasswordResetToken.user_id == user_id))
            session.execute(delete(User).where(User.id == user_id))
            blobs.append(user.avatar_url)
            return blobs

        self._run("user", user_id, work)

    def delete_challenge(self, challenge_id: int, actor_id: int) -> None:
        challenge = self._load(Challenge, challenge_id, "Challenge")
        if challenge.creator_id != actor_id:
            raise Forbidden()
        self._run("challenge", challenge_id, lambda session: self._purge_challenges(session, [challenge_id]))

    def delete_photo(self, photo_id: int, actor_id: int) -> None:
        photo = self._load(Photo, photo_id, "Photo")
        if photo.user_id != actor_id:
            raise Forbidden()
        self._run("photo", photo_id, lambda session: self._purge_photos(session, [photo_id]))

    def delete_comment(self, comment_id: int, actor_id: int) -> None:
        comment = self._load(Comment, comment_id, "Comment")
        if comment.user_id != actor_id:
            raise Forbidden()

        def work(session: Session) -> list[str]:
            self._purge_comment_trees(session, Comment.id == comment_id)
            return []

        self._run("comment", comment_id, work)

    def delete_post(self, post_id: int, actor_id: int) -> None:
        post = self._load(Post, post_id, "Post")
        if post.user_id != actor_id:
            raise Forbidden()
        self._run("post", post_id, lambda session: self._purge_posts(session, [post_id]))

    def delete_post_comment(self, post_id: int, comment_id: int, actor_id: int) -> None:
        with self.database.session() as session:
            comment = session.get(PostComment, comment_id)
            post = session.get(Post, post_id)
        if comment is None or post is None or comment.post_id != post_id:
            raise NotFound("Comment not found")
        if actor_id not in (comment.user_id, post.user_id):
            raise Forbidden()

        def work(session: Session) -> list[str]:
            session.execute(delete(PostComment).where(PostComment.id == comment_id))
            return []

        self._run("post comment", comment_id, work)
