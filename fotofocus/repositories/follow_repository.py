"""Follow edges between users."""
from __future__ import annotations

from sqlalchemy import delete, func, select

from fotofocus.db.models import Follow, User
from fotofocus.db.session import Database


class FollowRepository:
    def __init__(self, database: Database) -> None:
        self.database = database

    def follow(self, follower_id: int, following_id: int) -> None:
        stmt = (
            self.database.insert(Follow)
            .values(follower_id=follower_id, following_id=following_id)
            .on_conflict_do_nothing(index_elements=["follower_id", "following_id"])
        )
        with self.database.session() as session:
            session.execute(stmt)
            session.commit()

    def unfollow(self, follower_id: int, following_id: int) -> None:
        with self.database.session() as session:
            session.execute(
                delete(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
            )
            session.commit()

    def is_following(self, follower_id: int, following_id: int) -> bool:
        with self.database.session() as session:
            stmt = (
                select(Follow.id)
                .where(Follow.follower_id == follower_id, Follow.following_id == following_id)
                .limit(1)
            )
            return session.execute(stmt).first() is not None

    def followers(self, user_id: int) -> list[User]:
        with self.database.session() as session:
            stmt = (
                select(Follow)
                .where(Follow.following_id == user_id)
                .order_by(Follow.created_at.desc(), Follow.id.desc())
            )
            return [row.follower for row in session.execute(stmt).scalars().all()]

    def following(self, user_id: int) -> list[User]:
        with self.database.session() as session:
            stmt = (
                select(Follow)
                .where(Follow.follower_id == user_id)
                .order_by(Follow.created_at.desc(), Follow.id.desc())
            )
            return [row.following for row in session.execute(stmt).scalars().all()]

    def counts(self, user_id: int) -> tuple[int, int]:
        """Return (followers, following) for ``user_id``."""
        with self.database.session() as session:
            followers = session.execute(
                select(func.count(Follow.id)).where(Follow.following_id == user_id)
            ).scalar_one()
            following = session.execute(
                select(func.count(Follow.id)).where(Follow.follower_id == user_id)
            ).scalar_one()
            return int(followers), int(following)
