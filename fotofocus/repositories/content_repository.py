"""Challenges, photos, ratings and photo comments."""
from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select, update

from fotofocus.db.models import Challenge, Comment, Photo, Rating
from fotofocus.db.session import Database


def _rating_stats():
    return (
        select(
            Rating.photo_id.label("photo_id"),
            func.avg(Rating.value).label("avg_rating"),
            func.count(Rating.id).label("rating_count"),
        )
        .group_by(Rating.photo_id)
        .subquery()
    )


def _photo_counts():
    return (
        select(Photo.challenge_id.label("challenge_id"), func.count(Photo.id).label("photo_count"))
        .group_by(Photo.challenge_id)
        .subquery()
    )


class ContentRepository:
    """Queries over the challenge -> photo -> {rating, comment} graph."""

    def __init__(self, database: Database) -> None:
        self.database = database

    # -------------------------- challenges --------------------------
    def get_challenge(self, challenge_id: int) -> Optional[Challenge]:
        with self.database.session() as session:
            return session.get(Challenge, challenge_id)

    def _challenges_with_counts(self, *criteria) -> list[tuple[Challenge, int]]:
        counts = _photo_counts()
        stmt = (
            select(Challenge, func.coalesce(counts.c.photo_count, 0))
            .outerjoin(counts, counts.c.challenge_id == Challenge.id)
            .where(*criteria)
            .order_by(Challenge.created_at.desc(), Challenge.id.desc())
        )
        with self.database.session() as session:
            return [(row[0], int(row[1])) for row in session.execute(stmt).all()]

    def list_challenges(self) -> list[tuple[Challenge, int]]:
        return self._challenges_with_counts()

    def list_challenges_by_creator(self, user_id: int) -> list[tuple[Challenge, int]]:
        return self._challenges_with_counts(Challenge.creator_id == user_id)

    def count_challenges_by_creator(self, user_id: int) -> int:
        with self.database.session() as session:
            stmt = select(func.count(Challenge.id)).where(Challenge.creator_id == user_id)
            return int(session.execute(stmt).scalar_one())

    def create_challenge(self, creator_id: int, title: str, description: str | None, cover_url: str | None) -> Challenge:
        entity = Challenge(title=title, description=description, cover_url=cover_url, creator_id=creator_id)
        with self.database.session() as session:
            session.add(entity)
            session.commit()
            challenge_id = entity.id
        return self.get_challenge(challenge_id)

    def update_challenge(self, challenge_id: int, values: dict) -> Optional[Challenge]:
        if values:
            with self.database.session() as session:
                session.execute(update(Challenge).where(Challenge.id == challenge_id).values(**values))
                session.commit()
        return self.get_challenge(challenge_id)

    # -------------------------- photos --------------------------
    def get_photo(self, photo_id: int) -> Optional[Photo]:
        with self.database.session() as session:
            return session.get(Photo, photo_id)

    def _photos_with_stats(self, *criteria) -> list[tuple[Photo, float, int]]:
        stats = _rating_stats()
        stmt = (
            select(Photo, stats.c.avg_rating, stats.c.rating_count)
            .outerjoin(stats, stats.c.photo_id == Photo.id)
            .where(*criteria)
            .order_by(Photo.created_at.desc(), Photo.id.desc())
        )
        with self.database.session() as session:
            return [
                (row[0], float(row[1] or 0), int(row[2] or 0))
                for row in session.execute(stmt).all()
            ]

    def get_photo_with_stats(self, photo_id: int) -> Optional[tuple[Photo, float, int]]:
        rows = self._photos_with_stats(Photo.id == photo_id)
        return rows[0] if rows else None

    def list_photos_for_challenge(self, challenge_id: int) -> list[tuple[Photo, float, int]]:
        return self._photos_with_stats(Photo.challenge_id == challenge_id)

    def list_photos_by_user(self, user_id: int) -> list[tuple[Photo, float, int]]:
        return self._photos_with_stats(Photo.user_id == user_id)

    def count_photos_by_user(self, user_id: int) -> int:
        with self.database.session() as session:
            stmt = select(func.count(Photo.id)).where(Photo.user_id == user_id)
            return int(session.execute(stmt).scalar_one())

    def create_photo(self, challenge_id: int, user_id: int, image_url: str, caption: str | None) -> Photo:
        entity = Photo(challenge_id=challenge_id, user_id=user_id, image_url=image_url, caption=caption)
        with self.database.session() as session:
            session.add(entity)
            session.commit()
            photo_id = entity.id
        return self.get_photo(photo_id)

    # -------------------------- ratings --------------------------
    def upsert_rating(self, photo_id: int, user_id: int, value: int) -> None:
        stmt = self.database.insert(Rating).values(photo_id=photo_id, user_id=user_id, value=value)
        stmt = stmt.on_conflict_do_update(index_elements=["user_id", "photo_id"], set_={"value": value})
        with self.database.session() as session:
            session.execute(stmt)
            session.commit()

    def rating_stats(self, photo_id: int) -> tuple[float, int]:
        with self.database.session() as session:
            stmt = select(func.avg(Rating.value), func.count(Rating.id)).where(Rating.photo_id == photo_id)
            avg_value, count = session.execute(stmt).one()
            return float(avg_value or 0), int(count or 0)

    def ratings_received(self, user_id: int) -> tuple[float, int]:
        """Average and count of ratings on photos owned by ``user_id``."""
        with self.database.session() as session:
            stmt = (
                select(func.avg(Rating.value), func.count(Rating.id))
                .join(Photo, Photo.id == Rating.photo_id)
                .where(Photo.user_id == user_id)
            )
            avg_value, count = session.execute(stmt).one()
            return float(avg_value or 0), int(count or 0)

    # -------------------------- comments --------------------------
    def get_comment(self, comment_id: int) -> Optional[Comment]:
        with self.database.session() as session:
            return session.get(Comment, comment_id)

    def create_comment(self, photo_id: int, user_id: int, text: str, parent_id: int | None) -> Comment:
        entity = Comment(photo_id=photo_id, user_id=user_id, text=text, parent_id=parent_id)
        with self.database.session() as session:
            session.add(entity)
            session.commit()
            comment_id = entity.id
        return self.get_comment(comment_id)

    def list_comments(self, photo_id: int) -> list[Comment]:
        with self.database.session() as session:
            stmt = (
                select(Comment)
                .where(Comment.photo_id == photo_id)
                .order_by(Comment.created_at.asc(), Comment.id.asc())
            )
            return list(session.execute(stmt).scalars().all())
