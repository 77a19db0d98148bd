"""Entity to JSON helpers shared by services.

Keys are camelCase because the mobile client reads them as-is.
"""
from __future__ import annotations

from fotofocus.core.utils import isoformat
from fotofocus.db.models import Challenge, Comment, Photo, Post, PostComment, User


def public_user(user: User | None) -> dict | None:
    if user is None:
        return None
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "avatarUrl": user.avatar_url,
        "createdAt": isoformat(user.created_at),
    }


def challenge_dict(challenge: Challenge, photo_count: int | None = None) -> dict:
    data = {
        "id": challenge.id,
        "title": challenge.title,
        "description": challenge.description,
        "coverUrl": challenge.cover_url,
        "creatorId": challenge.creator_id,
        "creator": public_user(challenge.creator),
        "createdAt": isoformat(challenge.created_at),
    }
    if photo_count is not None:
        data["photoCount"] = photo_count
    return data


def photo_dict(photo: Photo, avg_rating: float = 0, rating_count: int = 0, *, with_challenge: bool = False) -> dict:
    data = {
        "id": photo.id,
        "challengeId": photo.challenge_id,
        "imageUrl": photo.image_url,
        "caption": photo.caption or "",
        "userId": photo.user_id,
        "userEmail": photo.user.email if photo.user else None,
        "user": public_user(photo.user),
        "createdAt": isoformat(photo.created_at),
        "avgRating": float(avg_rating or 0),
        "ratingCount": int(rating_count or 0),
    }
    if with_challenge and photo.challenge is not None:
        data["challenge"] = {"id": photo.challenge.id, "title": photo.challenge.title}
    return data


def comment_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "text": comment.text,
        "photoId": comment.photo_id,
        "userId": comment.user_id,
        "parentId": comment.parent_id,
        "user": public_user(comment.user),
        "createdAt": isoformat(comment.created_at),
    }


def post_dict(post: Post, *, comment_count: int = 0, like_count: int = 0, liked_by_me: bool = False) -> dict:
    return {
        "id": post.id,
        "text": post.text,
        "imageUrl": post.image_url,
        "createdAt": isoformat(post.created_at),
        "user": public_user(post.user),
        "commentCount": int(comment_count or 0),
        "likeCount": int(like_count or 0),
        "likedByMe": bool(liked_by_me),
    }


def post_comment_dict(comment: PostComment) -> dict:
    return {
        "id": comment.id,
        "postId": comment.post_id,
        "text": comment.text,
        "createdAt": isoformat(comment.created_at),
        "user": public_user(comment.user),
    }
