"""Own-profile (/me) and public profile (/users/{id}) endpoints."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Request, UploadFile
from pydantic import BaseModel

from fotofocus.core.errors import ValidationError
from fotofocus.routers.deps import optional_identity, path_id, read_upload, require_identity, viewer_id
from fotofocus.services.token_service import Identity

router = APIRouter(tags=["users"])


class ProfileBody(BaseModel):
    name: Optional[str] = None


# -------------------------------------- /me --------------------------------------
@router.get("/me")
def me(request: Request, identity: Identity = Depends(require_identity)):
    return request.app.state.profiles.get_profile(identity.user_id)


@router.put("/me")
def update_me(request: Request, body: ProfileBody, identity: Identity = Depends(require_identity)):
    return request.app.state.profiles.update_name(identity.user_id, body.name)


@router.delete("/me")
def delete_me(request: Request, identity: Identity = Depends(require_identity)):
    request.app.state.cascade.delete_user(identity.user_id, identity.user_id)
    return {"ok": True}


@router.post("/me/avatar")
async def upload_avatar(
    request: Request,
    avatar: Optional[UploadFile] = File(None),
    identity: Identity = Depends(require_identity),
):
    upload = await read_upload(avatar)
    if upload is None:
        raise ValidationError("avatar file required")
    data, content_type = upload
    return request.app.state.profiles.set_avatar(identity.user_id, data, content_type)


@router.get("/me/stats")
def my_stats(request: Request, identity: Identity = Depends(require_identity)):
    return request.app.state.profiles.stats(identity.user_id, identity.user_id)


@router.get("/me/photos")
def my_photos(request: Request, identity: Identity = Depends(require_identity)):
    return request.app.state.content.list_user_photos(identity.user_id)


@router.get("/me/challenges")
def my_challenges(request: Request, identity: Identity = Depends(require_identity)):
    return request.app.state.content.list_challenges_by_creator(identity.user_id)


@router.get("/me/posts")
def my_posts(request: Request, identity: Identity = Depends(require_identity)):
    return request.app.state.feed.list_user_posts(identity.user_id, identity.user_id)


@router.get("/me/liked-posts")
def my_liked_posts(request: Request, identity: Identity = Depends(require_identity)):
    return request.app.state.feed.list_liked_posts(identity.user_id, identity.user_id)


# -------------------------------------- /users/{id} --------------------------------------
@router.get("/users/{user_id}")
def get_user(request: Request, user_id: str):
    return request.app.state.profiles.get_profile(path_id(user_id, "user id"))


@router.get("/users/{user_id}/stats")
def user_stats(request: Request, user_id: str, identity: Optional[Identity] = Depends(optional_identity)):
    return request.app.state.profiles.stats(path_id(user_id, "user id"), viewer_id(identity))


@router.get("/users/{user_id}/photos")
def user_photos(request: Request, user_id: str):
    return request.app.state.content.list_user_photos(path_id(user_id, "user id"))


@router.get("/users/{user_id}/challenges")
@router.get("/users/{user_id}/mychallenges")
def user_challenges(request: Request, user_id: str):
    return request.app.state.content.list_challenges_by_creator(path_id(user_id, "user id"))


@router.get("/users/{user_id}/posts")
def user_posts(request: Request, user_id: str, identity: Optional[Identity] = Depends(optional_identity)):
    return request.app.state.feed.list_user_posts(path_id(user_id, "user id"), viewer_id(identity))


@router.get("/users/{user_id}/liked-posts")
def user_liked_posts(request: Request, user_id: str, identity: Optional[Identity] = Depends(optional_identity)):
    return request.app.state.feed.list_liked_posts(path_id(user_id, "user id"), viewer_id(identity))


# -------------------------------------- follow graph --------------------------------------
@router.post("/users/{user_id}/follow")
def follow(request: Request, user_id: str, identity: Identity = Depends(require_identity)):
    return request.app.state.follows.follow(identity.user_id, path_id(user_id, "user id"))


@router.delete("/users/{user_id}/follow")
def unfollow(request: Request, user_id: str, identity: Identity = Depends(require_identity)):
    return request.app.state.follows.unfollow(identity.user_id, path_id(user_id, "user id"))


@router.get("/users/{user_id}/followers")
def followers(request: Request, user_id: str):
    return request.app.state.follows.followers(path_id(user_id, "user id"))


@router.get("/users/{user_id}/following")
def following(request: Request, user_id: str):
    return request.app.state.follows.following(path_id(user_id, "user id"))


@router.get("/users/{user_id}/isFollowing")
def is_following(request: Request, user_id: str, identity: Identity = Depends(require_identity)):
    return {"isFollowing": request.app.state.follows.is_following(identity.user_id, path_id(user_id, "user id"))}
