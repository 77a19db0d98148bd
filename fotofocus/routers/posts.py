from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from pydantic import BaseModel

from fotofocus.domain.validation import parse_id
from fotofocus.routers.deps import optional_identity, path_id, read_upload, require_identity, viewer_id
from fotofocus.services.token_service import Identity

router = APIRouter(prefix="/posts", tags=["posts"])


class PostCommentBody(BaseModel):
    text: Optional[str] = None


@router.get("")
def list_posts(
    request: Request,
    take: Optional[int] = None,
    cursor: Optional[str] = None,
    identity: Optional[Identity] = Depends(optional_identity),
):
    cursor_id = parse_id(cursor, "cursor") if cursor else None
    return request.app.state.feed.list_posts(viewer_id(identity), take, cursor_id)


@router.post("")
async def create_post(
    request: Request,
    text: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    identity: Identity = Depends(require_identity),
):
    return request.app.state.feed.create_post(identity.user_id, text, await read_upload(image))


@router.delete("/{post_id}")
def delete_post(request: Request, post_id: str, identity: Identity = Depends(require_identity)):
    request.app.state.cascade.delete_post(path_id(post_id, "post id"), identity.user_id)
    return {"success": True}


@router.get("/{post_id}/comments")
def list_comments(request: Request, post_id: str):
    return request.app.state.feed.list_comments(path_id(post_id, "post id"))


@router.post("/{post_id}/comments")
def add_comment(request: Request, post_id: str, body: PostCommentBody, identity: Identity = Depends(require_identity)):
    return request.app.state.feed.add_comment(path_id(post_id, "post id"), identity.user_id, body.text)


@router.delete("/{post_id}/comments/{comment_id}")
def delete_comment(request: Request, post_id: str, comment_id: str, identity: Identity = Depends(require_identity)):
    request.app.state.cascade.delete_post_comment(
        path_id(post_id, "post id"), path_id(comment_id, "comment id"), identity.user_id
    )
    return {"success": True}


@router.post("/{post_id}/like")
def like(request: Request, post_id: str, identity: Identity = Depends(require_identity)):
    return request.app.state.feed.like(path_id(post_id, "post id"), identity.user_id)


@router.delete("/{post_id}/like")
def unlike(request: Request, post_id: str, identity: Identity = Depends(require_identity)):
    return request.app.state.feed.unlike(path_id(post_id, "post id"), identity.user_id)
