from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from fotofocus.domain.validation import parse_id
from fotofocus.routers.deps import path_id, require_identity
from fotofocus.services.token_service import Identity

router = APIRouter(tags=["photos"])


class CommentBody(BaseModel):
    text: Optional[str] = None
    parentId: Optional[Any] = None


class RatingBody(BaseModel):
    value: Any = None


@router.get("/photos/{photo_id}")
def get_photo(request: Request, photo_id: str):
    return request.app.state.content.get_photo(path_id(photo_id, "photo id"))


@router.delete("/photos/{photo_id}")
def delete_photo(request: Request, photo_id: str, identity: Identity = Depends(require_identity)):
    request.app.state.cascade.delete_photo(path_id(photo_id, "photo id"), identity.user_id)
    return {"success": True}


@router.post("/photos/{photo_id}/ratings")
def rate_photo(request: Request, photo_id: str, body: RatingBody, identity: Identity = Depends(require_identity)):
    return request.app.state.content.rate_photo(path_id(photo_id, "photo id"), identity.user_id, body.value)


@router.get("/photos/{photo_id}/comments")
def list_comments(request: Request, photo_id: str):
    return request.app.state.content.list_comments(path_id(photo_id, "photo id"))


@router.post("/photos/{photo_id}/comments")
def add_comment(request: Request, photo_id: str, body: CommentBody, identity: Identity = Depends(require_identity)):
    parent_id = None
    if body.parentId is not None and body.parentId != "":
        parent_id = parse_id(body.parentId if isinstance(body.parentId, (int, str)) else None, "parentId")
    return request.app.state.content.add_comment(
        path_id(photo_id, "photo id"), identity.user_id, body.text, parent_id
    )


@router.delete("/comments/{comment_id}")
def delete_comment(request: Request, comment_id: str, identity: Identity = Depends(require_identity)):
    request.app.state.cascade.delete_comment(path_id(comment_id, "comment id"), identity.user_id)
    return {"success": True}
