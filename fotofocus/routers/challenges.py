from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from pydantic import BaseModel

from fotofocus.routers.deps import path_id, read_upload, require_identity
from fotofocus.services.token_service import Identity

router = APIRouter(prefix="/challenges", tags=["challenges"])


class ChallengeUpdateBody(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None


@router.get("")
def list_challenges(request: Request):
    return request.app.state.content.list_challenges()


@router.get("/{challenge_id}")
def get_challenge(request: Request, challenge_id: str):
    return request.app.state.content.get_challenge(path_id(challenge_id, "challenge id"))


@router.post("")
async def create_challenge(
    request: Request,
    title: str = Form(""),
    description: Optional[str] = Form(None),
    cover: Optional[UploadFile] = File(None),
    identity: Identity = Depends(require_identity),
):
    challenge = request.app.state.content.create_challenge(
        identity.user_id, title, description, await read_upload(cover)
    )
    return {"challenge": challenge}


@router.put("/{challenge_id}")
def update_challenge(
    request: Request,
    challenge_id: str,
    body: ChallengeUpdateBody,
    identity: Identity = Depends(require_identity),
):
    return request.app.state.content.update_challenge(
        path_id(challenge_id, "challenge id"), identity.user_id, body.title, body.description
    )


@router.delete("/{challenge_id}")
def delete_challenge(request: Request, challenge_id: str, identity: Identity = Depends(require_identity)):
    request.app.state.cascade.delete_challenge(path_id(challenge_id, "challenge id"), identity.user_id)
    return {"success": True}


@router.get("/{challenge_id}/photos")
def list_photos(request: Request, challenge_id: str):
    return request.app.state.content.list_challenge_photos(path_id(challenge_id, "challenge id"))


@router.post("/{challenge_id}/photos")
async def upload_photo(
    request: Request,
    challenge_id: str,
    photo: Optional[UploadFile] = File(None),
    caption: Optional[str] = Form(None),
    identity: Identity = Depends(require_identity),
):
    cid = path_id(challenge_id, "challenge id")
    return request.app.state.content.submit_photo(cid, identity.user_id, await read_upload(photo), caption)
