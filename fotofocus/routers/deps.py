"""Request-scoped helpers shared by the routers."""
from __future__ import annotations

from typing import Optional

from fastapi import Request, UploadFile

from fotofocus.core.errors import Unauthenticated
from fotofocus.domain.validation import parse_id
from fotofocus.services.token_service import Identity


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _live_identity(request: Request, token: str) -> Identity:
    identity = request.app.state.tokens.verify(token)
    if request.app.state.accounts.get_user(identity.user_id) is None:
        raise Unauthenticated("Account no longer exists")
    return identity


def require_identity(request: Request) -> Identity:
    token = _bearer_token(request)
    if not token:
        raise Unauthenticated()
    return _live_identity(request, token)


def optional_identity(request: Request) -> Optional[Identity]:
    """Anonymous (None) when the header is missing, the token does not verify or the account is gone."""
    token = _bearer_token(request)
    if not token:
        return None
    try:
        return _live_identity(request, token)
    except Unauthenticated:
        return None


def viewer_id(identity: Optional[Identity]) -> Optional[int]:
    return identity.user_id if identity else None


def path_id(value: str, label: str = "id") -> int:
    return parse_id(value, label)


async def read_upload(upload: Optional[UploadFile]) -> Optional[tuple[bytes, Optional[str]]]:
    if upload is None or not upload.filename:
        return None
    data = await upload.read()
    return data, upload.content_type
