from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, EmailStr

from fotofocus.core.rate_limiter import rate_limit_ip

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginBody(BaseModel):
    email: str = ""
    password: str = ""


class RegisterBody(BaseModel):
    email: EmailStr
    password: str = ""
    confirmPassword: Optional[str] = None


class VerifyBody(BaseModel):
    email: EmailStr
    code: str = ""


class ForgotBody(BaseModel):
    email: EmailStr


class ResetBody(BaseModel):
    token: str = ""
    newPassword: str = ""


@router.post("/login")
def login(request: Request, body: LoginBody):
    rate_limit_ip(request, "auth:login", limit=10, window_seconds=300)
    result = request.app.state.auth.login(body.email, body.password)
    return {"token": result.token, "user": result.user}


@router.post("/register")
@router.post("/register/request")
def register_request(request: Request, body: RegisterBody):
    request.app.state.registration.request(body.email, body.password, body.confirmPassword)
    return {"message": "Verification code sent."}


@router.post("/register/verify")
def register_verify(request: Request, body: VerifyBody):
    rate_limit_ip(request, "auth:verify", limit=10, window_seconds=300)
    result = request.app.state.registration.verify(body.email, body.code)
    return {"token": result.token, "user": result.user}


@router.post("/forgot-password")
def forgot_password(request: Request, body: ForgotBody):
    rate_limit_ip(request, "auth:forgot", limit=5, window_seconds=300)
    return request.app.state.auth.request_password_reset(body.email).as_dict()


@router.post("/reset-password")
def reset_password(request: Request, body: ResetBody):
    request.app.state.auth.reset_password(body.token, body.newPassword)
    return {"message": "Password updated successfully"}
