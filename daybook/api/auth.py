"""
daybook/api/auth.py
Auth API: sign in, register, password reset and sign out.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from daybook.api.deps import get_auth_service, get_user_id, get_workspace
from daybook.features.auth.service import AuthService
from daybook.features.sessions.registry import Workspace

router = APIRouter(prefix="/v1/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class RegisterRequest(BaseModel):
    firstname: str = ""
    surname: str = ""
    email: str = ""
    password: str = ""
    confirm_password: str = ""
    date_of_birth: Optional[date] = None
    country_of_residence: str = ""
    mailing_list: bool = False


class PasswordResetRequest(BaseModel):
    email: str = ""


@router.post("/login")
async def login_endpoint(request: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    session = await auth.login(request.email, request.password)
    return {"data": {"user_id": session.user_id, "email": session.email, "tier": session.tier.value}}


@router.post("/register")
async def register_endpoint(request: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    """Create the account; the user must verify their email before signing in."""
    profile = await auth.register(
        firstname=request.firstname,
        surname=request.surname,
        email=request.email,
        password=request.password,
        confirm_password=request.confirm_password,
        date_of_birth=request.date_of_birth,
        country_of_residence=request.country_of_residence,
        mailing_list=request.mailing_list,
    )
    return {"data": profile.model_dump(mode="json")}


@router.post("/password-reset")
async def password_reset_endpoint(request: PasswordResetRequest, auth: AuthService = Depends(get_auth_service)):
    message = await auth.send_password_reset(request.email)
    return {"data": {"message": message}}


@router.post("/logout")
async def logout_endpoint(
    http_request: Request,
    user_id: str = Depends(get_user_id),
    workspace: Workspace = Depends(get_workspace),
    auth: AuthService = Depends(get_auth_service),
):
    # Final debrief save happens while the session is still signed in
    saved = await http_request.app.state.workspaces.close(user_id)
    await auth.logout(workspace.session)
    return {"data": {"user_id": user_id, "signed_out": True, "debrief_saved": saved}}
