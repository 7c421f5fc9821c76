"""Request dependencies shared by the routers."""

from typing import Optional

from fastapi import Depends, Header, Request

from daybook.core.errors import AppError, AuthError
from daybook.features.auth.service import AuthService
from daybook.features.sessions.registry import Workspace


def get_user_id(x_user_id: Optional[str] = Header(None, alias="X-User-Id")) -> str:
    if not x_user_id or not x_user_id.strip():
        raise AuthError("Missing X-User-Id header", code="missing_user")
    return x_user_id.strip()


async def get_workspace(request: Request, user_id: str = Depends(get_user_id)) -> Workspace:
    return await request.app.state.workspaces.get(user_id)


def get_auth_service(request: Request) -> AuthService:
    provider = getattr(request.app.state, "auth_provider", None)
    if provider is None:
        raise AppError("Authentication provider is not configured", code="auth_unavailable", status_code=503)
    return AuthService(provider, request.app.state.store)
