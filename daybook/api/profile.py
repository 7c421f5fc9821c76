"""
daybook/api/profile.py
Profile API: personal details, mailing-list preference and account deletion.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from daybook.api.deps import get_user_id, get_workspace
from daybook.features.sessions.registry import Workspace

router = APIRouter(prefix="/v1/profile", tags=["profile"])


class ProfileDetailsRequest(BaseModel):
    firstname: str = ""
    surname: str = ""
    date_of_birth: Optional[date] = None
    country_of_residence: str = ""


class MailingListRequest(BaseModel):
    subscribed: bool


@router.get("")
async def get_profile_endpoint(workspace: Workspace = Depends(get_workspace)):
    profile = await workspace.profile.fetch_profile()
    return {"data": profile.model_dump(mode="json")}


@router.put("")
async def update_profile_endpoint(request: ProfileDetailsRequest, workspace: Workspace = Depends(get_workspace)):
    profile = await workspace.profile.update_details(
        firstname=request.firstname,
        surname=request.surname,
        date_of_birth=request.date_of_birth,
        country_of_residence=request.country_of_residence,
    )
    return {"data": profile.model_dump(mode="json")}


@router.put("/mailing-list")
async def mailing_list_endpoint(request: MailingListRequest, workspace: Workspace = Depends(get_workspace)):
    await workspace.profile.set_mailing_list(request.subscribed)
    profile = await workspace.profile.fetch_profile()
    return {"data": {"mailing_list": profile.mailing_list}}


@router.delete("")
async def delete_account_endpoint(
    request: Request,
    user_id: str = Depends(get_user_id),
    workspace: Workspace = Depends(get_workspace),
):
    """Delete the profile and the auth account, then drop the workspace."""
    await workspace.profile.delete_account()
    await request.app.state.workspaces.close(user_id)
    return {"data": {"user_id": user_id, "deleted": True}}
