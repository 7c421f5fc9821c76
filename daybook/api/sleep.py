"""
daybook/api/sleep.py
Sleep log API.
"""

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from daybook.api.deps import get_workspace
from daybook.features.sessions.registry import Workspace
from daybook.models.sleep import Sleep

router = APIRouter(prefix="/v1/sleep", tags=["sleep"])


class SleepRequest(BaseModel):
    title: str
    createdate: datetime
    hours: str = ""


class SleepUpdateRequest(BaseModel):
    title: Optional[str] = None
    createdate: Optional[datetime] = None
    hours: Optional[str] = None


@router.get("")
async def list_sleep_endpoint(
    day: Optional[date] = Query(None, description="Night to show (YYYY-MM-DD), defaults to today"),
    workspace: Workspace = Depends(get_workspace),
):
    entries = await workspace.sleep.fetch_all(day or datetime.now().date())
    return {"data": [s.model_dump(mode="json") for s in entries], "count": len(entries)}


@router.post("")
async def create_sleep_endpoint(request: SleepRequest, workspace: Workspace = Depends(get_workspace)):
    manager = workspace.sleep
    await manager.fetch_all(request.createdate.date())
    entry = await manager.add(Sleep(**request.model_dump()))
    return {"data": entry.model_dump(mode="json")}


@router.put("/{sleep_id}")
async def update_sleep_endpoint(sleep_id: str, request: SleepUpdateRequest, workspace: Workspace = Depends(get_workspace)):
    manager = workspace.sleep
    await manager.fetch_all()
    updated = manager.get(sleep_id).model_copy(update=request.model_dump(exclude_unset=True))
    entry = await manager.update(updated)
    return {"data": entry.model_dump(mode="json")}


@router.delete("/{sleep_id}")
async def delete_sleep_endpoint(sleep_id: str, workspace: Workspace = Depends(get_workspace)):
    await workspace.sleep.delete(sleep_id)
    return {"data": {"id": sleep_id, "deleted": True}}
