"""
daybook/api/intentions.py
Intentions API: daily intentions split into active and completed lists.
"""

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from daybook.api.deps import get_workspace
from daybook.features.sessions.registry import Workspace
from daybook.models.intention import Intention, Priority

router = APIRouter(prefix="/v1/intentions", tags=["intentions"])


class IntentionRequest(BaseModel):
    title: str
    date: datetime
    intention_type: str = "Unknown"
    priority: Optional[str] = Priority.MEDIUM.value


class IntentionUpdateRequest(BaseModel):
    title: Optional[str] = None
    date: Optional[datetime] = None
    intention_type: Optional[str] = None
    priority: Optional[str] = None
    is_done: Optional[bool] = None


def _listing(workspace: Workspace) -> dict:
    manager = workspace.intentions
    return {
        "data": {
            "day": manager.active_date.isoformat(),
            "active": [i.model_dump(mode="json") for i in manager.active],
            "completed": [i.model_dump(mode="json") for i in manager.completed],
        },
        "count": len(manager.visible),
    }


@router.get("")
async def list_intentions_endpoint(
    day: Optional[date] = Query(None, description="Day to show (YYYY-MM-DD), defaults to today"),
    workspace: Workspace = Depends(get_workspace),
):
    """Intentions for one day, priority-sorted."""
    await workspace.intentions.fetch_all(day or datetime.now().date())
    return _listing(workspace)


@router.post("")
async def create_intention_endpoint(request: IntentionRequest, workspace: Workspace = Depends(get_workspace)):
    """Add an intention; Basic users are capped per day."""
    manager = workspace.intentions
    await manager.fetch_all(request.date.date())
    intention = await manager.add(Intention(**request.model_dump()))
    return {"data": intention.model_dump(mode="json")}


@router.put("/{intention_id}")
async def update_intention_endpoint(
    intention_id: str, request: IntentionUpdateRequest, workspace: Workspace = Depends(get_workspace)
):
    manager = workspace.intentions
    await manager.fetch_all()
    updated = manager.get(intention_id).model_copy(update=request.model_dump(exclude_unset=True))
    intention = await manager.update(updated)
    return {"data": intention.model_dump(mode="json")}


@router.delete("/{intention_id}")
async def delete_intention_endpoint(intention_id: str, workspace: Workspace = Depends(get_workspace)):
    await workspace.intentions.delete(intention_id)
    return {"data": {"id": intention_id, "deleted": True}}


@router.post("/{intention_id}/complete")
async def complete_intention_endpoint(intention_id: str, workspace: Workspace = Depends(get_workspace)):
    await workspace.intentions.fetch_all()
    await workspace.intentions.move_to_completed(intention_id)
    return _listing(workspace)


@router.post("/{intention_id}/reopen")
async def reopen_intention_endpoint(intention_id: str, workspace: Workspace = Depends(get_workspace)):
    await workspace.intentions.fetch_all()
    await workspace.intentions.move_back_to_main_list(intention_id)
    return _listing(workspace)
