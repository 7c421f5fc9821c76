"""
daybook/api/goals.py
Goals API: this year's goals, progress and key actions.
"""

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from daybook.api.deps import get_workspace
from daybook.features.sessions.registry import Workspace
from daybook.models.goal import Goal, GoalKeyAction

router = APIRouter(prefix="/v1/goals", tags=["goals"])


class KeyActionRequest(BaseModel):
    description: str = ""
    action_type: str = ""
    current_value: int = 0
    target_value: int = 1


class GoalRequest(BaseModel):
    title: str
    start_date: datetime
    end_date: datetime
    current_value: int = 0
    target_value: int = 100
    goal_type: Optional[str] = None
    key_actions: List[KeyActionRequest] = Field(default_factory=list)


class GoalUpdateRequest(BaseModel):
    title: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_value: Optional[int] = None
    goal_type: Optional[str] = None
    is_done: Optional[bool] = None


class ProgressRequest(BaseModel):
    current_value: int


@router.get("")
async def list_goals_endpoint(workspace: Workspace = Depends(get_workspace)):
    goals = await workspace.goals.fetch_all()
    return {"data": [g.model_dump(mode="json") for g in goals], "count": len(goals)}


@router.post("")
async def create_goal_endpoint(request: GoalRequest, workspace: Workspace = Depends(get_workspace)):
    """Add a goal; Basic users are capped per calendar year."""
    manager = workspace.goals
    await manager.fetch_all()
    fields = request.model_dump(exclude={"key_actions"})
    goal = Goal(
        **fields,
        key_actions=[GoalKeyAction(**action.model_dump()) for action in request.key_actions],
    )
    goal = goal.model_copy(update={"progress": goal.computed_progress()})
    goal = await manager.add(goal)
    return {"data": goal.model_dump(mode="json")}


@router.put("/{goal_id}")
async def update_goal_endpoint(goal_id: str, request: GoalUpdateRequest, workspace: Workspace = Depends(get_workspace)):
    manager = workspace.goals
    await manager.fetch_all()
    goal = manager.get(goal_id).model_copy(update=request.model_dump(exclude_unset=True))
    goal = await manager.update(goal.model_copy(update={"progress": goal.computed_progress()}))
    return {"data": goal.model_dump(mode="json")}


@router.delete("/{goal_id}")
async def delete_goal_endpoint(goal_id: str, workspace: Workspace = Depends(get_workspace)):
    await workspace.goals.delete(goal_id)
    return {"data": {"id": goal_id, "deleted": True}}


@router.post("/{goal_id}/progress")
async def update_progress_endpoint(goal_id: str, request: ProgressRequest, workspace: Workspace = Depends(get_workspace)):
    await workspace.goals.fetch_all()
    goal = await workspace.goals.update_progress(goal_id, request.current_value)
    return {"data": goal.model_dump(mode="json")}


@router.post("/{goal_id}/key-actions/{action_id}/toggle")
async def toggle_key_action_endpoint(goal_id: str, action_id: str, workspace: Workspace = Depends(get_workspace)):
    await workspace.goals.fetch_all()
    goal = await workspace.goals.toggle_key_action(goal_id, action_id)
    return {"data": goal.model_dump(mode="json")}
