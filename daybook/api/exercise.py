"""
daybook/api/exercise.py
Exercise log API plus favourite exercise types.
"""

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from daybook.api.deps import get_workspace
from daybook.features.sessions.registry import Workspace
from daybook.models.exercise import Exercise

router = APIRouter(prefix="/v1/exercise", tags=["exercise"])


class ExerciseRequest(BaseModel):
    title: str
    date: datetime
    exercise_type: Optional[str] = None
    duration: int = 0


class ExerciseUpdateRequest(BaseModel):
    title: Optional[str] = None
    date: Optional[datetime] = None
    exercise_type: Optional[str] = None
    duration: Optional[int] = None
    is_done: Optional[bool] = None


def _listing(workspace: Workspace) -> dict:
    manager = workspace.exercise
    return {
        "data": [e.model_dump(mode="json") for e in manager.visible],
        "day": manager.active_date.isoformat(),
        "count": len(manager.visible),
    }


@router.get("")
async def list_exercise_endpoint(
    day: Optional[date] = Query(None, description="Day to show (YYYY-MM-DD), defaults to today"),
    workspace: Workspace = Depends(get_workspace),
):
    await workspace.exercise.fetch_all(day or datetime.now().date())
    return _listing(workspace)


@router.post("")
async def create_exercise_endpoint(request: ExerciseRequest, workspace: Workspace = Depends(get_workspace)):
    manager = workspace.exercise
    await manager.fetch_all(request.date.date())
    exercise = await manager.add(Exercise(**request.model_dump()))
    return {"data": exercise.model_dump(mode="json")}


@router.put("/{exercise_id}")
async def update_exercise_endpoint(
    exercise_id: str, request: ExerciseUpdateRequest, workspace: Workspace = Depends(get_workspace)
):
    manager = workspace.exercise
    await manager.fetch_all()
    updated = manager.get(exercise_id).model_copy(update=request.model_dump(exclude_unset=True))
    exercise = await manager.update(updated)
    return {"data": exercise.model_dump(mode="json")}


@router.delete("/{exercise_id}")
async def delete_exercise_endpoint(exercise_id: str, workspace: Workspace = Depends(get_workspace)):
    await workspace.exercise.delete(exercise_id)
    return {"data": {"id": exercise_id, "deleted": True}}


@router.post("/{exercise_id}/move-to-bottom")
async def move_exercise_to_bottom_endpoint(exercise_id: str, workspace: Workspace = Depends(get_workspace)):
    """Mark an exercise done; it sorts after the unfinished ones."""
    await workspace.exercise.fetch_all()
    await workspace.exercise.move_to_bottom(exercise_id)
    return _listing(workspace)


@router.get("/favourites")
async def list_favourites_endpoint(workspace: Workspace = Depends(get_workspace)):
    favourites = await workspace.profile.favourites()
    return {"data": favourites, "count": len(favourites)}


@router.post("/favourites/{exercise_type}")
async def toggle_favourite_endpoint(exercise_type: str, workspace: Workspace = Depends(get_workspace)):
    favourites = await workspace.profile.toggle_favourite(exercise_type)
    return {"data": favourites, "count": len(favourites)}
