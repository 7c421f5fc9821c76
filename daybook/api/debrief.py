"""
daybook/api/debrief.py
Debrief API: load a day's debrief, edit and format it, save and close.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field

from daybook.api.deps import get_user_id, get_workspace
from daybook.features.debrief.service import DebriefEditor
from daybook.features.sessions.registry import Workspace

router = APIRouter(prefix="/v1/debrief", tags=["debrief"])


class EditRequest(BaseModel):
    start: int = Field(ge=0)
    end: int = Field(ge=0)
    text: str = ""


class FormatAction(str, Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINE = "underline"
    BULLET = "bullet"


class FormatRequest(BaseModel):
    action: FormatAction
    start: int = Field(ge=0)
    end: Optional[int] = Field(default=None, ge=0)


def _snapshot(editor: DebriefEditor) -> dict:
    draft = editor.draft
    return {
        "data": {
            "day": editor.active_day.isoformat(),
            "document_id": editor.document_id,
            "state": editor.state.value,
            "text": draft.plain_text,
            "runs": [
                {"start": run.start, "end": run.end, "styles": sorted(s.value for s in run.styles)}
                for run in draft.runs
            ],
            "word_count": editor.word_count,
            "word_limit": editor.word_limit,
        }
    }


@router.get("")
async def get_debrief_endpoint(
    day: Optional[date] = Query(None, description="Day to open (YYYY-MM-DD), defaults to today"),
    workspace: Workspace = Depends(get_workspace),
):
    """Open a day's debrief. Pending edits for the previous day are saved first."""
    await workspace.debrief.fetch_debriefs(day or datetime.now().date())
    return _snapshot(workspace.debrief)


@router.post("/edits")
async def edit_debrief_endpoint(request: EditRequest, workspace: Workspace = Depends(get_workspace)):
    workspace.debrief.apply_edit(request.start, request.end, request.text)
    return _snapshot(workspace.debrief)


@router.post("/format")
async def format_debrief_endpoint(request: FormatRequest, workspace: Workspace = Depends(get_workspace)):
    editor = workspace.debrief
    end = request.start if request.end is None else request.end
    if request.action == FormatAction.BULLET:
        editor.toggle_bullet(request.start, request.end)
    elif request.action == FormatAction.BOLD:
        editor.toggle_bold(request.start, end)
    elif request.action == FormatAction.ITALIC:
        editor.toggle_italic(request.start, end)
    else:
        editor.toggle_underline(request.start, end)
    return _snapshot(editor)


@router.post("/save")
async def save_debrief_endpoint(workspace: Workspace = Depends(get_workspace)):
    editor = workspace.debrief
    if not await editor.save() and editor.last_error is not None:
        raise editor.last_error
    return _snapshot(editor)


@router.post("/close")
async def close_debrief_endpoint(
    request: Request,
    user_id: str = Depends(get_user_id),
    workspace: Workspace = Depends(get_workspace),
):
    """Final save, then release the user's workspace."""
    editor = workspace.debrief
    saved = await request.app.state.workspaces.close(user_id)
    snapshot = _snapshot(editor)
    error = editor.last_error
    return {**snapshot, "saved": saved, "error": error.code if error else None}
