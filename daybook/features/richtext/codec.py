"""
daybook/features/richtext/codec.py

Storage encoding for styled text: a JSON run list written to the debrief
``text`` field. ``decode(encode(x)) == x`` for every StyledText.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from daybook.core.errors import DecodeError
from daybook.features.richtext.model import Style, StyledText, StyleRun

logger = logging.getLogger("daybook")


class _RunPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    start: int = Field(ge=0)
    end: int = Field(gt=0)
    styles: List[Style] = Field(default_factory=list)


class _StyledTextPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    text: str
    runs: List[_RunPayload] = Field(default_factory=list)


def encode(styled: StyledText) -> str:
    payload = _StyledTextPayload(
        text=styled.text,
        runs=[
            _RunPayload(
                start=run.start,
                end=run.end,
                styles=sorted(run.styles, key=lambda s: s.value),
            )
            for run in styled.runs
        ],
    )
    return payload.model_dump_json()


def decode(raw: str) -> StyledText:
    """Rebuild styled text; raises DecodeError for corrupt or foreign payloads."""
    if not isinstance(raw, (str, bytes)):
        raise DecodeError(f"styled text payload must be a string, got {type(raw).__name__}")
    try:
        payload = _StyledTextPayload.model_validate_json(raw)
    except PydanticValidationError as exc:
        raise DecodeError(f"unreadable styled text payload: {exc.error_count()} error(s)") from exc

    try:
        return StyledText(
            payload.text,
            tuple(StyleRun(run.start, run.end, frozenset(run.styles)) for run in payload.runs),
        )
    except ValueError as exc:
        raise DecodeError(f"inconsistent styled text payload: {exc}") from exc


def decode_or_empty(raw: Optional[str], *, user_id: Optional[str] = None) -> StyledText:
    """decode, substituting an empty document when the payload is unusable."""
    if raw is None or raw == "":
        return StyledText()
    try:
        return decode(raw)
    except DecodeError as exc:
        logger.warning(
            "[richtext] decode failed, using empty document",
            extra={"user_id": user_id, "error_code": exc.code, "reason": exc.message},
        )
        return StyledText()


def plain_text(styled: StyledText) -> str:
    return styled.plain_text
