"""
daybook/models/goal.py

Yearly goals with child key actions.
"""

from datetime import datetime
from typing import List, Optional
from uuid import uuid4

from pydantic import Field, field_validator

from daybook.core.errors import ValidationError
from daybook.models.base import DocumentModel, TimeBucketedItem


class GoalKeyAction(DocumentModel):
    """A measurable step towards a goal."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    description: str = ""
    action_type: str = ""
    current_value: int = 0
    target_value: int = 1
    is_completed: bool = False

    @property
    def is_valid(self) -> bool:
        return bool(self.description.strip())


class Goal(TimeBucketedItem):
    id: Optional[str] = None  # assigned by the store on create
    title: str
    start_date: datetime
    end_date: datetime
    progress: int = 0
    current_value: int = 0
    target_value: int = 100
    key_actions: List[GoalKeyAction] = Field(default_factory=list)
    goal_type: Optional[str] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def _local_naive(cls, value: datetime) -> datetime:
        # Stored dates are naive local time; offsets from clients are converted
        if value.tzinfo is not None:
            return value.astimezone().replace(tzinfo=None)
        return value

    @property
    def occurs_on(self) -> datetime:
        return self.start_date

    def computed_progress(self) -> int:
        """Percentage of current over target, truncated."""
        if self.target_value <= 0:
            return 0
        return int(self.current_value / self.target_value * 100)

    def validate_for_save(self) -> None:
        if not self.title.strip():
            raise ValidationError("Goal title is required.")
        if any(not action.is_valid for action in self.key_actions):
            raise ValidationError("Every key action needs a description.")
        if self.end_date < self.start_date:
            raise ValidationError("Goal end date must not be before its start date.")
