"""
daybook/models/exercise.py
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import Field

from daybook.core.errors import ValidationError
from daybook.models.base import TimeBucketedItem


class Exercise(TimeBucketedItem):
    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    date: datetime
    createdate: datetime = Field(default_factory=datetime.now)
    exercise_type: Optional[str] = None
    duration: int = Field(default=0, description="Minutes")

    @property
    def occurs_on(self) -> datetime:
        return self.date

    def validate_for_save(self) -> None:
        if not self.title.strip():
            raise ValidationError("Exercise title is required.")
        if not self.exercise_type:
            raise ValidationError("Choose an exercise type.")
        if self.duration <= 0:
            raise ValidationError("Duration must be greater than zero.")
