"""
daybook/models/intention.py

Daily intentions with an optional priority.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import Field

from daybook.core.errors import ValidationError
from daybook.models.base import TimeBucketedItem


class Priority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


_PRIORITY_RANK = {
    Priority.HIGH.value: 0,
    Priority.MEDIUM.value: 1,
    Priority.LOW.value: 2,
}
UNSPECIFIED_RANK = 3


def priority_rank(priority: Optional[str]) -> int:
    """High < Medium < Low < anything else."""
    return _PRIORITY_RANK.get(priority or "", UNSPECIFIED_RANK)


class Intention(TimeBucketedItem):
    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    date: datetime = Field(description="Day the intention is for")
    createdate: datetime = Field(default_factory=datetime.now)
    intention_type: str = "Unknown"
    priority: Optional[str] = Priority.MEDIUM.value

    @property
    def occurs_on(self) -> datetime:
        return self.date

    @property
    def rank(self) -> int:
        return priority_rank(self.priority)

    def validate_for_save(self) -> None:
        if not self.title.strip():
            raise ValidationError("Intention title is required.")
