"""
daybook/models/sleep.py
"""

from datetime import datetime
from uuid import uuid4

from pydantic import Field

from daybook.core.errors import ValidationError
from daybook.models.base import TimeBucketedItem


class Sleep(TimeBucketedItem):
    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str
    # The night being logged, not the wall-clock time of entry
    createdate: datetime
    hours: str = ""

    @property
    def occurs_on(self) -> datetime:
        return self.createdate

    def validate_for_save(self) -> None:
        if not self.title.strip() or not self.hours:
            raise ValidationError("Sleep entries need a title and hours.")
