"""
daybook/models/debrief.py

One end-of-day debrief per user per calendar day.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import Field

from daybook.models.base import DocumentModel

DAY_KEY_FORMAT = "%Y-%m-%d"


def day_key(day: date) -> str:
    """Upsert key for a day's debrief."""
    return day.strftime(DAY_KEY_FORMAT)


class Debrief(DocumentModel):
    id: Optional[str] = None
    title: str
    text: str = Field(description="Encoded styled text")
    user_id: str
    timestamp: datetime
    date: str = Field(description="YYYY-MM-DD")
