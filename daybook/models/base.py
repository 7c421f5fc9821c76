"""
daybook/models/base.py

Shared shape of documents kept in the per-user collections.

Field names are snake_case in Python and camelCase in stored documents.
"""

from datetime import date, datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        """Flat field/value map written to the store."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_document(cls, data: Dict[str, Any], doc_id: Optional[str] = None):
        payload = dict(data)
        if doc_id is not None and "id" in cls.model_fields:
            payload["id"] = doc_id
        return cls.model_validate(payload)


class TimeBucketedItem(DocumentModel):
    """Base for items grouped by day or year for display and quota counting."""

    id: Optional[str] = None
    is_done: bool = False

    @property
    def occurs_on(self) -> datetime:
        raise NotImplementedError

    @property
    def day(self) -> date:
        return self.occurs_on.date()

    @property
    def year(self) -> int:
        return self.occurs_on.year

    def validate_for_save(self) -> None:
        """Raise ValidationError when the item must not be written."""
