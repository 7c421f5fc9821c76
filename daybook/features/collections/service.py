"""
daybook/features/collections/service.py

Quota-aware manager for one of a user's time-bucketed collections.

A manager holds the full list read from the store and derives the visible
subset (the active day, or the current year) on every change. Writes go to
the store first; local state only changes once the store call returned, so a
failed write leaves both the store and the local lists as they were.

Quota checks count the items already in the target bucket and run before
anything is written.
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Callable, ClassVar, Generic, List, Optional, Type, TypeVar

from pydantic import ValidationError as PydanticValidationError

from daybook.core.errors import AuthError, NotFoundError, RemoteReadError, RemoteWriteError
from daybook.core.logging import log_event
from daybook.core.session import UserSession
from daybook.features.documents.store import DocumentStore
from daybook.features.entitlements.service import enforce_quota
from daybook.models.base import TimeBucketedItem
from daybook.models.entitlement import Quota

logger = logging.getLogger("daybook")

T = TypeVar("T", bound=TimeBucketedItem)


class Bucket(str, Enum):
    DAY = "day"
    YEAR = "year"


class CollectionManager(Generic[T]):
    model: ClassVar[Type[TimeBucketedItem]]
    collection: ClassVar[str]
    bucket: ClassVar[Bucket] = Bucket.DAY
    quota: ClassVar[Optional[Quota]] = None
    # Ids assigned by the store on create rather than by the model
    store_assigns_ids: ClassVar[bool] = False

    def __init__(
        self,
        session: UserSession,
        store: DocumentStore,
        *,
        active_date: Optional[date] = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.session = session
        self.store = store
        self._now = now
        self.active_date: date = active_date or now().date()
        self.items: List[T] = []
        self.visible: List[T] = []

    # reads ----------------------------------------------------------------

    async def fetch_all(self, active_date: Optional[date] = None) -> List[T]:
        """Reload the whole collection and re-derive the visible subset."""
        self._require_signed_in()
        if active_date is not None:
            self.active_date = active_date
        try:
            docs = await self.store.list(self.session.user_id, self.collection)
        except RemoteReadError:
            logger.error(
                "[collections] fetch failed",
                extra={"user_id": self.session.user_id, "collection": self.collection},
            )
            raise

        items: List[T] = []
        for doc in docs:
            try:
                items.append(self.model.from_document(doc.data, doc.id))
            except PydanticValidationError as exc:
                logger.warning(
                    "[collections] skipping unreadable document",
                    extra={
                        "user_id": self.session.user_id,
                        "collection": self.collection,
                        "document_id": doc.id,
                        "errors": exc.error_count(),
                    },
                )
        self.items = items
        self.refresh()
        return self.visible

    def set_active_date(self, active_date: date) -> List[T]:
        """Switch the visible day without re-reading the store."""
        self.active_date = active_date
        self.refresh()
        return self.visible

    def filter_by_bucket(self, items: List[T]) -> List[T]:
        if self.bucket == Bucket.YEAR:
            year = self._now().year
            return [item for item in items if item.year == year]
        return [item for item in items if item.day == self.active_date]

    def sort_visible(self, items: List[T]) -> List[T]:
        return items

    def refresh(self) -> None:
        self.visible = self.sort_visible(self.filter_by_bucket(self.items))

    def get(self, item_id: str) -> T:
        for item in self.items:
            if item.id == item_id:
                return item
        raise NotFoundError(f"{self.collection} {item_id} not found")

    def count_in_bucket(self, item: T) -> int:
        """Items already in the bucket ``item`` would be added to."""
        if self.bucket == Bucket.YEAR:
            return sum(1 for existing in self.items if existing.year == item.year)
        return sum(1 for existing in self.items if existing.day == self.active_date)

    # writes ---------------------------------------------------------------

    async def add(self, item: T) -> T:
        self._require_signed_in()
        item.validate_for_save()
        if self.quota is not None:
            enforce_quota(self.session.tier, self.count_in_bucket(item), self.quota)

        data = item.to_document()
        try:
            if self.store_assigns_ids:
                data.pop("id", None)
                doc_id = await self.store.add(self.session.user_id, self.collection, data)
                item = item.model_copy(update={"id": doc_id})
            else:
                await self.store.set(self.session.user_id, self.collection, item.id, data)
        except RemoteWriteError:
            self._log_write_failure("add", item.id)
            raise

        self.items.append(item)
        self.refresh()
        log_event(
            "info",
            "[collections] added",
            user_id=self.session.user_id,
            collection=self.collection,
            document_id=item.id,
            event_type=f"{self.collection}.added",
        )
        return item

    async def update(self, item: T) -> T:
        """Full overwrite of the stored document."""
        self._require_signed_in()
        if not item.id:
            raise NotFoundError(f"{self.collection} item has no id")
        item.validate_for_save()
        data = item.to_document()
        if self.store_assigns_ids:
            data.pop("id", None)
        try:
            await self.store.set(self.session.user_id, self.collection, item.id, data)
        except RemoteWriteError:
            self._log_write_failure("update", item.id)
            raise

        self._replace_local(item)
        self.refresh()
        return item

    async def delete(self, item_id: str) -> None:
        self._require_signed_in()
        try:
            await self.store.delete(self.session.user_id, self.collection, item_id)
        except RemoteWriteError:
            self._log_write_failure("delete", item_id)
            raise

        self.items = [item for item in self.items if item.id != item_id]
        self.refresh()
        log_event(
            "info",
            "[collections] deleted",
            user_id=self.session.user_id,
            collection=self.collection,
            document_id=item_id,
            event_type=f"{self.collection}.deleted",
        )

    async def toggle_completion(self, item: T) -> T:
        return await self.update(item.model_copy(update={"is_done": not item.is_done}))

    # helpers --------------------------------------------------------------

    def _replace_local(self, item: T) -> None:
        for index, existing in enumerate(self.items):
            if existing.id == item.id:
                self.items[index] = item
                return
        self.items.append(item)

    def _require_signed_in(self) -> None:
        if not self.session.is_signed_in:
            raise AuthError("Sign in required.", code="signed_out")

    def _log_write_failure(self, action: str, item_id: Optional[str]) -> None:
        logger.error(
            f"[collections] {action} failed",
            extra={"user_id": self.session.user_id, "collection": self.collection, "document_id": item_id},
        )
