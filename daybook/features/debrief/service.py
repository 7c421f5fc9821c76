"""
daybook/features/debrief/service.py

End-of-day debrief editor.

Edits go through the word-limit gate before they touch the draft. Accepted
edits restart a trailing autosave timer; when it fires the draft is checked
once more and written as the single debrief document for the active day.

State flow:
    clean -> editing -> validating -> persisting -> clean
                                   -> rejected  -> editing (next edit)

The cached document id always belongs to ``active_day``. Switching days
flushes the pending autosave for the old day, then drops the id before the
new day's lookup so nothing is written under the wrong day.
"""

import asyncio
import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Dict, Optional

from daybook.core.config import settings
from daybook.core.debounce import Debouncer
from daybook.core.errors import (
    AppError,
    AuthError,
    QuotaExceededError,
    RemoteReadError,
    RemoteWriteError,
    ValidationError,
)
from daybook.core.logging import log_event
from daybook.core.session import SessionChange, SessionEvent, UserSession
from daybook.features.documents.store import DEBRIEF_COLLECTION, DocumentStore
from daybook.features.entitlements.service import check_word_limit, count_words, enforce_word_limit
from daybook.features.richtext import codec
from daybook.features.richtext.model import StyledText
from daybook.models.debrief import Debrief, day_key
from daybook.models.entitlement import Entitlement

logger = logging.getLogger("daybook")

UNTITLED = "Untitled"


class EditorState(str, Enum):
    CLEAN = "clean"
    EDITING = "editing"
    VALIDATING = "validating"
    PERSISTING = "persisting"
    REJECTED = "rejected"


def derive_title(text: str, max_words: int = 5) -> str:
    """First ``max_words`` words joined by single spaces, or "Untitled"."""
    words = text.split()[:max_words]
    return " ".join(words) if words else UNTITLED


class DebriefEditor:
    def __init__(
        self,
        session: UserSession,
        store: DocumentStore,
        *,
        debounce_seconds: Optional[float] = None,
        title_words: Optional[int] = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.session = session
        self.store = store
        self.title_words = title_words or settings.DEBRIEF_TITLE_WORDS
        self._now = now

        self.active_day: date = now().date()
        self.draft = StyledText()
        self.document_id: Optional[str] = None
        # Day whose stored document has been looked up; None until then
        self._loaded_day: Optional[date] = None
        self.state = EditorState.CLEAN
        self.last_error: Optional[AppError] = None

        # Bumped on every accepted edit; a save only returns to CLEAN when
        # nothing changed while it was in flight.
        self._revision = 0
        self._save_lock = asyncio.Lock()
        self._autosave = Debouncer(
            debounce_seconds or settings.DEBRIEF_AUTOSAVE_SECONDS,
            self._autosave_fired,
            name="debrief.autosave",
        )
        self._unsubscribe = session.subscribe(self._on_session_change)

    # inspection -----------------------------------------------------------

    @property
    def word_count(self) -> int:
        return count_words(self.draft.plain_text)

    @property
    def word_limit(self) -> int:
        return Entitlement.for_tier(self.session.tier).max_debrief_words

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.pending

    # edits ----------------------------------------------------------------

    def apply_edit(self, start: int, end: int, text: str) -> StyledText:
        """Replace [start, end) with ``text`` (typing, pasting, deleting)."""
        return self._accept(self._edited(self.draft.replace, start, end, text))

    def toggle_bold(self, start: int, end: int) -> StyledText:
        return self._accept(self._edited(self.draft.toggle_bold, start, end))

    def toggle_italic(self, start: int, end: int) -> StyledText:
        return self._accept(self._edited(self.draft.toggle_italic, start, end))

    def toggle_underline(self, start: int, end: int) -> StyledText:
        return self._accept(self._edited(self.draft.toggle_underline, start, end))

    def toggle_bullet(self, start: int, end: Optional[int] = None) -> StyledText:
        return self._accept(self._edited(self.draft.toggle_bullet_for_paragraph, start, end))

    @staticmethod
    def _edited(operation: Callable[..., StyledText], *args) -> StyledText:
        try:
            return operation(*args)
        except ValueError as exc:
            raise ValidationError(str(exc), code="invalid_range", status_code=422) from exc

    def _accept(self, candidate: StyledText) -> StyledText:
        if not self.session.is_signed_in:
            raise AuthError("Sign in required.", code="signed_out")
        if candidate == self.draft:
            return self.draft

        words = count_words(candidate.plain_text)
        # Edits that shrink an over-limit draft (e.g. after a downgrade) stay allowed
        if words > self.word_count:
            try:
                enforce_word_limit(words, self.session.tier)
            except QuotaExceededError:
                logger.info(
                    "[debrief] edit rejected by word limit",
                    extra={"user_id": self.session.user_id, "tier": self.session.tier.value},
                )
                raise

        self.draft = candidate
        self._revision += 1
        self.state = EditorState.EDITING
        self._autosave.trigger()
        return self.draft

    # persistence ----------------------------------------------------------

    async def save(self) -> bool:
        """Validate and write the draft. Failures are logged and kept on
        ``last_error``; the draft is never discarded."""
        self._autosave.cancel()
        async with self._save_lock:
            return await self._save_locked()

    async def _save_locked(self) -> bool:
        if not self.session.is_signed_in:
            return False

        revision = self._revision
        draft = self.draft
        day = self.active_day
        plain = draft.plain_text

        self.state = EditorState.VALIDATING
        check = check_word_limit(count_words(plain), self.session.tier)
        if not check.allowed:
            self.state = EditorState.REJECTED
            self.last_error = QuotaExceededError(
                "Debrief is over the word limit and was not saved.",
                code="word_limit_exceeded",
                limit=check.limit,
                current=check.current,
            )
            logger.warning(
                "[debrief] save rejected by word limit",
                extra={"user_id": self.session.user_id, "error_code": self.last_error.code},
            )
            return False

        self.state = EditorState.PERSISTING
        payload = self._payload(draft, day)
        try:
            if self._loaded_day != day and not self.document_id:
                await self._resolve_document_id(day)
            if self.document_id:
                await self.store.set(
                    self.session.user_id, DEBRIEF_COLLECTION, self.document_id, payload, merge=True
                )
            else:
                new_id = await self.store.add(self.session.user_id, DEBRIEF_COLLECTION, payload)
                if self.active_day == day:
                    self.document_id = new_id
        except (RemoteReadError, RemoteWriteError) as exc:
            self.last_error = exc
            self.state = EditorState.EDITING
            logger.error(
                "[debrief] save failed, draft retained",
                extra={"user_id": self.session.user_id, "error_code": exc.code, "collection": DEBRIEF_COLLECTION},
            )
            return False

        self.last_error = None
        self.state = EditorState.CLEAN if self._revision == revision else EditorState.EDITING
        log_event(
            "info",
            "[debrief] saved",
            user_id=self.session.user_id,
            collection=DEBRIEF_COLLECTION,
            document_id=self.document_id,
            event_type="debrief.saved",
            extra={"day": day_key(day)},
        )
        return True

    async def _resolve_document_id(self, day: date) -> None:
        """Adopt the stored document for ``day`` so the write updates it."""
        docs = await self.store.query(self.session.user_id, DEBRIEF_COLLECTION, "date", day_key(day))
        if docs and self.active_day == day:
            self.document_id = docs[0].id
            self._loaded_day = day

    def _payload(self, draft: StyledText, day: date) -> Dict[str, Any]:
        debrief = Debrief(
            title=derive_title(draft.plain_text, self.title_words),
            text=codec.encode(draft),
            user_id=self.session.user_id,
            timestamp=self._now(),
            date=day_key(day),
        )
        return debrief.model_dump(by_alias=True, mode="json", exclude={"id"})

    async def _autosave_fired(self) -> None:
        await self.save()

    async def fetch_debriefs(self, day: date) -> StyledText:
        """Make ``day`` active and load its debrief, or an empty draft."""
        await self._autosave.flush()
        await self._autosave.wait_idle()

        async with self._save_lock:
            self.document_id = None
            self.active_day = day
            self.state = EditorState.CLEAN
            self._revision += 1

            try:
                docs = await self.store.query(
                    self.session.user_id, DEBRIEF_COLLECTION, "date", day_key(day)
                )
            except RemoteReadError:
                self.draft = StyledText()
                logger.error(
                    "[debrief] fetch failed",
                    extra={"user_id": self.session.user_id, "collection": DEBRIEF_COLLECTION},
                )
                raise

            self._loaded_day = day
            if not docs:
                self.draft = StyledText()
                return self.draft

            doc = docs[0]
            self.document_id = doc.id
            self.draft = codec.decode_or_empty(doc.data.get("text"), user_id=self.session.user_id)
            return self.draft

    async def close(self) -> bool:
        """Leave the editor: one last save regardless of the timer.

        Nothing is written when no edit is waiting, so opening the editor
        (or never touching it) does not create an empty document.
        """
        self._autosave.cancel()
        await self._autosave.wait_idle()
        self._unsubscribe()
        if self.state == EditorState.CLEAN:
            return False
        return await self.save()

    def _on_session_change(self, change: SessionChange) -> None:
        if change.event == SessionEvent.SIGNED_OUT:
            self._autosave.cancel()
