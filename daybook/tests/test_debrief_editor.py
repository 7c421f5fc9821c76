"""
Tests for the debrief editor: word-limit gate, autosave and per-day upsert.
"""
import asyncio
from datetime import date, datetime, timedelta

import pytest

from daybook.core.errors import AuthError, QuotaExceededError, RemoteReadError, RemoteWriteError, ValidationError
from daybook.core.session import UserSession
from daybook.features.debrief.service import DebriefEditor, EditorState, derive_title
from daybook.features.documents.store import DEBRIEF_COLLECTION
from daybook.features.richtext.codec import encode
from daybook.features.richtext.model import Style, StyledText
from daybook.features.sessions.registry import WorkspaceRegistry
from daybook.models.entitlement import Tier
from daybook.tests.mocks import FlakyStore

DAY = date(2025, 3, 14)
NEXT_DAY = DAY + timedelta(days=1)


def _now():
    return datetime(2025, 3, 14, 21, 0, 0)


def _editor(session, store, delay=0.05):
    return DebriefEditor(session, store, debounce_seconds=delay, now=_now)


def _words(n: int) -> str:
    return " ".join(["word"] * n)


async def _stored(store, user_id):
    return await store.list(user_id, DEBRIEF_COLLECTION)


def test_derive_title_takes_first_five_words():
    assert derive_title("one two  three\nfour five six") == "one two three four five"
    assert derive_title("  short  ") == "short"
    assert derive_title("   \n ") == "Untitled"


@pytest.mark.asyncio
async def test_basic_draft_at_150_words_rejects_one_more(basic_session):
    store = FlakyStore()
    editor = _editor(basic_session, store)
    editor.apply_edit(0, 0, _words(150))
    before = editor.draft

    with pytest.raises(QuotaExceededError) as exc_info:
        editor.apply_edit(len(before), len(before), " extra")

    assert exc_info.value.code == "word_limit_exceeded"
    assert editor.draft == before
    assert editor.word_count == 150
    await editor.close()


@pytest.mark.asyncio
async def test_premium_draft_at_150_words_accepts_one_more(premium_session):
    store = FlakyStore()
    editor = _editor(premium_session, store)
    editor.apply_edit(0, 0, _words(150))
    end = len(editor.draft)
    editor.apply_edit(end, end, " extra")
    assert editor.word_count == 151
    await editor.close()


@pytest.mark.asyncio
async def test_premium_ceiling_is_300_words(premium_session):
    editor = _editor(premium_session, FlakyStore())
    editor.apply_edit(0, 0, _words(300))
    with pytest.raises(QuotaExceededError):
        editor.apply_edit(len(editor.draft), len(editor.draft), " more")
    await editor.close()


@pytest.mark.asyncio
async def test_upgrade_applies_to_next_edit(basic_session):
    editor = _editor(basic_session, FlakyStore())
    editor.apply_edit(0, 0, _words(150))
    basic_session.set_tier(Tier.PREMIUM)
    editor.apply_edit(len(editor.draft), len(editor.draft), " extra")
    assert editor.word_limit == 300
    assert editor.word_count == 151
    await editor.close()


@pytest.mark.asyncio
async def test_over_limit_draft_after_downgrade_can_shrink_but_not_save():
    session = UserSession("user_downgrade", tier=Tier.PREMIUM)
    store = FlakyStore()
    editor = _editor(session, store)
    editor.apply_edit(0, 0, _words(200))
    session.set_tier(Tier.BASIC)

    editor.apply_edit(0, 5, "")
    assert editor.word_count == 199
    with pytest.raises(QuotaExceededError):
        editor.apply_edit(0, 0, "new ")

    assert await editor.save() is False
    assert editor.state == EditorState.REJECTED
    assert editor.last_error.code == "word_limit_exceeded"
    assert store.writes_to(DEBRIEF_COLLECTION) == []


@pytest.mark.asyncio
async def test_autosave_fires_after_quiet_period(basic_session):
    store = FlakyStore()
    editor = _editor(basic_session, store, delay=0.03)
    editor.apply_edit(0, 0, "Today was a good day overall")
    assert editor.state == EditorState.EDITING
    assert editor.autosave_pending

    await asyncio.sleep(0.12)

    docs = await _stored(store, basic_session.user_id)
    assert len(docs) == 1
    data = docs[0].data
    assert data["title"] == "Today was a good day"
    assert data["date"] == "2025-03-14"
    assert data["userId"] == basic_session.user_id
    assert set(data) == {"title", "text", "timestamp", "userId", "date"}
    assert editor.document_id == docs[0].id
    assert editor.state == EditorState.CLEAN


@pytest.mark.asyncio
async def test_repeated_saves_update_one_document(basic_session):
    store = FlakyStore()
    editor = _editor(basic_session, store)
    editor.apply_edit(0, 0, "first")
    assert await editor.save()
    editor.apply_edit(5, 5, " second")
    assert await editor.save()

    docs = await _stored(store, basic_session.user_id)
    assert len(docs) == 1
    assert [w[0] for w in store.writes_to(DEBRIEF_COLLECTION)] == ["add", "merge"]
    assert docs[0].data["title"] == "first second"


@pytest.mark.asyncio
async def test_switching_days_and_back_reuses_document(basic_session):
    store = FlakyStore()
    editor = _editor(basic_session, store)
    editor.apply_edit(0, 0, "monday notes")
    await editor.save()
    first_id = editor.document_id
    saved_draft = editor.draft

    await editor.fetch_debriefs(NEXT_DAY)
    assert editor.document_id is None
    assert editor.draft == StyledText()

    await editor.fetch_debriefs(DAY)
    assert editor.document_id == first_id
    assert editor.draft == saved_draft
    assert len(await _stored(store, basic_session.user_id)) == 1


@pytest.mark.asyncio
async def test_switching_days_flushes_pending_edit_to_old_day(basic_session):
    store = FlakyStore()
    editor = _editor(basic_session, store, delay=10)
    editor.apply_edit(0, 0, "unsaved thoughts")
    assert editor.autosave_pending

    await editor.fetch_debriefs(NEXT_DAY)

    docs = await _stored(store, basic_session.user_id)
    assert len(docs) == 1
    assert docs[0].data["date"] == "2025-03-14"
    assert docs[0].data["title"] == "unsaved thoughts"
    assert editor.active_day == NEXT_DAY
    assert editor.draft == StyledText()
    assert editor.document_id is None


@pytest.mark.asyncio
async def test_close_saves_without_waiting_for_timer(basic_session):
    store = FlakyStore()
    editor = _editor(basic_session, store, delay=10)
    editor.apply_edit(0, 0, "last words")

    assert await editor.close() is True
    assert not editor.autosave_pending
    docs = await _stored(store, basic_session.user_id)
    assert docs[0].data["title"] == "last words"


@pytest.mark.asyncio
async def test_close_without_edits_writes_nothing(basic_session):
    store = FlakyStore()
    editor = _editor(basic_session, store)
    await editor.fetch_debriefs(DAY)
    assert await editor.close() is False
    assert store.writes == []


@pytest.mark.asyncio
async def test_close_of_untouched_editor_writes_nothing(basic_session):
    store = FlakyStore()
    editor = _editor(basic_session, store)
    assert await editor.close() is False
    assert store.writes == []


@pytest.mark.asyncio
async def test_first_save_without_fetch_updates_stored_document(basic_session):
    store = FlakyStore()
    existing_id = await store.add(
        basic_session.user_id,
        DEBRIEF_COLLECTION,
        {"title": "morning", "text": encode(StyledText.plain("morning")), "date": "2025-03-14"},
    )
    editor = _editor(basic_session, store, delay=10)
    editor.apply_edit(0, 0, "evening")

    assert await editor.save() is True
    docs = await _stored(store, basic_session.user_id)
    assert [d.id for d in docs] == [existing_id]
    assert docs[0].data["title"] == "evening"
    assert editor.document_id == existing_id


@pytest.mark.asyncio
async def test_write_failure_keeps_draft_for_retry(basic_session):
    store = FlakyStore()
    editor = _editor(basic_session, store, delay=10)
    editor.apply_edit(0, 0, "keep me safe")
    store.fail_writes = True

    assert await editor.save() is False
    assert isinstance(editor.last_error, RemoteWriteError)
    assert editor.state == EditorState.EDITING
    assert editor.draft.plain_text == "keep me safe"

    store.fail_writes = False
    assert await editor.save() is True
    assert editor.state == EditorState.CLEAN
    assert editor.last_error is None


@pytest.mark.asyncio
async def test_autosave_failure_is_not_raised(basic_session):
    store = FlakyStore()
    store.fail_writes = True
    editor = _editor(basic_session, store, delay=0.01)
    editor.apply_edit(0, 0, "offline")
    await asyncio.sleep(0.06)
    assert isinstance(editor.last_error, RemoteWriteError)
    assert editor.draft.plain_text == "offline"


@pytest.mark.asyncio
async def test_corrupt_stored_text_loads_empty_draft(basic_session):
    store = FlakyStore()
    await store.set(
        basic_session.user_id,
        DEBRIEF_COLLECTION,
        "legacy-doc",
        {"title": "Old", "text": "YnBsaXN0MDA=", "date": "2025-03-14", "userId": basic_session.user_id},
    )
    editor = _editor(basic_session, store)

    draft = await editor.fetch_debriefs(DAY)

    assert draft == StyledText()
    assert editor.document_id == "legacy-doc"


@pytest.mark.asyncio
async def test_formatting_survives_save_and_reload(basic_session):
    store = FlakyStore()
    editor = _editor(basic_session, store, delay=10)
    editor.apply_edit(0, 0, "hello world")
    editor.toggle_bold(0, 5)
    editor.toggle_bullet(0)
    await editor.close()

    reopened = _editor(basic_session, store)
    draft = await reopened.fetch_debriefs(DAY)
    assert draft.plain_text == "• hello world"
    assert draft.styles_at(2) == {Style.BOLD}
    assert draft.styles_at(8) == frozenset()


@pytest.mark.asyncio
async def test_stored_document_text_decodes(basic_session):
    store = FlakyStore()
    styled = StyledText.plain("from another device").toggle_italic(0, 4)
    await store.add(
        basic_session.user_id,
        DEBRIEF_COLLECTION,
        {"title": "from another device", "text": encode(styled), "date": "2025-03-14"},
    )
    editor = _editor(basic_session, store)
    assert await editor.fetch_debriefs(DAY) == styled


@pytest.mark.asyncio
async def test_edit_during_inflight_save_stays_editing(basic_session):
    class GatedStore(FlakyStore):
        def __init__(self):
            super().__init__()
            self.entered = asyncio.Event()
            self.release = asyncio.Event()

        async def add(self, user_id, collection, data):
            self.entered.set()
            await self.release.wait()
            return await super().add(user_id, collection, data)

    store = GatedStore()
    editor = _editor(basic_session, store, delay=10)
    editor.apply_edit(0, 0, "first")

    save_task = asyncio.create_task(editor.save())
    await store.entered.wait()
    assert editor.state == EditorState.PERSISTING
    editor.apply_edit(5, 5, " and more")
    store.release.set()

    assert await save_task is True
    assert editor.state == EditorState.EDITING
    await editor.close()


@pytest.mark.asyncio
async def test_edits_require_signed_in_session():
    session = UserSession("user_gone")
    editor = _editor(session, FlakyStore())
    session.sign_out()
    with pytest.raises(AuthError):
        editor.apply_edit(0, 0, "hello")


@pytest.mark.asyncio
async def test_edit_outside_draft_is_a_validation_error(basic_session):
    editor = _editor(basic_session, FlakyStore())
    editor.apply_edit(0, 0, "abc")

    with pytest.raises(ValidationError) as exc_info:
        editor.apply_edit(5, 9, "x")
    with pytest.raises(ValidationError):
        editor.toggle_bold(2, 10)

    assert exc_info.value.status_code == 422
    assert editor.draft.plain_text == "abc"
    await editor.close()


@pytest.mark.asyncio
async def test_new_workspace_opens_todays_stored_debrief():
    store = FlakyStore()
    today = date.today().isoformat()
    doc_id = await store.add("user_ws", DEBRIEF_COLLECTION, {"text": encode(StyledText.plain("stored")), "date": today})
    registry = WorkspaceRegistry(store, debounce_seconds=10)

    workspace = await registry.get("user_ws")

    assert workspace.debrief.document_id == doc_id
    assert workspace.debrief.draft.plain_text == "stored"
    assert await registry.close("user_ws") is False


@pytest.mark.asyncio
async def test_workspace_opens_when_debrief_read_fails():
    class DebriefReadFailingStore(FlakyStore):
        debrief_reads_fail = False

        async def list(self, user_id, collection):
            if self.debrief_reads_fail and collection == DEBRIEF_COLLECTION:
                raise RemoteReadError("simulated read failure")
            return await super().list(user_id, collection)

    store = DebriefReadFailingStore()
    today = date.today().isoformat()
    doc_id = await store.add("user_ws", DEBRIEF_COLLECTION, {"text": encode(StyledText.plain("stored")), "date": today})
    store.debrief_reads_fail = True
    registry = WorkspaceRegistry(store, debounce_seconds=10)

    workspace = await registry.get("user_ws")
    assert workspace.debrief.document_id is None

    store.debrief_reads_fail = False
    workspace.debrief.apply_edit(0, 0, "rewritten")
    assert await workspace.debrief.save() is True
    docs = await _stored(store, "user_ws")
    assert [d.id for d in docs] == [doc_id]
    await registry.close("user_ws")
