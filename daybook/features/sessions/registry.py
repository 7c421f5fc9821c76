"""
daybook/features/sessions/registry.py

One workspace per signed-in user: the session plus every feature service
bound to it. The HTTP layer looks workspaces up by user id.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from daybook.core.errors import RemoteReadError
from daybook.core.session import UserSession
from daybook.features.auth.service import AuthProvider
from daybook.features.debrief.service import DebriefEditor
from daybook.features.documents.store import DocumentStore
from daybook.features.exercise.service import ExerciseManager
from daybook.features.goals.service import GoalManager
from daybook.features.intentions.service import IntentionManager
from daybook.features.profile.service import ProfileService
from daybook.features.sleep.service import SleepManager
from daybook.features.subscription.service import SubscriptionService

logger = logging.getLogger("daybook")


@dataclass
class Workspace:
    session: UserSession
    intentions: IntentionManager
    exercise: ExerciseManager
    sleep: SleepManager
    goals: GoalManager
    debrief: DebriefEditor
    subscription: SubscriptionService
    profile: ProfileService

    @classmethod
    def build(
        cls,
        session: UserSession,
        store: DocumentStore,
        *,
        provider: Optional[AuthProvider] = None,
        debounce_seconds: Optional[float] = None,
    ) -> "Workspace":
        return cls(
            session=session,
            intentions=IntentionManager(session, store),
            exercise=ExerciseManager(session, store),
            sleep=SleepManager(session, store),
            goals=GoalManager(session, store),
            debrief=DebriefEditor(session, store, debounce_seconds=debounce_seconds),
            subscription=SubscriptionService(session, store),
            profile=ProfileService(session, store, provider),
        )

    async def close(self) -> bool:
        """Final debrief save; True when something was written."""
        return await self.debrief.close()


class WorkspaceRegistry:
    def __init__(
        self,
        store: DocumentStore,
        *,
        provider: Optional[AuthProvider] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.store = store
        self.provider = provider
        self.debounce_seconds = debounce_seconds
        self._workspaces: Dict[str, Workspace] = {}
        self._lock = asyncio.Lock()

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._workspaces

    async def get(self, user_id: str) -> Workspace:
        """Workspace for ``user_id``, created with the stored tier on first use."""
        workspace = self._workspaces.get(user_id)
        if workspace is not None and workspace.session.is_signed_in:
            return workspace

        async with self._lock:
            workspace = self._workspaces.get(user_id)
            if workspace is not None and workspace.session.is_signed_in:
                return workspace
            session = UserSession(user_id)
            workspace = Workspace.build(
                session,
                self.store,
                provider=self.provider,
                debounce_seconds=self.debounce_seconds,
            )
            session.set_tier(await workspace.subscription.stored_status())
            try:
                await workspace.debrief.fetch_debriefs(workspace.debrief.active_day)
            except RemoteReadError:
                # The first save looks the day up again before writing
                logger.warning("[workspace] debrief not loaded", extra={"user_id": user_id})
            self._workspaces[user_id] = workspace
            logger.info("[workspace] opened", extra={"user_id": user_id, "tier": session.tier.value})
            return workspace

    async def close(self, user_id: str) -> bool:
        workspace = self._workspaces.pop(user_id, None)
        if workspace is None:
            return False
        saved = await workspace.close()
        logger.info("[workspace] closed", extra={"user_id": user_id, "saved": saved})
        return saved

    async def close_all(self) -> None:
        for user_id in list(self._workspaces):
            try:
                await self.close(user_id)
            except Exception:
                logger.exception("[workspace] close failed", extra={"user_id": user_id})
