"""
Explicit per-user session context.

Each feature service receives the session at construction instead of reading
ambient auth state. Tier and sign-out changes are pushed to subscribers.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from daybook.models.entitlement import Tier

logger = logging.getLogger("daybook")


class SessionEvent(str, Enum):
    TIER_CHANGED = "tier_changed"
    SIGNED_OUT = "signed_out"


@dataclass(frozen=True)
class SessionChange:
    event: SessionEvent
    user_id: str
    tier: Tier


SessionListener = Callable[[SessionChange], None]


class UserSession:
    """Current signed-in user plus their entitlement tier."""

    def __init__(self, user_id: str, *, tier: Tier = Tier.BASIC, email: Optional[str] = None):
        if not user_id:
            raise ValueError("user_id is required")
        self.user_id = user_id
        self.email = email
        self._tier = Tier(tier)
        self._signed_in = True
        self._listeners: List[SessionListener] = []

    @property
    def tier(self) -> Tier:
        return self._tier

    @property
    def is_signed_in(self) -> bool:
        return self._signed_in

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_tier(self, tier: Tier) -> None:
        tier = Tier(tier)
        if tier == self._tier:
            return
        previous = self._tier
        self._tier = tier
        logger.info(
            "[session] tier changed",
            extra={"user_id": self.user_id, "tier": tier.value, "previous_tier": previous.value},
        )
        self._notify(SessionEvent.TIER_CHANGED)

    def sign_out(self) -> None:
        if not self._signed_in:
            return
        self._signed_in = False
        logger.info("[session] signed out", extra={"user_id": self.user_id})
        self._notify(SessionEvent.SIGNED_OUT)

    def _notify(self, event: SessionEvent) -> None:
        change = SessionChange(event=event, user_id=self.user_id, tier=self._tier)
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception:
                logger.exception("[session] listener failed", extra={"user_id": self.user_id})
