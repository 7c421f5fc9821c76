"""
daybook/features/subscription/service.py

Maps purchase-channel product ids onto the user's tier.

The premium product id grants Premium; with no premium entitlement the
status stored on the profile is kept. Every resolved status is written back
to the profile and pushed to the session so quota checks see it immediately.
"""

import logging
from typing import Iterable, Optional

from daybook.core.config import settings
from daybook.core.errors import RemoteReadError, RemoteWriteError
from daybook.core.session import UserSession
from daybook.features.documents.store import PROFILE_COLLECTION, DocumentStore
from daybook.models.entitlement import Tier

logger = logging.getLogger("daybook")


def tier_for_product(product_id: Optional[str], premium_product_id: Optional[str] = None) -> Tier:
    premium = premium_product_id or settings.PREMIUM_PRODUCT_ID
    return Tier.PREMIUM if product_id == premium else Tier.BASIC


class SubscriptionService:
    def __init__(self, session: UserSession, store: DocumentStore, *, premium_product_id: Optional[str] = None):
        self.session = session
        self.store = store
        self.premium_product_id = premium_product_id or settings.PREMIUM_PRODUCT_ID

    async def stored_status(self) -> Tier:
        """Tier recorded on the profile document (Basic when absent)."""
        doc = await self.store.get(self.session.user_id, PROFILE_COLLECTION, self.session.user_id)
        if doc is None:
            return Tier.BASIC
        try:
            return Tier(doc.data.get("subscriptionStatus") or Tier.BASIC.value)
        except ValueError:
            logger.warning(
                "[subscription] unknown stored status",
                extra={"user_id": self.session.user_id, "status": doc.data.get("subscriptionStatus")},
            )
            return Tier.BASIC

    async def check_subscription_status(self, active_product_ids: Iterable[str]) -> Tier:
        """Resolve the tier from the purchase channel's active entitlements."""
        if self.premium_product_id in set(active_product_ids):
            return await self.update_subscription_status(Tier.PREMIUM)
        try:
            stored = await self.stored_status()
        except RemoteReadError:
            logger.error("[subscription] status read failed", extra={"user_id": self.session.user_id})
            raise
        return await self.update_subscription_status(stored)

    async def handle_purchase(self, product_id: str) -> Tier:
        return await self.update_subscription_status(tier_for_product(product_id, self.premium_product_id))

    async def update_subscription_status(self, tier: Tier) -> Tier:
        tier = Tier(tier)
        try:
            await self.store.set(
                self.session.user_id,
                PROFILE_COLLECTION,
                self.session.user_id,
                {"subscriptionStatus": tier.value},
                merge=True,
            )
        except RemoteWriteError:
            logger.error(
                "[subscription] status write failed",
                extra={"user_id": self.session.user_id, "tier": tier.value},
            )
            raise
        self.session.set_tier(tier)
        return tier
