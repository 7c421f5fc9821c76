"""
daybook/features/intentions/service.py

Daily intentions: priority-sorted, split into active and completed lists,
capped per day on Basic.
"""

from typing import List

from daybook.features.collections.service import Bucket, CollectionManager
from daybook.features.documents.store import INTENTION_COLLECTION
from daybook.models.entitlement import Quota
from daybook.models.intention import Intention


class IntentionManager(CollectionManager[Intention]):
    model = Intention
    collection = INTENTION_COLLECTION
    bucket = Bucket.DAY
    quota = Quota.DAILY_INTENTIONS

    def sort_visible(self, items: List[Intention]) -> List[Intention]:
        # sorted() is stable, so equal priorities keep store order
        return sorted(items, key=lambda intention: intention.rank)

    @property
    def active(self) -> List[Intention]:
        return [intention for intention in self.visible if not intention.is_done]

    @property
    def completed(self) -> List[Intention]:
        return [intention for intention in self.visible if intention.is_done]

    async def move_to_completed(self, intention_id: str) -> Intention:
        intention = self.get(intention_id)
        if intention.is_done:
            return intention
        return await self.toggle_completion(intention)

    async def move_back_to_main_list(self, intention_id: str) -> Intention:
        intention = self.get(intention_id)
        if not intention.is_done:
            return intention
        return await self.toggle_completion(intention)
