"""
daybook/features/exercise/service.py
"""

import logging
from typing import List

from daybook.core.errors import RemoteWriteError
from daybook.features.collections.service import Bucket, CollectionManager
from daybook.features.documents.store import EXERCISE_COLLECTION
from daybook.models.exercise import Exercise

logger = logging.getLogger("daybook")


class ExerciseManager(CollectionManager[Exercise]):
    model = Exercise
    collection = EXERCISE_COLLECTION
    bucket = Bucket.DAY

    def sort_visible(self, items: List[Exercise]) -> List[Exercise]:
        """Completed entries sink to the bottom, otherwise store order."""
        return sorted(items, key=lambda exercise: exercise.is_done)

    async def move_to_bottom(self, exercise_id: str) -> Exercise:
        """Mark done and move locally, then write.

        The local change is kept even if the write fails.
        """
        self._require_signed_in()
        exercise = self.get(exercise_id).model_copy(update={"is_done": True})
        self._replace_local(exercise)
        self.refresh()
        try:
            await self.store.set(self.session.user_id, self.collection, exercise.id, exercise.to_document())
        except RemoteWriteError:
            self._log_write_failure("move_to_bottom", exercise.id)
            raise
        return exercise
