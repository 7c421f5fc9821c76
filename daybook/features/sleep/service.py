"""
daybook/features/sleep/service.py

Sleep log, bucketed by the night recorded in ``createdate``.
"""

from daybook.features.collections.service import Bucket, CollectionManager
from daybook.features.documents.store import SLEEP_COLLECTION
from daybook.models.sleep import Sleep


class SleepManager(CollectionManager[Sleep]):
    model = Sleep
    collection = SLEEP_COLLECTION
    bucket = Bucket.DAY
