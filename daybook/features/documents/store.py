"""
daybook/features/documents/store.py

Per-user document store: ``users/{user_id}/{collection}/{doc_id}``.

Every call is a suspension point. Implementations convert backend failures
into RemoteReadError / RemoteWriteError so callers see one error surface.
"""

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from daybook.core.config import Settings, settings

logger = logging.getLogger("daybook")

INTENTION_COLLECTION = "intention"
EXERCISE_COLLECTION = "exercise"
SLEEP_COLLECTION = "sleep"
GOALS_COLLECTION = "goals"
DEBRIEF_COLLECTION = "debrief"
# Single document per user, keyed by the user id
PROFILE_COLLECTION = "profile"


@dataclass
class Document:
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


class DocumentStore(ABC):
    """Async interface shared by the in-memory and SQL stores."""

    def new_id(self) -> str:
        return str(uuid4())

    @abstractmethod
    async def get(self, user_id: str, collection: str, doc_id: str) -> Optional[Document]:
        ...

    @abstractmethod
    async def list(self, user_id: str, collection: str) -> List[Document]:
        ...

    async def query(self, user_id: str, collection: str, field_name: str, value: Any) -> List[Document]:
        """Documents whose top-level ``field_name`` equals ``value``."""
        docs = await self.list(user_id, collection)
        return [doc for doc in docs if doc.data.get(field_name) == value]

    @abstractmethod
    async def set(self, user_id: str, collection: str, doc_id: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        """Overwrite the document, or merge top-level fields into it when ``merge``."""

    async def add(self, user_id: str, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a store-generated id and return the id."""
        doc_id = self.new_id()
        await self.set(user_id, collection, doc_id, data)
        return doc_id

    @abstractmethod
    async def delete(self, user_id: str, collection: str, doc_id: str) -> None:
        """Remove the document; a missing document is not an error."""


class InMemoryDocumentStore(DocumentStore):
    """Process-local store used in development and tests."""

    def __init__(self):
        self._collections: Dict[Tuple[str, str], Dict[str, Dict[str, Any]]] = {}

    def _bucket(self, user_id: str, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault((user_id, collection), {})

    async def get(self, user_id: str, collection: str, doc_id: str) -> Optional[Document]:
        data = self._bucket(user_id, collection).get(doc_id)
        if data is None:
            return None
        return Document(id=doc_id, data=copy.deepcopy(data))

    async def list(self, user_id: str, collection: str) -> List[Document]:
        return [
            Document(id=doc_id, data=copy.deepcopy(data))
            for doc_id, data in self._bucket(user_id, collection).items()
        ]

    async def set(self, user_id: str, collection: str, doc_id: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        bucket = self._bucket(user_id, collection)
        if merge and doc_id in bucket:
            bucket[doc_id].update(copy.deepcopy(data))
        else:
            bucket[doc_id] = copy.deepcopy(data)

    async def delete(self, user_id: str, collection: str, doc_id: str) -> None:
        self._bucket(user_id, collection).pop(doc_id, None)

    def clear(self) -> None:
        self._collections.clear()


def build_store(settings_obj: Optional[Settings] = None) -> DocumentStore:
    """Store selected by ``DOCUMENT_STORE``."""
    cfg = settings_obj or settings
    kind = (cfg.DOCUMENT_STORE or "memory").lower()
    if kind == "sql":
        from daybook.core.database import create_all_tables, init_engine
        from daybook.features.documents.sql_store import SqlDocumentStore

        init_engine(cfg.TEST_DATABASE_URL or cfg.DATABASE_URL)
        create_all_tables()
        logger.info("[store] using SQL document store")
        return SqlDocumentStore()
    if kind != "memory":
        raise ValueError(f"Unknown DOCUMENT_STORE: {cfg.DOCUMENT_STORE!r}")
    logger.info("[store] using in-memory document store")
    return InMemoryDocumentStore()
