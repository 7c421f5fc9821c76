"""
daybook/features/documents/sql_store.py

SQLAlchemy-backed document store: one JSON row per document in the
``documents`` table. Sessions are synchronous, so each call runs in a worker
thread to keep the event loop free.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError

from daybook.core.database import documents, get_db_session
from daybook.core.errors import RemoteReadError, RemoteWriteError
from daybook.features.documents.store import Document, DocumentStore

logger = logging.getLogger("daybook")


def _path(user_id: str, collection: str):
    return and_(documents.c.user_id == user_id, documents.c.collection == collection)


class SqlDocumentStore(DocumentStore):

    async def get(self, user_id: str, collection: str, doc_id: str) -> Optional[Document]:
        return await self._read(self._get_sync, user_id, collection, doc_id)

    async def list(self, user_id: str, collection: str) -> List[Document]:
        return await self._read(self._list_sync, user_id, collection)

    async def set(self, user_id: str, collection: str, doc_id: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        await self._write(self._set_sync, user_id, collection, doc_id, data, merge)

    async def delete(self, user_id: str, collection: str, doc_id: str) -> None:
        await self._write(self._delete_sync, user_id, collection, doc_id)

    # sync bodies ----------------------------------------------------------

    @staticmethod
    def _get_sync(user_id: str, collection: str, doc_id: str) -> Optional[Document]:
        with get_db_session() as session:
            row = session.execute(
                select(documents.c.doc_id, documents.c.data).where(
                    _path(user_id, collection), documents.c.doc_id == doc_id
                )
            ).first()
            if not row:
                return None
            return Document(id=row.doc_id, data=dict(row.data or {}))

    @staticmethod
    def _list_sync(user_id: str, collection: str) -> List[Document]:
        with get_db_session() as session:
            rows = session.execute(
                select(documents.c.doc_id, documents.c.data)
                .where(_path(user_id, collection))
                .order_by(documents.c.created_at, documents.c.doc_id)
            ).all()
            return [Document(id=row.doc_id, data=dict(row.data or {})) for row in rows]

    @staticmethod
    def _set_sync(user_id: str, collection: str, doc_id: str, data: Dict[str, Any], merge: bool) -> None:
        with get_db_session() as session:
            existing = session.execute(
                select(documents.c.data).where(_path(user_id, collection), documents.c.doc_id == doc_id)
            ).first()
            if existing is None:
                session.execute(
                    insert(documents).values(
                        user_id=user_id,
                        collection=collection,
                        doc_id=doc_id,
                        data=dict(data),
                    )
                )
                return
            payload = {**(existing.data or {}), **data} if merge else dict(data)
            session.execute(
                update(documents)
                .where(_path(user_id, collection), documents.c.doc_id == doc_id)
                .values(data=payload)
            )

    @staticmethod
    def _delete_sync(user_id: str, collection: str, doc_id: str) -> None:
        with get_db_session() as session:
            session.execute(
                delete(documents).where(_path(user_id, collection), documents.c.doc_id == doc_id)
            )

    # error mapping --------------------------------------------------------

    async def _read(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as exc:
            logger.error("[store] read failed", extra={"user_id": args[0], "collection": args[1], "error": str(exc)})
            raise RemoteReadError(f"Could not read {args[1]}") from exc

    async def _write(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as exc:
            logger.error("[store] write failed", extra={"user_id": args[0], "collection": args[1], "error": str(exc)})
            raise RemoteWriteError(f"Could not save {args[1]}") from exc
