"""Test doubles for the external collaborators (auth provider, document store)."""

from typing import Any, Dict, List, Optional, Tuple

from daybook.core.errors import AuthError, RemoteReadError, RemoteWriteError
from daybook.features.auth.service import AuthProvider
from daybook.features.documents.store import Document, InMemoryDocumentStore
from daybook.models.user import AuthUser


class FlakyStore(InMemoryDocumentStore):
    """In-memory store that records writes and can be told to fail."""

    def __init__(self):
        super().__init__()
        self.fail_reads = False
        self.fail_writes = False
        self.writes: List[Tuple[str, str, str, Optional[str]]] = []

    def _check_write(self):
        if self.fail_writes:
            raise RemoteWriteError("simulated write failure")

    def _check_read(self):
        if self.fail_reads:
            raise RemoteReadError("simulated read failure")

    async def get(self, user_id: str, collection: str, doc_id: str) -> Optional[Document]:
        self._check_read()
        return await super().get(user_id, collection, doc_id)

    async def list(self, user_id: str, collection: str) -> List[Document]:
        self._check_read()
        return await super().list(user_id, collection)

    async def set(self, user_id: str, collection: str, doc_id: str, data: Dict[str, Any], *, merge: bool = False) -> None:
        self._check_write()
        self.writes.append(("merge" if merge else "set", collection, doc_id, None))
        await super().set(user_id, collection, doc_id, data, merge=merge)

    async def add(self, user_id: str, collection: str, data: Dict[str, Any]) -> str:
        self._check_write()
        doc_id = self.new_id()
        self.writes.append(("add", collection, doc_id, None))
        await super().set(user_id, collection, doc_id, data)
        return doc_id

    async def delete(self, user_id: str, collection: str, doc_id: str) -> None:
        self._check_write()
        self.writes.append(("delete", collection, doc_id, None))
        await super().delete(user_id, collection, doc_id)

    def writes_to(self, collection: str) -> List[tuple]:
        return [w for w in self.writes if w[1] == collection]


class FakeAuthProvider(AuthProvider):
    def __init__(self):
        self.users: Dict[str, Dict[str, Any]] = {}
        self.signed_out = 0
        self.verification_sent: List[str] = []
        self.reset_sent: List[str] = []
        self.deleted: List[str] = []

    def add_user(self, email: str, password: str, *, verified: bool = True) -> AuthUser:
        user = AuthUser(id=f"uid_{len(self.users) + 1}", email=email, email_verified=verified)
        self.users[email] = {"password": password, "user": user}
        return user

    async def sign_in(self, email: str, password: str) -> AuthUser:
        record = self.users.get(email)
        if record is None or record["password"] != password:
            raise AuthError("The password is invalid or the user does not have a password.", code="invalid_credentials")
        return record["user"]

    async def sign_up(self, email: str, password: str) -> AuthUser:
        if email in self.users:
            raise AuthError("The email address is already in use by another account.", code="email_in_use")
        return self.add_user(email, password, verified=False)

    async def sign_out(self) -> None:
        self.signed_out += 1

    async def send_email_verification(self, user: AuthUser) -> None:
        self.verification_sent.append(user.email)

    async def send_password_reset(self, email: str) -> None:
        self.reset_sent.append(email)

    async def delete_user(self, user_id: str) -> None:
        self.deleted.append(user_id)
