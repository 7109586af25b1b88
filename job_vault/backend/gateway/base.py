"""
Contract of the remote data gateway the stores talk to.

Every call either returns its success payload or raises: PersistenceError for
record operations, UploadError for blob operations, AuthError for session
operations. Calls are coroutines; the stores await them on a single event loop.
"""
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from ..schemas import AuthEvent, AuthSession, Identity, JobApplication

SessionCallback = Callable[[AuthEvent, Optional[AuthSession]], None]


class DataGateway(ABC):

    # Records
    @abstractmethod
    async def list_records(self, owner_id: str) -> List[JobApplication]:
        """All records owned by ``owner_id``, most recently updated first."""

    @abstractmethod
    async def create_record(self, payload: Dict[str, Any]) -> JobApplication:
        """Insert a record and return its canonical form."""

    @abstractmethod
    async def update_record(self, record_id: str, patch: Dict[str, Any]) -> JobApplication:
        """Merge ``patch`` into the record server-side and return its canonical form."""

    @abstractmethod
    async def delete_record(self, record_id: str) -> None:
        ...

    @abstractmethod
    async def delete_records_for_owner(self, owner_id: str) -> int:
        ...

    # Auth
    @abstractmethod
    async def get_current_user(self) -> Optional[Identity]:
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> AuthSession:
        ...

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        ...

    @abstractmethod
    async def refresh_session(self) -> AuthSession:
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        ...

    @abstractmethod
    async def delete_user(self) -> None:
        ...

    @abstractmethod
    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it.

        The callback fires at least once with the session known at registration
        time, then again on every sign-in, sign-out and token refresh.
        """

    # Storage
    @abstractmethod
    async def upload_blob(self, path: str, content: bytes, content_type: Optional[str] = None) -> None:
        ...

    @abstractmethod
    async def resolve_public_url(self, path: str) -> str:
        ...

    async def close(self) -> None:
        return None
