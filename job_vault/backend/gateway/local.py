"""
Self-hosted gateway: SQLAlchemy rows, JWT sessions and a filesystem bucket.
"""
import asyncio
import logging
import os
from datetime import timedelta
from typing import Any, Callable, Dict, List, Optional, Type
from urllib.parse import quote

from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .base import DataGateway, SessionCallback
from ..config.settings import Settings, get_settings
from ..exceptions import AuthError, PersistenceError, UploadError
from ..models.db import crud
from ..models.db.database import create_db_engine, create_session_factory, init_db
from ..schemas import AuthEvent, AuthSession, Identity, JobApplication, JobApplicationDraft, JobApplicationPatch
from ..security import create_access_token, decode_access_token, get_password_hash, verify_password

logger = logging.getLogger(__name__)


def bucket_file_path(bucket_directory: str, path: str) -> str:
    """
    Map an object path onto a file inside the bucket directory.

    Raises:
        ValueError: If the path is empty, absolute or escapes the bucket.
    """
    if not path or os.path.isabs(path):
        raise ValueError(f"Invalid object path: {path!r}")
    root = os.path.abspath(bucket_directory)
    full = os.path.abspath(os.path.join(root, path))
    if os.path.commonpath([root, full]) != root or full == root:
        raise ValueError(f"Object path escapes bucket: {path!r}")
    return full


def validated_columns(schema: Type[BaseModel], payload: Dict[str, Any], ignored) -> Dict[str, Any]:
    """
    Check a raw record payload against ``schema`` before it reaches the database.

    Keys in ``ignored`` are dropped. The remaining values go through unchanged
    so column constraints still see exactly what the caller sent.

    Raises:
        PersistenceError: On unknown columns or values the schema rejects.
    """
    data = {k: v for k, v in payload.items() if k not in ignored}
    unknown = sorted(set(data) - set(schema.model_fields))
    if unknown:
        raise PersistenceError(f"Unknown columns: {', '.join(unknown)}")
    try:
        schema.model_validate(data)
    except ValidationError as exc:
        raise PersistenceError(f"Invalid record: {exc}") from exc
    return data


class LocalGateway(DataGateway):
    """
    Gateway backed by a SQL database and a local directory.

    Blocking database and file work runs in a worker thread so awaiting a
    gateway call never stalls the event loop.
    """

    def __init__(self, settings: Optional[Settings] = None, engine=None):
        self.settings = settings or get_settings()
        self._engine = engine or create_db_engine(self.settings.get_database_url(), echo=self.settings.database_echo)
        init_db(self._engine)
        self._session_factory = create_session_factory(self._engine)
        self._bucket_directory = self.settings.bucket_directory
        self._session: Optional[AuthSession] = None
        self._listeners: List[SessionCallback] = []
        self._pending_initial: Dict[SessionCallback, asyncio.Handle] = {}

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    async def _db_call(self, fn: Callable, *args):
        def work():
            with self._session_factory() as db:
                return fn(db, *args)

        try:
            return await asyncio.to_thread(work)
        except SQLAlchemyError as exc:
            logger.error("Database error in %s: %s", getattr(fn, "__name__", fn), exc)
            raise PersistenceError(str(exc)) from exc

    def _session_owner_id(self) -> Optional[str]:
        """Owner of the current session, or None when there is none or its token no longer verifies."""
        if self._session is None:
            return None
        user_id = decode_access_token(
            self._session.access_token,
            secret_key=self.settings.secret_key,
            algorithm=self.settings.algorithm,
        )
        if user_id is None or user_id != self._session.user.id:
            return None
        return user_id

    def _require_owner(self) -> str:
        owner_id = self._session_owner_id()
        if owner_id is None:
            raise PersistenceError("Not authenticated")
        return owner_id

    def _emit(self, event: AuthEvent, session: Optional[AuthSession]) -> None:
        logger.debug("Auth event %s", event.value)
        for callback in list(self._listeners):
            # A real event supersedes a still-queued initial one
            pending = self._pending_initial.pop(callback, None)
            if pending is not None:
                pending.cancel()
            try:
                callback(event, session)
            except Exception:
                logger.exception("Session listener %r failed on %s", callback, event.value)

    def _issue_session(self, user) -> AuthSession:
        token, expires_at = create_access_token(
            {"sub": user.id},
            expires_delta=timedelta(minutes=self.settings.access_token_expire_minutes),
            secret_key=self.settings.secret_key,
            algorithm=self.settings.algorithm,
        )
        return AuthSession(user=Identity.model_validate(user), access_token=token, expires_at=expires_at)

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    async def list_records(self, owner_id: str) -> List[JobApplication]:
        if owner_id != self._require_owner():
            raise PersistenceError("Permission denied for records of another user")
        rows = await self._db_call(crud.get_applications_for_user, owner_id)
        return [JobApplication.model_validate(row) for row in rows]

    async def create_record(self, payload: Dict[str, Any]) -> JobApplication:
        owner_id = self._require_owner()
        if payload.get("user_id", owner_id) != owner_id:
            raise PersistenceError("Cannot create records for another user")
        data = validated_columns(JobApplicationDraft, payload, ("id", "user_id", "updated_at"))
        row = await self._db_call(crud.create_application_for_user, data, owner_id)
        return JobApplication.model_validate(row)

    async def update_record(self, record_id: str, patch: Dict[str, Any]) -> JobApplication:
        owner_id = self._require_owner()
        data = validated_columns(JobApplicationPatch, patch, crud.IMMUTABLE_COLUMNS)
        row = await self._db_call(crud.update_application, record_id, data, owner_id)
        if row is None:
            raise PersistenceError(f"Application {record_id} not found")
        return JobApplication.model_validate(row)

    async def delete_record(self, record_id: str) -> None:
        owner_id = self._require_owner()
        row = await self._db_call(crud.delete_application, record_id, owner_id)
        if row is None:
            raise PersistenceError(f"Application {record_id} not found")

    async def delete_records_for_owner(self, owner_id: str) -> int:
        if owner_id != self._require_owner():
            raise PersistenceError("Permission denied for records of another user")
        return await self._db_call(crud.delete_applications_for_user, owner_id)

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------
    async def get_current_user(self) -> Optional[Identity]:
        if self._session is None:
            return None
        if self._session_owner_id() is None:
            logger.info("Session token expired or invalid")
            return None
        return self._session.user

    async def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> AuthSession:
        email = (email or "").strip().lower()
        if not email or not password:
            raise AuthError("Email and password are required")
        hashed_password = get_password_hash(password)
        try:
            user = await self._db_call(crud.create_user, email, hashed_password, full_name)
        except PersistenceError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise AuthError("User already registered") from exc
            raise
        self._session = self._issue_session(user)
        self._emit(AuthEvent.SIGNED_IN, self._session)
        return self._session

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        email = (email or "").strip().lower()
        user = await self._db_call(crud.get_user_by_email, email)
        if not user or not user.is_active or not verify_password(password, user.hashed_password):
            raise AuthError("Invalid login credentials")
        self._session = self._issue_session(user)
        self._emit(AuthEvent.SIGNED_IN, self._session)
        return self._session

    async def refresh_session(self) -> AuthSession:
        if self._session is None:
            raise AuthError("No session to refresh")
        user = await self._db_call(crud.get_user_by_id, self._session.user.id)
        if user is None:
            raise AuthError("User no longer exists")
        self._session = self._issue_session(user)
        self._emit(AuthEvent.TOKEN_REFRESHED, self._session)
        return self._session

    async def sign_out(self) -> None:
        if self._session is None:
            return
        self._session = None
        self._emit(AuthEvent.SIGNED_OUT, None)

    async def delete_user(self) -> None:
        if self._session is None:
            raise AuthError("Not authenticated")
        try:
            await self._db_call(crud.delete_user, self._session.user.id)
        except PersistenceError as exc:
            raise AuthError(f"Could not delete user: {exc}") from exc
        self._session = None
        self._emit(AuthEvent.USER_DELETED, None)

    def on_session_change(self, callback: SessionCallback) -> Callable[[], None]:
        self._listeners.append(callback)
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            callback(AuthEvent.INITIAL_SESSION, self._session)
        else:
            self._pending_initial[callback] = loop.call_soon(self._deliver_initial, callback)

        def unsubscribe() -> None:
            pending = self._pending_initial.pop(callback, None)
            if pending is not None:
                pending.cancel()
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _deliver_initial(self, callback: SessionCallback) -> None:
        if self._pending_initial.pop(callback, None) is None:
            return
        # Session as of delivery, not as of subscription
        try:
            callback(AuthEvent.INITIAL_SESSION, self._session)
        except Exception:
            logger.exception("Session listener %r failed on %s", callback, AuthEvent.INITIAL_SESSION.value)

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------
    async def upload_blob(self, path: str, content: bytes, content_type: Optional[str] = None) -> None:
        self._require_upload_session()
        try:
            target = bucket_file_path(self._bucket_directory, path)
        except ValueError as exc:
            raise UploadError(str(exc)) from exc

        def write() -> None:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            # "x" refuses to overwrite an existing object
            with open(target, "xb") as fh:
                fh.write(content)

        try:
            await asyncio.to_thread(write)
        except FileExistsError as exc:
            raise UploadError(f"Object already exists: {path}") from exc
        except OSError as exc:
            logger.error("Failed to store blob %s: %s", path, exc)
            raise UploadError(f"Failed to store {path}: {exc}") from exc
        logger.info("Stored blob %s (%d bytes, %s)", path, len(content), content_type or "unknown type")

    async def resolve_public_url(self, path: str) -> str:
        try:
            bucket_file_path(self._bucket_directory, path)
        except ValueError as exc:
            raise UploadError(str(exc)) from exc
        base = self.settings.public_base_url.rstrip("/")
        return f"{base}/storage/{quote(self.settings.storage_bucket)}/{quote(path)}"

    def _require_upload_session(self) -> None:
        if self._session_owner_id() is None:
            raise UploadError("Not authenticated")

    async def close(self) -> None:
        for pending in self._pending_initial.values():
            pending.cancel()
        self._pending_initial.clear()
        self._listeners.clear()
        self._engine.dispose()
