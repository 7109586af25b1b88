"""
Client-side store for the signed-in user's job applications.

The store owns the in-memory collection and mediates every write through the
data gateway. Local state only ever holds the last-known-good server state or
a just-confirmed server result: failed writes leave it untouched and re-raise.
Fetching is the one exception and degrades to stale data plus a logged error.
"""
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set, Tuple, Union

from .observable import Observable
from . import views
from ..config.settings import Settings, get_settings
from ..exceptions import AuthError, InvalidTransitionError, PersistenceError, UploadError
from ..gateway.base import DataGateway
from ..schemas import (
    ALL_STATUSES,
    ApplicationStats,
    JobApplication,
    JobApplicationDraft,
    JobApplicationPatch,
    JobStatus,
    LifecycleState,
    ResumeFile,
)
from ..utils.formatting import format_bytes

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def build_resume_path(application_id: str, file_name: str, prefix: str = "applications") -> str:
    """
    Storage path for a resume upload.

    A random component keeps repeated uploads for the same record from
    colliding; the original extension is kept so the object stays openable.
    """
    ext = os.path.splitext(file_name)[1].lower()
    return f"{prefix}/{application_id}-{uuid.uuid4().hex}{ext}"


class ApplicationStore(Observable):
    """
    Owns ``applications`` (most recently updated first), ``loading``,
    ``search_query`` and ``status_filter``.

    State is read through properties and changed only through the operations
    below; observers are notified after every change.
    """

    def __init__(self, gateway: DataGateway, auth_store=None, settings: Optional[Settings] = None):
        super().__init__()
        self._gateway = gateway
        self._settings = settings or get_settings()
        self._applications: List[JobApplication] = []
        self._loading = True
        self._search_query = ""
        self._status_filter: Union[JobStatus, str] = ALL_STATUSES
        self._purging: Set[str] = set()
        self._auth_unsubscribe = auth_store.subscribe(self._on_auth_change) if auth_store is not None else None

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------
    @property
    def applications(self) -> Tuple[JobApplication, ...]:
        return tuple(self._applications)

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def search_query(self) -> str:
        return self._search_query

    @property
    def status_filter(self) -> Union[JobStatus, str]:
        return self._status_filter

    def get(self, application_id: str) -> Optional[JobApplication]:
        for app in self._applications:
            if app.id == application_id:
                return app
        return None

    def lifecycle_of(self, application_id: str) -> Optional[LifecycleState]:
        if application_id in self._purging:
            return LifecycleState.PURGED
        app = self.get(application_id)
        return app.lifecycle if app else None

    @property
    def active_applications(self) -> List[JobApplication]:
        return views.active_applications(self._applications)

    @property
    def trashed_applications(self) -> List[JobApplication]:
        return views.trashed_applications(self._applications)

    @property
    def filtered_applications(self) -> List[JobApplication]:
        return views.filter_applications(self._applications, self._search_query, self._status_filter)

    @property
    def stats(self) -> ApplicationStats:
        return views.compute_stats(self._applications)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    async def fetch_applications(self) -> None:
        """Replace the collection with the server's; on failure keep the stale one."""
        self._loading = True
        self._notify()
        try:
            user = await self._gateway.get_current_user()
            if user is None:
                raise AuthError("No signed-in user")
            records = await self._gateway.list_records(user.id)
        except Exception as exc:
            logger.error("Error fetching applications: %s", exc)
            self._loading = False
            self._notify()
            return

        self._applications = list(records)
        self._loading = False
        logger.debug("Fetched %d applications", len(records))
        self._notify()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    async def add_application(self, draft: Union[JobApplicationDraft, Dict[str, Any]]) -> JobApplication:
        """
        Create a record for the current user and prepend the canonical result.

        Company and role are expected to be checked by the caller. A blank
        ``application_url`` is dropped from the payload instead of being sent.

        Raises:
            AuthError: If nobody is signed in.
            PersistenceError: If the gateway rejects the insert.
        """
        if not isinstance(draft, JobApplicationDraft):
            draft = JobApplicationDraft.model_validate(draft)
        payload = draft.to_payload()

        user = await self._gateway.get_current_user()
        if user is None:
            raise AuthError("Cannot add an application without a signed-in user")
        payload["user_id"] = user.id

        try:
            record = await self._gateway.create_record(payload)
        except PersistenceError as exc:
            logger.error("Error adding application for %s: %s", draft.company, exc)
            raise

        self._applications = [record] + self._applications
        logger.info("Added application %s (%s @ %s)", record.id, record.role, record.company)
        self._notify()
        return record

    async def update_application(
        self, application_id: str, patch: Union[JobApplicationPatch, Dict[str, Any]]
    ) -> JobApplication:
        """
        Apply a partial update and swap in the server's canonical record.

        Raises:
            ValueError: If the patch touches immutable or unknown fields.
            PersistenceError: If the gateway rejects the update.
        """
        if not isinstance(patch, JobApplicationPatch):
            patch = JobApplicationPatch.model_validate(patch)
        if application_id in self._purging:
            raise InvalidTransitionError(f"Application {application_id} is being purged")
        payload = patch.to_payload()
        payload["updated_at"] = _timestamp()

        try:
            record = await self._gateway.update_record(application_id, payload)
        except PersistenceError as exc:
            logger.error("Error updating application %s: %s", application_id, exc)
            raise

        # Whichever response settles last wins locally, same as on the server
        self._applications = [record if app.id == application_id else app for app in self._applications]
        self._notify()
        return record

    async def move_to_trash(self, application_id: str, is_trash: bool = True) -> None:
        if application_id in self._purging:
            raise InvalidTransitionError(f"Application {application_id} is being purged")
        try:
            await self._gateway.update_record(application_id, {"is_trash": is_trash, "updated_at": _timestamp()})
        except PersistenceError as exc:
            logger.error("Error moving application %s to trash: %s", application_id, exc)
            raise

        self._applications = [
            app.model_copy(update={"is_trash": is_trash}) if app.id == application_id else app
            for app in self._applications
        ]
        logger.info("Application %s %s", application_id, "moved to trash" if is_trash else "restored")
        self._notify()

    async def restore_from_trash(self, application_id: str) -> None:
        await self.move_to_trash(application_id, False)

    async def purge_from_trash(self, application_id: str) -> None:
        """
        Permanently delete a trashed record. There is no undo.

        Raises:
            InvalidTransitionError: If the record is still active or already being purged.
            PersistenceError: If the gateway delete fails.
        """
        state = self.lifecycle_of(application_id)
        if state is LifecycleState.PURGED:
            raise InvalidTransitionError(f"Application {application_id} is already being purged")
        if state is LifecycleState.ACTIVE:
            raise InvalidTransitionError(f"Application {application_id} must be in the trash before it is purged")

        self._purging.add(application_id)
        try:
            await self._gateway.delete_record(application_id)
        except PersistenceError as exc:
            logger.error("Error purging application %s: %s", application_id, exc)
            raise
        finally:
            self._purging.discard(application_id)

        self._applications = [app for app in self._applications if app.id != application_id]
        logger.info("Purged application %s", application_id)
        self._notify()

    async def upload_resume(self, application_id: str, file: ResumeFile) -> str:
        """
        Store ``file`` and attach it to the record; returns the public URL.

        File name and URL land in a single record patch.

        Raises:
            UploadError: If the file is rejected or the blob cannot be stored.
            PersistenceError: If attaching the URL to the record fails.
        """
        self._check_upload(file)
        if application_id in self._purging:
            raise InvalidTransitionError(f"Application {application_id} is being purged")
        path = build_resume_path(application_id, file.name, self._settings.storage_prefix)

        try:
            await self._gateway.upload_blob(path, file.content, file.content_type)
            url = await self._gateway.resolve_public_url(path)
        except UploadError as exc:
            logger.error("Error uploading resume for %s: %s", application_id, exc)
            raise

        await self.update_application(
            application_id,
            JobApplicationPatch(resume_file_name=file.name, resume_text=url),
        )
        return url

    def _check_upload(self, file: ResumeFile) -> None:
        allowed = [ext.lower() for ext in self._settings.allowed_file_extensions]
        if allowed and file.extension not in allowed:
            raise UploadError(f"Unsupported file type {file.extension or '(none)'}; allowed: {', '.join(allowed)}")
        if file.size > self._settings.max_file_size:
            raise UploadError(
                f"{file.name} is {format_bytes(file.size)}; the limit is {format_bytes(self._settings.max_file_size)}"
            )

    # ------------------------------------------------------------------
    # Convenience writes
    # ------------------------------------------------------------------
    async def set_status(self, application_id: str, status: Union[JobStatus, str]) -> JobApplication:
        status = JobStatus(status)
        current = self._require(application_id)
        if current.status == status:
            return current
        return await self.update_application(application_id, JobApplicationPatch(status=status))

    async def add_skill_gap(self, application_id: str, skill: str) -> JobApplication:
        skill = (skill or "").strip()
        if not skill:
            raise ValueError("Skill cannot be empty")
        current = self._require(application_id)
        return await self.update_application(
            application_id, JobApplicationPatch(skill_gaps=current.skill_gaps + [skill])
        )

    async def remove_skill_gap(self, application_id: str, skill: str) -> JobApplication:
        current = self._require(application_id)
        return await self.update_application(
            application_id, JobApplicationPatch(skill_gaps=[s for s in current.skill_gaps if s != skill])
        )

    async def remove_resume(self, application_id: str) -> JobApplication:
        return await self.update_application(
            application_id, JobApplicationPatch(resume_file_name=None, resume_text=None)
        )

    def _require(self, application_id: str) -> JobApplication:
        app = self.get(application_id)
        if app is None:
            raise KeyError(f"Application {application_id} is not loaded")
        return app

    # ------------------------------------------------------------------
    # Local state
    # ------------------------------------------------------------------
    def set_search_query(self, query: str) -> None:
        self._search_query = query or ""
        self._notify()

    def set_status_filter(self, status_filter: Union[JobStatus, str]) -> None:
        self._status_filter = views.normalize_status_filter(status_filter)
        self._notify()

    def clear(self) -> None:
        self._applications = []
        self._search_query = ""
        self._status_filter = ALL_STATUSES
        self._purging.clear()
        self._notify()

    def _on_auth_change(self, auth_store) -> None:
        if not auth_store.loading and auth_store.user is None and self._applications:
            logger.info("Signed out; dropping %d cached applications", len(self._applications))
            self.clear()

    def close(self) -> None:
        if self._auth_unsubscribe is not None:
            self._auth_unsubscribe()
            self._auth_unsubscribe = None
        self._clear_observers()
