import os
from datetime import date, datetime
from enum import Enum
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, Dict, Any, List


# Status Enums
class JobStatus(str, Enum):
    APPLIED = "Applied"
    OA = "OA"
    INTERVIEW = "Interview"
    OFFER = "Offer"
    REJECTED = "Rejected"
    GHOSTED = "Ghosted"


# Ordered stages shown in the pipeline view. Rejected/Ghosted are terminal and sit outside it.
PIPELINE_STAGES = (JobStatus.APPLIED, JobStatus.OA, JobStatus.INTERVIEW, JobStatus.OFFER)

# Statuses that mean the company answered at all.
RESPONSE_STATUSES = frozenset({JobStatus.OA, JobStatus.INTERVIEW, JobStatus.OFFER, JobStatus.REJECTED})

ALL_STATUSES = "All"


class LifecycleState(str, Enum):
    ACTIVE = "active"
    TRASHED = "trashed"
    PURGED = "purged"


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _check_resume_pair(file_name: Optional[str], url: Optional[str]) -> None:
    if (file_name is None) != (url is None):
        raise ValueError("resume_file_name and resume_text must be set or cleared together")


# Application Schemas
class JobApplicationBase(BaseModel):
    company: str
    role: str
    status: JobStatus = JobStatus.APPLIED
    jd_text: str = ""
    notes: str = ""
    resume_file_name: Optional[str] = None
    resume_text: Optional[str] = None
    skill_gaps: List[str] = Field(default_factory=list)
    application_url: Optional[str] = None
    follow_up_date: Optional[str] = None
    is_trash: bool = False


class JobApplicationDraft(JobApplicationBase):
    """Everything the client supplies when adding a record.

    ``id``, ``user_id`` and ``updated_at`` come from the gateway and the session.
    """
    applied_date: str = Field(default_factory=lambda: date.today().isoformat())

    @field_validator("application_url", "follow_up_date", "resume_file_name", "resume_text", mode="before")
    @classmethod
    def omit_blank_optionals(cls, v):
        return _blank_to_none(v)

    @model_validator(mode="after")
    def check_resume_fields(self):
        _check_resume_pair(self.resume_file_name, self.resume_text)
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Insert payload with absent optionals left out entirely."""
        return self.model_dump(mode="json", exclude_none=True)


class JobApplication(JobApplicationBase):
    """Canonical record as returned by the gateway after a read or write."""
    id: str
    user_id: str
    applied_date: str
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def lifecycle(self) -> LifecycleState:
        return LifecycleState.TRASHED if self.is_trash else LifecycleState.ACTIVE

    @property
    def has_resume(self) -> bool:
        return bool(self.resume_file_name and self.resume_text)


class JobApplicationPatch(BaseModel):
    """Partial update. Identity fields and the applied date are not patchable."""
    company: Optional[str] = None
    role: Optional[str] = None
    status: Optional[JobStatus] = None
    jd_text: Optional[str] = None
    notes: Optional[str] = None
    resume_file_name: Optional[str] = None
    resume_text: Optional[str] = None
    skill_gaps: Optional[List[str]] = None
    application_url: Optional[str] = None
    follow_up_date: Optional[str] = None
    is_trash: Optional[bool] = None

    model_config = {"extra": "forbid"}

    @field_validator("application_url", "follow_up_date", "resume_file_name", "resume_text", mode="before")
    @classmethod
    def clear_blank_optionals(cls, v):
        return _blank_to_none(v)

    @model_validator(mode="after")
    def check_resume_fields(self):
        touched = {"resume_file_name", "resume_text"} & self.model_fields_set
        if touched and len(touched) != 2:
            raise ValueError("resume_file_name and resume_text must be patched together")
        _check_resume_pair(self.resume_file_name, self.resume_text)
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Only the fields the caller actually set; cleared optionals go out as None."""
        return self.model_dump(mode="json", exclude_unset=True)


# Auth Schemas
class Identity(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None

    model_config = {"from_attributes": True}


class AuthEvent(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_DELETED = "USER_DELETED"


class AuthSession(BaseModel):
    user: Identity
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class TokenData(BaseModel):
    user_id: Optional[str] = None


# File Schemas
class ResumeFile(BaseModel):
    name: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return os.path.splitext(self.name)[1].lower()


# View Schemas
class ApplicationStats(BaseModel):
    total: int = 0
    online_assessments: int = 0
    interviews: int = 0
    responses: int = 0
    response_rate: int = 0
