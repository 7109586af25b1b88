import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, JSON, String, Text
from .database import Base
from ...schemas import JobStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        # Optional columns hold NULL when absent, never an empty string.
        CheckConstraint("application_url IS NULL OR length(trim(application_url)) > 0", name="application_url_not_blank"),
        CheckConstraint("length(trim(company)) > 0", name="company_not_blank"),
        CheckConstraint("length(trim(role)) > 0", name="role_not_blank"),
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s.value}'" for s in JobStatus) + ")",
            name="status_known",
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    company = Column(String, index=True, nullable=False)
    role = Column(String, index=True, nullable=False)
    status = Column(String, default="Applied", nullable=False)
    applied_date = Column(String, nullable=False)
    follow_up_date = Column(String, nullable=True)
    jd_text = Column(Text, default="", nullable=False)
    notes = Column(Text, default="", nullable=False)
    resume_file_name = Column(String, nullable=True)
    resume_text = Column(Text, nullable=True)
    skill_gaps = Column(JSON, default=list, nullable=False)
    application_url = Column(String, nullable=True)
    is_trash = Column(Boolean, default=False, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
