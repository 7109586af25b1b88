"""
Derived view state computed from the store's collection.

Nothing here is stored; consumers call these on the current snapshot.
"""
import math
from datetime import datetime
from typing import Iterable, List, Optional, Union

from ..schemas import (
    ALL_STATUSES,
    PIPELINE_STAGES,
    RESPONSE_STATUSES,
    ApplicationStats,
    JobApplication,
    JobStatus,
)
from ..utils.formatting import time_ago

StatusFilter = Union[JobStatus, str]


def normalize_status_filter(value: StatusFilter) -> StatusFilter:
    """Return ``"All"`` or a JobStatus; raises ValueError for anything else."""
    if value == ALL_STATUSES:
        return ALL_STATUSES
    return JobStatus(value)


def active_applications(applications: Iterable[JobApplication]) -> List[JobApplication]:
    return [app for app in applications if not app.is_trash]


def trashed_applications(applications: Iterable[JobApplication]) -> List[JobApplication]:
    return [app for app in applications if app.is_trash]


def matches_search(app: JobApplication, query: str) -> bool:
    needle = (query or "").lower()
    return needle in app.company.lower() or needle in app.role.lower()


def filter_applications(
    applications: Iterable[JobApplication],
    search_query: str = "",
    status_filter: StatusFilter = ALL_STATUSES,
) -> List[JobApplication]:
    """Active records matching the search text on company or role, and the status filter."""
    status_filter = normalize_status_filter(status_filter)
    return [
        app for app in active_applications(applications)
        if matches_search(app, search_query)
        and (status_filter == ALL_STATUSES or app.status == status_filter)
    ]


def compute_stats(applications: Iterable[JobApplication]) -> ApplicationStats:
    active = active_applications(applications)
    total = len(active)
    responses = sum(1 for app in active if app.status in RESPONSE_STATUSES)
    # Half-up rounding to a whole percentage
    rate = int(math.floor(responses * 100 / total + 0.5)) if total else 0
    return ApplicationStats(
        total=total,
        online_assessments=sum(1 for app in active if app.status == JobStatus.OA),
        interviews=sum(1 for app in active if app.status == JobStatus.INTERVIEW),
        responses=responses,
        response_rate=rate,
    )


def pipeline_position(status: JobStatus) -> Optional[int]:
    """Index of ``status`` in the pipeline view, None for Rejected/Ghosted."""
    try:
        return PIPELINE_STAGES.index(JobStatus(status))
    except ValueError:
        return None


def last_modified_label(app: JobApplication, now: Optional[datetime] = None) -> str:
    """``Deleted 2d ago`` for trashed records, ``Updated 2d ago`` otherwise."""
    prefix = "Deleted" if app.is_trash else "Updated"
    return f"{prefix} {time_ago(app.updated_at, now=now)}"
