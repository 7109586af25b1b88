"""
Test derived view state: filtering, search, trash split and stats.
"""
from datetime import datetime, timedelta, timezone
import pytest

from job_vault.backend.schemas import JobApplication, JobStatus
from job_vault.backend.services import views


def make_app(company, role, status="Applied", is_trash=False, **extra):
    data = {
        "id": f"{company}-{role}",
        "user_id": "user-1",
        "company": company,
        "role": role,
        "status": status,
        "applied_date": "2024-01-15",
        "updated_at": datetime(2024, 2, 1, tzinfo=timezone.utc),
        "is_trash": is_trash,
    }
    data.update(extra)
    return JobApplication(**data)


@pytest.fixture
def two_apps():
    return [make_app("A", "Eng", "Applied"), make_app("B", "PM", "Interview")]


class TestFiltering:

    def test_status_filter(self, two_apps):
        result = views.filter_applications(two_apps, status_filter="Interview")
        assert [(a.company, a.role, a.status) for a in result] == [("B", "PM", JobStatus.INTERVIEW)]

    def test_search_is_case_insensitive(self, two_apps):
        result = views.filter_applications(two_apps, search_query="eng")
        assert [(a.company, a.role) for a in result] == [("A", "Eng")]

    def test_search_matches_company_too(self, two_apps):
        result = views.filter_applications(two_apps, search_query="b")
        assert [a.company for a in result] == ["B"]

    def test_search_and_status_intersect(self, two_apps):
        assert views.filter_applications(two_apps, search_query="eng", status_filter=JobStatus.INTERVIEW) == []

    def test_all_with_empty_query_returns_active(self, two_apps):
        assert views.filter_applications(two_apps) == two_apps

    def test_trashed_records_never_match(self):
        apps = [make_app("A", "Eng"), make_app("Gone", "Eng", is_trash=True)]
        assert [a.company for a in views.filter_applications(apps, search_query="eng")] == ["A"]
        assert [a.company for a in views.trashed_applications(apps)] == ["Gone"]
        assert [a.company for a in views.active_applications(apps)] == ["A"]

    def test_invalid_filter_raises(self, two_apps):
        with pytest.raises(ValueError):
            views.filter_applications(two_apps, status_filter="Hired")


class TestStats:

    def test_response_rate(self):
        apps = [make_app(c, "Eng", s) for c, s in [("A", "Applied"), ("B", "OA"), ("C", "Offer"), ("D", "Ghosted")]]
        stats = views.compute_stats(apps)
        assert stats.total == 4
        assert stats.responses == 2
        assert stats.response_rate == 50

    def test_counters_ignore_trash(self):
        apps = [
            make_app("A", "Eng", "OA"),
            make_app("B", "Eng", "Interview"),
            make_app("C", "Eng", "Interview"),
            make_app("D", "Eng", "Rejected", is_trash=True),
        ]
        stats = views.compute_stats(apps)
        assert stats.total == 3
        assert stats.online_assessments == 1
        assert stats.interviews == 2
        assert stats.response_rate == 100

    def test_empty_collection(self):
        assert views.compute_stats([]).response_rate == 0

    def test_rate_rounds_half_up(self):
        apps = [make_app("A", "Eng", "OA")] + [make_app(f"X{i}", "Eng") for i in range(7)]
        # 1 of 8 responded -> 12.5%
        assert views.compute_stats(apps).response_rate == 13


class TestPipeline:

    @pytest.mark.parametrize("status,position", [
        ("Applied", 0), ("OA", 1), ("Interview", 2), ("Offer", 3), ("Rejected", None), ("Ghosted", None),
    ])
    def test_pipeline_position(self, status, position):
        assert views.pipeline_position(status) == position

    def test_last_modified_label(self):
        now = datetime(2024, 2, 3, tzinfo=timezone.utc)
        assert views.last_modified_label(make_app("A", "Eng"), now=now) == "Updated 2d ago"
        trashed = make_app("A", "Eng", is_trash=True, updated_at=now - timedelta(minutes=5))
        assert views.last_modified_label(trashed, now=now) == "Deleted 5m ago"
