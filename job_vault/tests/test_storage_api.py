"""
Test the public storage and health endpoints.
"""
import os
import pytest
from fastapi import status
from fastapi.testclient import TestClient

from job_vault.backend.config.settings import get_settings
from job_vault.backend.main import app


@pytest.fixture
def test_client(test_settings):
    """Client whose settings point at the temporary bucket."""
    app.dependency_overrides[get_settings] = lambda: test_settings
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def stored_object(test_settings):
    path = os.path.join(test_settings.bucket_directory, "applications", "app-1-abc.pdf")
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as fh:
        fh.write(b"%PDF-1.4 resume")
    return "applications/app-1-abc.pdf"


class TestPublicStorage:

    def test_download_stored_object(self, test_client, stored_object):
        response = test_client.get(f"/storage/resumes/{stored_object}")

        assert response.status_code == status.HTTP_200_OK
        assert response.content == b"%PDF-1.4 resume"

    def test_missing_object(self, test_client):
        response = test_client.get("/storage/resumes/applications/nope.pdf")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_unknown_bucket(self, test_client, stored_object):
        response = test_client.get(f"/storage/avatars/{stored_object}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_path_traversal_is_refused(self, test_client, stored_object):
        response = test_client.get("/storage/resumes/applications/..%2F..%2F..%2Fsecrets.txt")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_uploaded_resume_is_downloadable(self, test_client, store, make_draft):
        from job_vault.backend.schemas import ResumeFile

        record = await store.add_application(make_draft())
        url = await store.upload_resume(record.id, ResumeFile(name="cv.pdf", content=b"%PDF cv"))

        response = test_client.get(url.replace("http://testserver", ""))

        assert response.status_code == status.HTTP_200_OK
        assert response.content == b"%PDF cv"


class TestHealth:

    def test_health_check(self, test_client):
        response = test_client.get("/api/health")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"

    def test_detailed_health_reports_storage(self, test_client, test_settings):
        response = test_client.get("/api/health/detailed")

        data = response.json()
        assert data["storage"]["bucket"] == test_settings.storage_bucket
        assert data["app_info"]["testing"] is True
