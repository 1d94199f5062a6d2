"""API tests for the JWT-guarded job endpoints."""

from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from tradenexus.core.dependencies import get_queue_service
from tradenexus.main import app


class TestJobEndpoints:
    def test_requests_without_token_are_rejected(self, test_client: TestClient) -> None:
        response = test_client.get("/jobs")

        assert response.status_code == 401
        assert response.json()["detail"] == "Authorization header missing"

    def test_invalid_token_is_rejected(self, test_client: TestClient) -> None:
        response = test_client.get("/jobs", headers={"Authorization": "Bearer not-a-jwt"})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid authentication token"

    def test_create_get_and_list_jobs(self, test_client: TestClient, auth_headers: dict) -> None:
        created = test_client.post(
            "/jobs", json={"type": "AI_ANALYSIS", "inputData": {"asin": "B0X"}}, headers=auth_headers
        )

        assert created.status_code == 201
        job = created.json()
        assert job["status"] == "pending"
        assert job["userId"] == "user-1"

        fetched = test_client.get(f"/jobs/{job['id']}", headers=auth_headers)
        listing = test_client.get("/jobs", params={"status": "pending"}, headers=auth_headers)

        assert fetched.json()["id"] == job["id"]
        body = listing.json()
        assert [j["id"] for j in body["data"]] == [job["id"]]
        assert body["pagination"] == {"page": 1, "limit": 20, "total": 1, "totalPages": 1}

    def test_unknown_job_is_404(self, test_client: TestClient, auth_headers: dict) -> None:
        response = test_client.get("/jobs/00000000-0000-0000-0000-000000000000", headers=auth_headers)

        assert response.status_code == 404

    def test_queue_add_runs_synchronously_when_queue_offline(
        self, test_client: TestClient, auth_headers: dict
    ) -> None:
        response = test_client.post(
            "/jobs/queue/add", json={"type": "scrape-amazon", "asin": "B0TEST"}, headers=auth_headers
        )

        assert response.status_code == 201
        job = response.json()
        assert job["queueAvailable"] is False
        assert job["queueJobId"] is None
        assert job["status"] == "completed"
        assert job["inputData"] == {"asin": "B0TEST"}
        assert job["outputData"]["product"]["asin"] == "B0TEST"

    def test_queue_add_enqueues_when_queue_available(
        self, test_client: TestClient, auth_headers: dict
    ) -> None:
        queue = AsyncMock()
        queue.available = True
        queue.add_job.return_value = "crawler-search-1688-abc"
        app.dependency_overrides[get_queue_service] = lambda: queue

        response = test_client.post(
            "/jobs/queue/add", json={"type": "search-1688", "keywords": "led strip"}, headers=auth_headers
        )

        job = response.json()
        assert job["status"] == "pending"
        assert job["queueJobId"] == "crawler-search-1688-abc"
        assert job["queueAvailable"] is True
        job_type, data = queue.add_job.call_args.args
        assert job_type == "search-1688"
        assert data["keywords"] == "led strip"
        assert data["job_id"] == job["id"]

    def test_queue_stats_when_offline(self, test_client: TestClient, auth_headers: dict) -> None:
        response = test_client.get("/jobs/queue/stats", headers=auth_headers)

        assert response.json() == {"available": False, "waiting": 0, "active": 0, "completed": 0, "failed": 0}
