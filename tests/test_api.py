"""
Tests for API endpoints
"""
import uuid

import pytest
from fastapi.testclient import TestClient

import sys
sys.path.insert(0, '.')

from conftest import make_report_service
from src.api.main import app, get_report_service, status_code_for
from src.core.exceptions import (
    BoundaryLookupUnavailable,
    ConcurrentModification,
    FieldValidationError,
    InvalidTransition,
    ProximityViolation,
    RegionNotFound,
    RepositoryError,
    SubmissionTimeout,
)


VALID_REPORT = {
    "title": "Jalan berlubang",
    "subdistrict_code": "35.10.02.2005",
    "points": [{"lat": -7.2575, "lng": 112.7521}],
    "photo_urls": ["https://example.com/photo1.jpg"],
    "description": "Lubang besar dekat sekolah",
}


class TestErrorMapping:
    """Test suite for error to HTTP status mapping."""

    def test_status_codes(self):
        assert status_code_for(FieldValidationError("title", "too short")) == 400
        assert status_code_for(RegionNotFound("99.99.99.9999")) == 422
        assert status_code_for(ProximityViolation("35.10.02.2005", 500.0, 200.0)) == 422
        assert status_code_for(InvalidTransition("verified", "resolved")) == 409
        assert status_code_for(ConcurrentModification(uuid.uuid4(), "submitted")) == 409
        assert status_code_for(SubmissionTimeout(30)) == 504
        assert status_code_for(RepositoryError("save")) == 503
        assert status_code_for(BoundaryLookupUnavailable("35.10.02.2005")) == 503


class TestAPIEndpoints:
    """Test suite for API endpoints."""

    def setup_method(self):
        self.service = make_report_service()
        app.dependency_overrides[get_report_service] = lambda: self.service
        self.client = TestClient(app)
        self.user = str(uuid.uuid4())
        self.headers = {"X-User-ID": self.user}

    def teardown_method(self):
        app.dependency_overrides.clear()

    def create(self, **overrides):
        body = {**VALID_REPORT, **overrides}
        return self.client.post("/api/v1/damaged-roads", json=body, headers=self.headers)

    def test_health(self):
        response = self.client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    def test_create_report(self):
        response = self.create()

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "submitted"
        assert data["author_id"] == self.user
        assert data["subdistrict_code"] == "35.10.02.2005"
        assert data["path"] == {"type": "LineString", "coordinates": [[112.7521, -7.2575]]}

    def test_create_requires_identity(self):
        response = self.client.post("/api/v1/damaged-roads", json=VALID_REPORT)
        assert response.status_code == 401

    def test_create_rejects_bad_identity(self):
        response = self.client.post(
            "/api/v1/damaged-roads", json=VALID_REPORT, headers={"X-User-ID": "nobody"}
        )
        assert response.status_code == 401

    def test_boundary_violation_response(self):
        response = self.create(points=[{"lat": 10.0, "lng": 112.7521}])

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "boundary_violation"
        assert data["details"]["index"] == 0
        assert data["details"]["axis"] == "lat"
        assert data["details"]["range"] == [-11.0, 6.0]

    def test_unknown_region_response(self):
        response = self.create(subdistrict_code="99.99.99.9999")
        assert response.status_code == 422
        assert response.json()["error"] == "region_not_found"

    def test_field_error_response(self):
        response = self.create(title="ab")
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "title"

    def test_photo_error_response(self):
        response = self.create(photo_urls=["http://169.254.169.254/latest/meta-data"])
        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "photo_validation_error"
        assert data["details"]["failures"][0]["reason"] == "blocked_address"

    def test_get_report(self):
        report_id = self.create().json()["id"]
        response = self.client.get(f"/api/v1/damaged-roads/{report_id}")
        assert response.status_code == 200
        assert response.json()["id"] == report_id

    def test_get_missing_report(self):
        response = self.client.get(f"/api/v1/damaged-roads/{uuid.uuid4()}")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_list_reports(self):
        for i in range(3):
            self.create(title=f"Jalan rusak {i}")

        response = self.client.get("/api/v1/damaged-roads", params={"page": 2, "limit": 2})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert data["page"] == 2
        assert [r["title"] for r in data["reports"]] == ["Jalan rusak 0"]

    def test_list_invalid_status_filter(self):
        response = self.client.get("/api/v1/damaged-roads", params={"status": "closed"})
        assert response.status_code == 400
        assert response.json()["error"] == "invalid_status"

    def test_list_mine(self):
        self.create()
        self.client.post(
            "/api/v1/damaged-roads", json=VALID_REPORT, headers={"X-User-ID": str(uuid.uuid4())}
        )

        response = self.client.get("/api/v1/damaged-roads/mine", headers=self.headers)

        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_status_transitions(self):
        report_id = self.create().json()["id"]
        url = f"/api/v1/damaged-roads/{report_id}/status"

        response = self.client.patch(url, json={"status": "under_verification"}, headers=self.headers)
        assert response.status_code == 200
        assert response.json()["status"] == "under_verification"

        response = self.client.patch(url, json={"status": "resolved"}, headers=self.headers)
        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    def test_update_report(self):
        report_id = self.create().json()["id"]
        response = self.client.put(
            f"/api/v1/damaged-roads/{report_id}",
            json={**VALID_REPORT, "title": "Jalan amblas"},
            headers=self.headers,
        )
        assert response.status_code == 200
        assert response.json()["title"] == "Jalan amblas"

    def test_update_by_other_user(self):
        report_id = self.create().json()["id"]
        response = self.client.put(
            f"/api/v1/damaged-roads/{report_id}",
            json=VALID_REPORT,
            headers={"X-User-ID": str(uuid.uuid4())},
        )
        assert response.status_code == 403

    def test_delete_report(self):
        report_id = self.create().json()["id"]

        response = self.client.delete(
            f"/api/v1/damaged-roads/{report_id}", headers={"X-User-ID": str(uuid.uuid4())}
        )
        assert response.status_code == 403

        response = self.client.delete(f"/api/v1/damaged-roads/{report_id}", headers=self.headers)
        assert response.status_code == 204
        assert self.client.get(f"/api/v1/damaged-roads/{report_id}").status_code == 404

    def test_validate_photos(self):
        response = self.client.post(
            "/api/v1/validation/photos",
            json={"urls": ["https://photos.example.com/a.jpg", "ftp://photos.example.com/b.jpg"]},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["all_valid"] is False
        assert [r["valid"] for r in data["results"]] == [True, False]
        assert data["results"][1]["reason"] == "bad_scheme"

    def test_validate_photos_count(self):
        response = self.client.post("/api/v1/validation/photos", json={"urls": []})
        assert response.status_code == 400
