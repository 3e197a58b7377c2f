"""Tests for health, login, lookups and dashboard endpoints."""

from __future__ import annotations

import pytest

from api.settings import Settings


def test_health(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "halaqah-api"}


class TestLogin:
    @pytest.fixture(autouse=True)
    def operator(self, monkeypatch):
        settings = Settings(operator_username="admin", operator_password="s3cret-pass")
        monkeypatch.setattr("api.routers.auth.get_settings", lambda: settings)

    def test_valid_credentials(self, api_client):
        response = api_client.post("/api/login", json={"username": "admin", "password": "s3cret-pass"})

        assert response.status_code == 200
        assert response.json() == {"success": True, "username": "admin"}

    @pytest.mark.parametrize(("username", "password"), [("admin", "wrong"), ("root", "s3cret-pass")])
    def test_invalid_credentials(self, api_client, username, password):
        response = api_client.post("/api/login", json={"username": username, "password": password})

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid username or password"


def test_lookups_use_store_class_labels(api_client, memory_store):
    memory_store.collections["class_labels"] = {"l1": {"id": "l1", "category": "JAM", "label": "MUTQIN"}}

    body = api_client.get("/api/lookups").json()

    assert {"MarhalahID": "JAM", "Kelas": "MUTQIN"} in body["kelas"]
    assert {"MarhalahID": "JAM", "Kelas": "TQS"} not in body["kelas"]
    assert [w["WaktuID"] for w in body["waktu"]] == ["SUBUH", "DHUHA", "ASHAR", "ISYA"]


def test_dashboard_stats(api_client):
    rows = [
        {
            "student_name": name,
            "student_class": "1A",
            "student_category": "MUT",
            "sequence_number": 1,
            "mentor_name": "Ust. Hamid",
            "mentor_category": "MUT",
            "mentor_class": "3A",
        }
        for name in ("Ali", "Fatimah")
    ]
    api_client.post("/api/circles/ingest", json={"rows": rows})
    api_client.post("/api/attendance/batch", json={"date": "2025-03-10", "session_time": "SUBUH", "category": "MUT"})
    api_client.post(
        "/api/progress/hafalan",
        json={"month": "2025-03", "student_id": "s1", "circle_id": "c1", "category": "MUT", "quantity": 3},
    )

    stats = api_client.get("/api/dashboard/stats").json()

    assert stats["students_total"] == 2
    assert stats["students_by_category"] == {"MUT": 2, "ALI": 0, "JAM": 0}
    assert stats["mentors_by_category"]["MUT"] == 1
    assert stats["circles_by_category"]["MUT"] == 1
    assert stats["attendance_today"]["HADIR"] == 2
    assert len(stats["attendance_last_7_days"]) == 7
    assert stats["attendance_last_7_days"][-1]["date"] == "2025-03-10"
    assert stats["memorization_average"][-1] == {"month": "2025-03", "MUT": 3.0, "ALI": 0, "JAM": 0}
