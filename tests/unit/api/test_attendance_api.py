"""Tests for attendance endpoints: session roster, batch recording, listings and report."""

from __future__ import annotations

from api.dependencies import get_session_registry
from api.main import app
from halaqah.attendance import SessionState
from halaqah.core.lookups import Category, CircleKind
from halaqah.data.repositories.attendance_repository import MENTOR_ATTENDANCE, STUDENT_ATTENDANCE
from halaqah.data.repositories.people_repository import STUDENTS


def _seed(api_client):
    rows = [
        {
            "student_name": name,
            "student_class": student_class,
            "student_category": "MUT",
            "sequence_number": sequence_number,
            "mentor_name": mentor,
            "mentor_category": "MUT",
            "mentor_class": "3A",
        }
        for name, student_class, sequence_number, mentor in [
            ("Ali", "1A", 1, "Ust. Hamid"),
            ("Fatimah", "1B", 1, "Ust. Hamid"),
            ("Zaid", "1A", 2, "Ust. Yusuf"),
        ]
    ]
    response = api_client.post("/api/circles/ingest", json={"rows": rows})
    assert response.json()["success"] is True


def _student_id(store, name):
    return next(sid for sid, r in store.collections[STUDENTS].items() if r["name"] == name)


class TestSessionRoster:
    def test_roster_lists_circles_with_names(self, api_client):
        _seed(api_client)

        response = api_client.get("/api/attendance/roster", params={"category": "MUT"})

        assert response.status_code == 200
        circles = response.json()
        assert [c["sequence_number"] for c in circles] == [1, 2]
        assert circles[0]["mentor_name"] == "Ust. Hamid"
        assert {m["name"] for m in circles[0]["members"]} == {"Ali", "Fatimah"}

    def test_roster_populates_editing_session(self, api_client):
        _seed(api_client)

        api_client.get("/api/attendance/roster", params={"category": "MUT", "kind": "UTAMA"})

        session = app.dependency_overrides[get_session_registry]().get(Category.MUT, CircleKind.REGULAR)
        assert session.state is SessionState.POPULATING
        assert len(session.statuses) == 5


class TestRecordBatch:
    def test_records_everyone_in_one_request(self, api_client, memory_store):
        _seed(api_client)
        zaid = _student_id(memory_store, "Zaid")
        batches_before = len([c for c in memory_store.calls if c[0] == "batch"])

        response = api_client.post(
            "/api/attendance/batch",
            json={
                "date": "2025-03-10",
                "session_time": "SUBUH",
                "category": "MUT",
                "status_overrides": {zaid: "SAKIT"},
                "remarks": {zaid: "demam"},
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["circles"] == 2
        assert body["mentor_records"] == 2
        assert body["student_records"] == 3
        assert body["status_counts"]["SAKIT"] == 1
        assert memory_store.count(MENTOR_ATTENDANCE) == 2
        assert memory_store.count(STUDENT_ATTENDANCE) == 3
        assert len([c for c in memory_store.calls if c[0] == "batch"]) == batches_before + 1

    def test_circle_subset(self, api_client, memory_store):
        _seed(api_client)
        roster = api_client.get("/api/attendance/roster", params={"category": "MUT"}).json()

        response = api_client.post(
            "/api/attendance/batch",
            json={
                "date": "2025-03-10",
                "session_time": "ISYA",
                "category": "MUT",
                "circle_ids": [roster[1]["circle_id"]],
            },
        )

        assert response.json()["student_records"] == 1

    def test_foreign_circle_id_rejected(self, api_client):
        _seed(api_client)

        response = api_client.post(
            "/api/attendance/batch",
            json={"date": "2025-03-10", "session_time": "SUBUH", "category": "MUT", "circle_ids": ["nope"]},
        )

        assert response.status_code == 422
        assert response.json()["field"] == "circle_ids"

    def test_dhuha_only_for_morning_circles(self, api_client):
        response = api_client.post(
            "/api/attendance/batch",
            json={"date": "2025-03-10", "session_time": "DHUHA", "category": "MUT", "kind": "UTAMA"},
        )

        assert response.status_code == 422
        assert response.json()["field"] == "session_time"

    def test_submission_in_progress_is_409(self, api_client, memory_store):
        _seed(api_client)
        session = app.dependency_overrides[get_session_registry]().get(Category.MUT, CircleKind.REGULAR)
        session.state = SessionState.SUBMITTING

        response = api_client.post(
            "/api/attendance/batch",
            json={"date": "2025-03-10", "session_time": "SUBUH", "category": "MUT"},
        )

        assert response.status_code == 409
        assert memory_store.count(STUDENT_ATTENDANCE) == 0

    def test_store_failure_is_502(self, api_client, memory_store):
        _seed(api_client)
        memory_store.fail_on.add(("create", STUDENT_ATTENDANCE))

        response = api_client.post(
            "/api/attendance/batch",
            json={"date": "2025-03-10", "session_time": "SUBUH", "category": "MUT"},
        )

        assert response.status_code == 502
        assert response.json()["store_status"] == 400
        assert memory_store.count(MENTOR_ATTENDANCE) == 0


class TestListingsAndReport:
    def _record(self, api_client, memory_store):
        _seed(api_client)
        ali = _student_id(memory_store, "Ali")
        api_client.post(
            "/api/attendance/batch",
            json={
                "date": "2025-03-10",
                "session_time": "ASHAR",
                "category": "MUT",
                "status_overrides": {ali: "ALPA"},
            },
        )

    def test_student_listing_filters(self, api_client, memory_store):
        self._record(api_client, memory_store)

        records = api_client.get(
            "/api/attendance/students", params={"date": "2025-03-10", "session_time": "ASHAR"}
        ).json()
        assert len(records) == 3
        assert api_client.get("/api/attendance/students", params={"session_time": "ISYA"}).json() == []
        assert len(api_client.get("/api/attendance/mentors").json()) == 2

    def test_report_joins_names_and_counts(self, api_client, memory_store):
        self._record(api_client, memory_store)

        report = api_client.get(
            "/api/attendance/report", params={"role": "santri", "class_label": "1A", "date_from": "2025-03-01"}
        ).json()

        assert sorted(r["name"] for r in report["data"]) == ["Ali", "Zaid"]
        assert report["stats"]["total"] == 2
        assert report["stats"]["ALPA"] == 1

    def test_report_rejects_bad_role_and_range(self, api_client):
        assert api_client.get("/api/attendance/report", params={"role": "guru"}).status_code == 422
        response = api_client.get(
            "/api/attendance/report", params={"date_from": "2025-03-10", "date_to": "2025-03-01"}
        )
        assert response.status_code == 422
