"""
Tests for the HTTP API
======================

End-to-end requests through FastAPI's TestClient against a temporary
SQLite store.
"""

import csv
import io

import pytest
from fastapi.testclient import TestClient

from timetrack.api import app, get_record_store
from timetrack.errors import StoreError
from timetrack.store import RecordStore, SqlRecordStore


class OfflineStore(RecordStore):
    name = "offline"

    async def _fail(self, *args, **kwargs):
        raise StoreError("Record store unreachable: connection refused")

    select = get = insert = update = delete = _fail


@pytest.fixture
def client(sqlalchemy_db):
    """Test client bound to a fresh SQL store"""
    store = SqlRecordStore()
    app.dependency_overrides[get_record_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def offline_client():
    app.dependency_overrides[get_record_store] = lambda: OfflineStore()
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_attorney(client, name="Jane Doe"):
    response = client.post("/attorneys", json={"name": name})
    assert response.status_code == 201
    return response.json()


def _create_case(client, title="Smith v. Jones", **kwargs):
    body = {"title": title, "client_name": f"{title} client"}
    body.update(kwargs)
    response = client.post("/cases", json=body)
    assert response.status_code == 201
    return response.json()


def _add_log(client, case_id, start, end, **kwargs):
    body = {"start_time": start, "end_time": end}
    body.update(kwargs)
    return client.post(f"/cases/{case_id}/time-logs", json=body)


def _csv_rows(response):
    return list(csv.reader(io.StringIO(response.text)))


@pytest.fixture
def seeded(client):
    """Jane's case with 2h 15m in January, an unassigned case with 1h in February"""
    jane = _create_attorney(client)
    jane_case = _create_case(client, "Smith v. Jones", attorney_id=jane["id"])
    other_case = _create_case(client, "Acme Merger", status="Closed")

    assert _add_log(client, jane_case["id"], "2024-01-15T09:00:00Z", "2024-01-15T10:30:00Z",
                    activity_type="Consultation", description="Call, then memo").status_code == 201
    assert _add_log(client, jane_case["id"], "2024-01-15T13:00:00Z", "2024-01-15T13:45:00Z").status_code == 201
    assert _add_log(client, other_case["id"], "2024-02-01T00:00:00Z", "2024-02-01T01:00:00Z").status_code == 201

    return {"jane": jane, "jane_case": jane_case, "other_case": other_case}


# =============================================================================
# Health
# =============================================================================

class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["store_backend"] == "sql"
        assert "version" in data


# =============================================================================
# Attorneys & Cases
# =============================================================================

class TestAttorneysAndCases:

    def test_attorney_crud(self, client):
        jane = _create_attorney(client)
        response = client.patch(f"/attorneys/{jane['id']}", json={"title": "Partner"})
        assert response.status_code == 200
        assert response.json()["title"] == "Partner"

        assert [a["name"] for a in client.get("/attorneys").json()] == ["Jane Doe"]
        assert client.delete(f"/attorneys/{jane['id']}").status_code == 200
        assert client.get("/attorneys").json() == []

    def test_case_defaults_to_selected_attorney(self, client):
        jane = _create_attorney(client)
        response = client.post(
            "/cases",
            json={"title": "Estate of Brown", "client_name": "Mary Brown"},
            headers={"X-Attorney-Id": jane["id"]},
        )
        assert response.status_code == 201
        assert response.json()["attorney_id"] == jane["id"]
        assert response.json()["status"] == "Active"

    def test_case_requires_title(self, client):
        response = client.post("/cases", json={"title": "", "client_name": "x"})
        assert response.status_code == 422

    def test_case_detail(self, client, seeded):
        response = client.get(f"/cases/{seeded['jane_case']['id']}")
        assert response.status_code == 200
        data = response.json()
        assert data["total_hours"] == pytest.approx(2.25)
        assert data["total_hours_display"] == "2h 15m"
        assert [log["start_time"][:16] for log in data["time_logs"]] == ["2024-01-15T13:00", "2024-01-15T09:00"]

    def test_case_not_found(self, client):
        response = client.get("/cases/ghost")
        assert response.status_code == 404
        assert "not found" in response.json()["detail"]

    def test_update_and_delete_case(self, client, seeded):
        case_id = seeded["other_case"]["id"]
        response = client.patch(f"/cases/{case_id}", json={"status": "Pending"})
        assert response.json()["status"] == "Pending"

        assert client.delete(f"/cases/{case_id}").status_code == 200
        assert client.get(f"/cases/{case_id}").status_code == 404

    def test_list_cases_with_hours(self, client, seeded):
        data = client.get("/cases").json()
        hours = {c["title"]: c["total_hours"] for c in data}
        assert hours == {"Smith v. Jones": pytest.approx(2.25), "Acme Merger": pytest.approx(1.0)}

    def test_list_cases_filters(self, client, seeded):
        assert [c["title"] for c in client.get("/cases", params={"status": "Closed"}).json()] == ["Acme Merger"]
        assert [c["title"] for c in client.get("/cases", params={"q": "smith"}).json()] == ["Smith v. Jones"]
        assert client.get("/cases", params={"status": "All", "q": ""}).status_code == 200

    def test_list_cases_for_attorney(self, client, seeded):
        data = client.get("/cases", params={"attorney_id": seeded["jane"]["id"]}).json()
        assert [c["title"] for c in data] == ["Smith v. Jones"]

    def test_bad_filters_are_422(self, client):
        assert client.get("/cases", params={"status": "Archived"}).status_code == 422
        assert client.get("/cases", params={"created_on": "yesterday"}).status_code == 422

    def test_unknown_attorney_is_404(self, client):
        assert client.get("/cases", params={"attorney_id": "ghost"}).status_code == 404


# =============================================================================
# Time logs
# =============================================================================

class TestTimeLogs:

    def test_end_before_start_rejected(self, client):
        case = _create_case(client)
        response = _add_log(client, case["id"], "2024-01-15T10:00:00Z", "2024-01-15T09:00:00Z")
        assert response.status_code == 422
        assert response.json()["detail"] == "End time must be after start time"
        assert client.get(f"/cases/{case['id']}/time-logs").json() == []

    def test_log_on_missing_case(self, client):
        response = _add_log(client, "ghost", "2024-01-15T09:00:00Z", "2024-01-15T10:00:00Z")
        assert response.status_code == 404

    def test_delete_time_log(self, client, seeded):
        case_id = seeded["other_case"]["id"]
        log_id = client.get(f"/cases/{case_id}/time-logs").json()[0]["id"]
        assert client.delete(f"/time-logs/{log_id}").status_code == 200
        assert client.get(f"/cases/{case_id}/time-logs").json() == []


# =============================================================================
# Overview & Export
# =============================================================================

class TestOverview:

    def test_all_time(self, client, seeded):
        data = client.get("/overview").json()
        assert data["period_label"] == "All Time"
        assert data["overview"]["total_cases"] == 2
        assert data["overview"]["billable_cases"] == 2
        assert data["overview"]["total_hours_display"] == "3h 15m"
        assert data["status_counts"] == {"Active": 1, "Closed": 1, "Pending": 0}

    def test_month(self, client, seeded):
        data = client.get("/overview", params={"mode": "month", "year": "2024", "month_index": "1"}).json()
        assert data["period_token"] == "2024-02"
        assert data["overview"]["total_hours_display"] == "1h 0m"
        assert data["overview"]["billable_cases"] == 1

    def test_bad_month_index(self, client):
        response = client.get("/overview", params={"mode": "month", "year": "2024", "month_index": "12"})
        assert response.status_code == 422

    def test_unknown_mode(self, client):
        assert client.get("/overview", params={"mode": "quarter"}).status_code == 422

    def test_range_ending_on_last_representable_day(self, client, seeded):
        params = {"mode": "range", "start_date": "2024-01-01", "end_date": "9999-12-31"}
        assert client.get("/overview", params=params).status_code == 422
        assert client.get("/export", params=params).status_code == 422


class TestExport:

    def test_attorney_range_export(self, client, seeded):
        response = client.get("/export", params={
            "attorney_id": seeded["jane"]["id"],
            "mode": "range",
            "start_date": "2024-01-01",
            "end_date": "2024-01-31",
        })
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="legal-time-tracking-jane-doe-2024-01-01-to-2024-01-31-export.csv"' in \
            response.headers["content-disposition"]

        rows = _csv_rows(response)
        assert rows[1] == ["Period: Jan 1, 2024 to Jan 31, 2024"]
        assert rows[2] == ["Attorney: Jane Doe"]
        assert rows[6] == ["Total Cases:", "1"]
        assert rows[7] == ["Total Hours:", "2h 15m"]
        assert "Call, then memo" in [row[6] for row in rows if len(row) == 8]

    def test_all_attorneys_export_excludes_other_periods(self, client, seeded):
        response = client.get("/export", params={"mode": "month", "year": "2024", "month_index": "0"})
        rows = _csv_rows(response)
        assert rows[2] == ["Attorney: All Attorneys"]
        assert "Acme Merger" not in response.text
        assert "legal-time-tracking-2024-01-export.csv" in response.headers["content-disposition"]

    def test_case_export(self, client, seeded):
        response = client.get(f"/cases/{seeded['jane_case']['id']}/export")
        assert response.status_code == 200
        assert "smith-v.-jones-time-logs.csv" in response.headers["content-disposition"]
        rows = _csv_rows(response)
        assert rows[0] == ["Time Logs for Smith v. Jones"]
        assert len(rows) == 5

    def test_case_export_not_found(self, client):
        assert client.get("/cases/ghost/export").status_code == 404

    def test_case_export_filename_with_quote_and_slash(self, client):
        case = _create_case(client, 'Doe "Big" Co/Holdings')
        response = client.get(f"/cases/{case['id']}/export")
        assert response.status_code == 200
        assert 'filename="doe--big--co-holdings-time-logs.csv"' in response.headers["content-disposition"]


# =============================================================================
# Store failures
# =============================================================================

class TestStoreFailures:

    def test_store_error_is_502(self, offline_client):
        response = offline_client.get("/cases")
        assert response.status_code == 502
        assert "unreachable" in response.json()["detail"]

    def test_export_store_error_is_502(self, offline_client):
        assert offline_client.get("/export").status_code == 502
