import io
import json

import pytest

from mortgage_calc.snapshot import IMPORT_ERROR_MESSAGE
from mortgage_calc_web.app import app


@pytest.fixture
def client():
    app.config["TESTING"] = True
    return app.test_client()


def export_document(mortgage_data, events=None, investments=None):
    return json.dumps(
        {
            "mortgageData": mortgage_data,
            "timelineEvents": events or [],
            "investments": investments or [],
            "exportDate": "2024-05-01T12:00:00+00:00",
            "version": "1.0",
        }
    )


class TestState:
    def test_defaults(self, client):
        response = client.get("/api/state")
        assert response.status_code == 200
        assert response.get_json() == {
            "mortgageData": None,
            "timelineEvents": [],
            "investments": [],
        }

    def test_put_and_get(self, client, mortgage_data):
        assert client.put("/api/state/mortgageData", json=mortgage_data).status_code == 200
        state = client.get("/api/state").get_json()
        assert state["mortgageData"] == mortgage_data
        assert state["timelineEvents"] == []

    def test_users_are_isolated(self, client, mortgage_data):
        client.put("/api/state/mortgageData", json=mortgage_data)
        other = app.test_client()
        assert other.get("/api/state").get_json()["mortgageData"] is None

    def test_unknown_record(self, client):
        response = client.put("/api/state/settings", json={})
        assert response.status_code == 404
        assert response.get_json()["success"] is False

    def test_wrong_record_type(self, client):
        assert client.put("/api/state/mortgageData", json=[1]).status_code == 400
        assert client.put("/api/state/timelineEvents", json={}).status_code == 400

    def test_clear(self, client, mortgage_data):
        client.put("/api/state/mortgageData", json=mortgage_data)
        client.put("/api/state/investments", json=[{"name": "ETF"}])
        assert client.post("/api/clear").get_json() == {"success": True}
        assert client.get("/api/state").get_json()["mortgageData"] is None


class TestCalculate:
    def test_uses_stored_records(self, client, mortgage_data):
        client.put("/api/state/mortgageData", json=mortgage_data)
        response = client.post("/api/calculate")
        assert response.status_code == 200
        data = response.get_json()
        assert data["summary"]["monthly_payment"] == pytest.approx(1796.18, abs=0.01)
        assert data["transactions"][0]["type"] == "Initial Loan"
        assert data["schedule"][0]["month"] == 0

    def test_body_overrides_store(self, client, mortgage_data):
        body = {"mortgageData": dict(mortgage_data, principal=200000)}
        data = client.post("/api/calculate", json=body).get_json()
        assert data["transactions"][0]["mortgageBalance"] == 200000.0

    def test_malformed_event_is_skipped(self, client, mortgage_data):
        baseline = client.post("/api/calculate", json={"mortgageData": mortgage_data}).get_json()
        events = [{"id": 1, "date": "2025-01-01", "type": "teleport", "value": 5}]
        response = client.post(
            "/api/calculate", json={"mortgageData": mortgage_data, "timelineEvents": events}
        )
        assert response.status_code == 200
        assert len(response.get_json()["transactions"]) == len(baseline["transactions"])

    def test_events_change_the_result(self, client, mortgage_data):
        events = [{"id": 1, "date": "2024-06-01", "type": "repaymentChange", "value": 2500}]
        data = client.post(
            "/api/calculate", json={"mortgageData": mortgage_data, "timelineEvents": events}
        ).get_json()
        assert data["summary"]["effective_payoff"] is True

    def test_vanishing_rate(self, client, mortgage_data):
        body = {"mortgageData": dict(mortgage_data, interestRate=1e-25)}
        response = client.post("/api/calculate", json=body)
        assert response.status_code == 200
        assert response.get_json()["summary"]["monthly_payment"] == pytest.approx(400000 / 360)

    def test_no_mortgage_data(self, client):
        response = client.post("/api/calculate")
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_invalid_mortgage_data(self, client, mortgage_data):
        body = {"mortgageData": dict(mortgage_data, principal="lots")}
        assert client.post("/api/calculate", json=body).status_code == 400


class TestImportExport:
    def test_export(self, client, mortgage_data):
        client.put("/api/state/mortgageData", json=mortgage_data)
        response = client.get("/api/export")
        assert response.status_code == 200
        assert "attachment; filename=morty-analysis-" in response.headers["Content-Disposition"]
        document = json.loads(response.data)
        assert document["mortgageData"] == mortgage_data
        assert document["version"] == "1.0"
        assert "exportDate" in document

    def test_import_raw_body(self, client, mortgage_data):
        client.put("/api/state/investments", json=[{"name": "old"}])
        response = client.post(
            "/api/import",
            data=export_document(mortgage_data, investments=[]),
            content_type="application/json",
        )
        assert response.status_code == 200
        assert response.get_json()["message"] == "Data imported successfully!"
        state = client.get("/api/state").get_json()
        assert state["mortgageData"] == mortgage_data
        assert state["investments"] == []

    def test_import_file_upload(self, client, mortgage_data):
        upload = io.BytesIO(export_document(mortgage_data).encode("utf-8"))
        response = client.post(
            "/api/import",
            data={"file": (upload, "morty-analysis-2024-05-01.json")},
            content_type="multipart/form-data",
        )
        assert response.status_code == 200
        assert client.get("/api/state").get_json()["mortgageData"] == mortgage_data

    def test_invalid_import_changes_nothing(self, client, mortgage_data):
        client.put("/api/state/mortgageData", json=mortgage_data)
        response = client.post("/api/import", data="{not json", content_type="application/json")
        assert response.status_code == 400
        assert response.get_json()["error"] == IMPORT_ERROR_MESSAGE
        assert client.get("/api/state").get_json()["mortgageData"] == mortgage_data

    def test_export_then_import_round_trip(self, client, mortgage_data):
        events = [{"id": 1, "date": "2025-01-01", "type": "deposit", "value": 5000, "description": ""}]
        client.put("/api/state/mortgageData", json=mortgage_data)
        client.put("/api/state/timelineEvents", json=events)
        exported = client.get("/api/export").data

        other = app.test_client()
        assert other.post("/api/import", data=exported, content_type="application/json").status_code == 200
        state = other.get("/api/state").get_json()
        assert state["mortgageData"] == mortgage_data
        assert state["timelineEvents"] == events
