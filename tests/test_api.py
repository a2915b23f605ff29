"""
Tests for the HTTP API

Tests cover:
- Health endpoint
- Model catalog pass-through and upstream error mapping
- Decision proxy: success, upstream failure, log persist failure
- Batch decisions
- Decision log listing and lookup

The decision service client and the log store are replaced through
FastAPI dependency overrides; the application lifespan is not run.
"""

from uuid import uuid4
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from src.api.main import app
from src.api.routes import get_log_store, get_tom_client
from src.models.decision import DecisionLogRecord
from src.tom.client import DecisionServiceError


SCENARIO = {"data": {"type": "scenario", "attributes": {"input": {"age": 30}}}}


@pytest.fixture
def tom():
    mock = AsyncMock()
    mock.fetch_models = AsyncMock(return_value={"data": [{"id": "m1", "attributes": {"name": "Loans"}}]})
    mock.fetch_model = AsyncMock(return_value={"data": {"id": "m1", "attributes": {"name": "Loans"}}})
    mock.submit_decision = AsyncMock(return_value={"data": {"attributes": {"decision": "Approve"}}})
    mock.submit_batch = AsyncMock(return_value=[{"decision": "A"}, {"decision": "B"}])
    return mock


@pytest.fixture
def store():
    mock = AsyncMock()
    mock.record = AsyncMock(return_value=uuid4())
    mock.record_batch = AsyncMock(return_value=[uuid4(), uuid4()])
    mock.list_recent = AsyncMock(return_value=[])
    mock.get = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def client(tom, store):
    """Test client with the upstream client and log store replaced."""
    app.dependency_overrides[get_tom_client] = lambda: tom
    app.dependency_overrides[get_log_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthEndpoint:
    """Test health check endpoint."""

    def test_health_returns_200(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert data["version"] == "0.1.0"


class TestModelEndpoints:
    """Test model catalog pass-through."""

    def test_list_models(self, client):
        response = client.get("/api/models")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/vnd.api+json")
        assert response.json()["data"][0]["id"] == "m1"

    def test_get_model(self, client, tom):
        response = client.get("/api/models/m1")

        assert response.status_code == 200
        tom.fetch_model.assert_awaited_once_with("m1")

    def test_upstream_error_is_500_with_message(self, client, tom):
        tom.fetch_models.side_effect = DecisionServiceError("Invalid API key", 401)

        response = client.get("/api/models")

        assert response.status_code == 500
        assert response.json() == {"error": "Invalid API key"}


class TestDecisionEndpoints:
    """Test the decision proxy."""

    def test_decision_is_forwarded_and_logged(self, client, tom, store):
        response = client.post("/api/decision", json={"modelId": "m1", "inputData": SCENARIO})

        assert response.status_code == 200
        assert response.json() == {"data": {"attributes": {"decision": "Approve"}}}
        tom.submit_decision.assert_awaited_once_with("m1", SCENARIO)
        store.record.assert_awaited_once_with(
            "m1", SCENARIO, {"data": {"attributes": {"decision": "Approve"}}}
        )

    def test_upstream_failure_is_not_logged(self, client, tom, store):
        tom.submit_decision.side_effect = DecisionServiceError("Model not found", 404)

        response = client.post("/api/decision", json={"modelId": "m9", "inputData": SCENARIO})

        assert response.status_code == 500
        assert response.json() == {"error": "Model not found"}
        store.record.assert_not_called()

    def test_persist_failure_still_returns_decision(self, client, store):
        store.record.side_effect = RuntimeError("database is down")

        response = client.post("/api/decision", json={"modelId": "m1", "inputData": SCENARIO})

        assert response.status_code == 200
        assert response.json()["data"]["attributes"]["decision"] == "Approve"

    def test_missing_model_id_is_rejected(self, client, tom, store):
        """A body without modelId is an error response, not a validation 422."""
        response = client.post("/api/decision", json={"inputData": SCENARIO})

        assert response.status_code == 500
        assert response.json() == {"error": "Invalid request body: modelId: Field required"}
        tom.submit_decision.assert_not_called()
        store.record.assert_not_called()

    def test_non_json_body_is_rejected(self, client, tom):
        response = client.post(
            "/api/decision",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 500
        assert response.json() == {"error": "Invalid request body: not valid JSON"}
        tom.submit_decision.assert_not_called()

    def test_malformed_batch_body_is_rejected(self, client, tom):
        response = client.post("/api/decision/batch", json={"modelId": "m1", "batchInputs": "nope"})

        assert response.status_code == 500
        assert response.json()["error"].startswith("Invalid request body: batchInputs")
        tom.submit_batch.assert_not_called()

    def test_batch_decision(self, client, tom, store):
        inputs = [{"age": 30}, {"age": 40}]
        response = client.post("/api/decision/batch", json={"modelId": "m1", "batchInputs": inputs})

        assert response.status_code == 200
        assert response.json() == [{"decision": "A"}, {"decision": "B"}]
        tom.submit_batch.assert_awaited_once_with("m1", inputs)
        store.record_batch.assert_awaited_once_with(
            "m1", inputs, [{"decision": "A"}, {"decision": "B"}]
        )

    def test_batch_upstream_failure(self, client, tom):
        tom.submit_batch.side_effect = DecisionServiceError("Batch limit exceeded", 400)

        response = client.post("/api/decision/batch", json={"modelId": "m1", "batchInputs": [{}]})

        assert response.status_code == 500
        assert response.json() == {"error": "Batch limit exceeded"}


class TestDecisionLogEndpoints:
    """Test decision log lookup."""

    def test_list_decisions_passes_filters(self, client, store):
        record = DecisionLogRecord(model_id="m1", input_data=SCENARIO, decision_result={"d": 1})
        store.list_recent.return_value = [record]

        response = client.get("/api/decisions", params={"modelId": "m1", "limit": 10})

        assert response.status_code == 200
        body = response.json()
        assert body[0]["model_id"] == "m1"
        assert body[0]["log_id"] == str(record.log_id)
        store.list_recent.assert_awaited_once_with(model_id="m1", limit=10)

    def test_limit_out_of_range(self, client):
        response = client.get("/api/decisions", params={"limit": 0})
        assert response.status_code == 422

    def test_get_unknown_decision_is_404(self, client):
        response = client.get(f"/api/decisions/{uuid4()}")
        assert response.status_code == 404

    def test_get_decision(self, client, store):
        record = DecisionLogRecord(model_id="m1", input_data=SCENARIO, decision_result={"d": 1})
        store.get.return_value = record

        response = client.get(f"/api/decisions/{record.log_id}")

        assert response.status_code == 200
        assert response.json()["decision_result"] == {"d": 1}
