"""
Tests for the decision service clients

Tests cover:
- Request construction (auth header, content type, paths, bodies)
- Model list / model metadata parsing
- Error mapping (HTTP status, transport failure, malformed metadata)
- Portal client request shapes

All HTTP traffic goes through httpx.MockTransport.
"""

import json

import httpx
import pytest

from src.models.catalog import ModelDetail
from src.models.decision import ScenarioPayload
from src.tom.client import DecisionServiceError, TomClient, error_detail
from src.tom.portal import PortalClient


MODEL_LIST = {
    "data": [
        {"id": "m1", "type": "model", "attributes": {"name": "Loans", "description": "Small loans"}},
        {"id": "m2", "type": "model", "attributes": {"name": "Claims", "description": "Claims triage"}},
    ]
}

MODEL = {
    "data": {
        "id": "m1",
        "type": "model",
        "attributes": {
            "name": "Loans",
            "metadata": {"attributes": [
                {"name": "score", "type": "Continuous", "domain": {"lower": 0, "upper": 1000, "discrete": True}},
            ]},
            "exclusions": {"rules": [
                {"type": "RelationshipEx", "relation": {"index": 0, "type": "LTEQ", "threshold": 900}},
            ]},
        },
    }
}


def tom_with(handler) -> TomClient:
    return TomClient(
        base_url="https://tom.test/v3",
        api_key="secret",
        transport=httpx.MockTransport(handler),
    )


class TestTomClient:
    """Test the TOM API client."""

    @pytest.mark.asyncio
    async def test_list_models(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=MODEL_LIST)

        async with tom_with(handler) as tom:
            models = await tom.list_models()

        assert seen["url"] == "https://tom.test/v3/models"
        assert seen["auth"] == "Token secret"
        assert [m.id for m in models] == ["m1", "m2"]
        assert models[1].name == "Claims"

    @pytest.mark.asyncio
    async def test_get_model(self):
        def handler(request):
            assert request.url.path == "/v3/models/m1"
            return httpx.Response(200, json=MODEL)

        async with tom_with(handler) as tom:
            model = await tom.get_model("m1")

        assert isinstance(model, ModelDetail)
        assert model.attributes[0].name == "score"
        assert len(model.rules) == 1

    @pytest.mark.asyncio
    async def test_malformed_metadata_is_a_service_error(self):
        broken = json.loads(json.dumps(MODEL))
        broken["data"]["attributes"]["exclusions"]["rules"][0]["relation"]["index"] = 3

        async with tom_with(lambda r: httpx.Response(200, json=broken)) as tom:
            with pytest.raises(DecisionServiceError, match="Model metadata is invalid"):
                await tom.get_model("m1")

    @pytest.mark.asyncio
    async def test_rule_without_antecedent_is_a_service_error(self):
        broken = json.loads(json.dumps(MODEL))
        broken["data"]["attributes"]["exclusions"]["rules"] = [{"type": "BlatantEx"}]

        async with tom_with(lambda r: httpx.Response(200, json=broken)) as tom:
            with pytest.raises(DecisionServiceError, match="Model metadata is invalid"):
                await tom.get_model("m1")

    @pytest.mark.asyncio
    async def test_submit_decision_posts_payload(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["content_type"] = request.headers.get("Content-Type")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"data": {"attributes": {"decision": "Approve"}}})

        payload = ScenarioPayload.for_input({"score": 700})
        async with tom_with(handler) as tom:
            result = await tom.submit_decision("m1", payload)

        assert seen["path"] == "/v3/decision/m1"
        assert seen["content_type"].startswith("application/vnd.api+json")
        assert seen["body"] == {"data": {"type": "scenario", "attributes": {"input": {"score": 700}}}}
        assert result["data"]["attributes"]["decision"] == "Approve"

    @pytest.mark.asyncio
    async def test_submit_batch(self):
        def handler(request):
            assert request.url.path == "/v3/decision/batch/m1"
            inputs = json.loads(request.content)["inputs"]
            return httpx.Response(200, json=[{"n": i} for i, _ in enumerate(inputs)])

        async with tom_with(handler) as tom:
            results = await tom.submit_batch("m1", [{"score": 1}, {"score": 2}])

        assert results == [{"n": 0}, {"n": 1}]

    @pytest.mark.asyncio
    async def test_submit_batch_result_count_must_match(self):
        async with tom_with(lambda r: httpx.Response(200, json=[{"n": 0}])) as tom:
            with pytest.raises(DecisionServiceError):
                await tom.submit_batch("m1", [{"score": 1}, {"score": 2}])

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        body = {"errors": [{"status": "404", "detail": "Model m9 does not exist"}]}
        async with tom_with(lambda r: httpx.Response(404, json=body)) as tom:
            with pytest.raises(DecisionServiceError) as exc_info:
                await tom.fetch_model("m9")

        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Model m9 does not exist"

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with tom_with(handler) as tom:
            with pytest.raises(DecisionServiceError, match="connection refused"):
                await tom.fetch_models()


class TestErrorDetail:
    """Test error message extraction."""

    def test_error_key(self):
        assert error_detail(httpx.Response(500, json={"error": "boom"})) == "boom"

    def test_fallback_to_status(self):
        response = httpx.Response(502, text="<html>bad gateway</html>")
        assert error_detail(response) == "Request failed with status code 502"

    def test_explicit_fallback(self):
        response = httpx.Response(500, json={"unexpected": True})
        assert error_detail(response, fallback="") == ""
        assert error_detail(httpx.Response(500, json={"error": "boom"}), fallback="") == "boom"


class TestPortalClient:
    """Test the client the UI uses to reach this API."""

    @pytest.mark.asyncio
    async def test_submit_decision_wraps_body(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"decision": "Yes"})

        portal = PortalClient(base_url="http://portal.test", transport=httpx.MockTransport(handler))
        async with portal:
            result = await portal.submit_decision("m1", ScenarioPayload.for_input({"a": 1}))

        assert seen["path"] == "/api/decision"
        assert seen["body"]["modelId"] == "m1"
        assert seen["body"]["inputData"]["data"]["attributes"]["input"] == {"a": 1}
        assert result == {"decision": "Yes"}

    @pytest.mark.asyncio
    async def test_proxy_error_is_surfaced(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(500, json={"error": "Upstream down"}))
        async with PortalClient(base_url="http://portal.test", transport=transport) as portal:
            with pytest.raises(DecisionServiceError) as exc_info:
                await portal.submit_batch("m1", [{"a": 1}])

        assert exc_info.value.message == "Upstream down"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_get_model_parses_metadata(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json=MODEL))
        async with PortalClient(base_url="http://portal.test", transport=transport) as portal:
            model = await portal.get_model("m1")

        assert model.id == "m1"

    @pytest.mark.asyncio
    async def test_error_without_detail_has_empty_message(self):
        """A failed response with no error text keeps only the status code."""
        transport = httpx.MockTransport(lambda r: httpx.Response(502, text="Bad Gateway"))
        async with PortalClient(base_url="http://portal.test", transport=transport) as portal:
            with pytest.raises(DecisionServiceError) as exc_info:
                await portal.submit_decision("m1", {"data": {}})

        assert exc_info.value.message == ""
        assert exc_info.value.status_code == 502
