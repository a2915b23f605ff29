"""
Decision Service Client

HTTP client for the remote decision service (TOM API v3).

Provides:
- Model catalog listing and model metadata lookup
- Single-scenario and batch decision submission

Every failure, whether transport, HTTP status or malformed metadata,
surfaces as a DecisionServiceError carrying a displayable message.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from src.config import get_settings
from src.models.catalog import ModelDetail, ModelSummary
from src.models.decision import ScenarioPayload

logger = logging.getLogger(__name__)

JSON_API = "application/vnd.api+json"


@dataclass(eq=False)
class DecisionServiceError(Exception):
    """Error from the decision service (or a proxy in front of it)."""
    message: str
    status_code: Optional[int] = None

    def __str__(self) -> str:
        return self.message


def error_detail(response: httpx.Response, fallback: Optional[str] = None) -> str:
    """
    Best human readable description of a failed response.

    Without a detail in the body, returns ``fallback`` if given, else a
    message naming the status code.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        if body.get("error"):
            return str(body["error"])
        errors = body.get("errors")
        if isinstance(errors, list) and errors:
            first = errors[0]
            if isinstance(first, dict):
                detail = first.get("detail") or first.get("title")
                if detail:
                    return str(detail)
        if body.get("detail"):
            return str(body["detail"])
    if fallback is not None:
        return fallback
    return f"Request failed with status code {response.status_code}"


class TomClient:
    """
    Async client for the TOM decision API.

    Usage:
        async with TomClient() as tom:
            models = await tom.list_models()
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.tom_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.tom_api_key
        self.timeout = timeout or settings.tom_timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "TomClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            headers = {"Content-Type": JSON_API}
            if self.api_key:
                headers["Authorization"] = f"Token {self.api_key}"
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
                transport=self._transport,
                trust_env=False,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        client = self._get_client()
        try:
            response = await client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error("Decision service %s %s failed: %s", method, path, e)
            raise DecisionServiceError(str(e) or type(e).__name__)

        if response.is_error:
            detail = error_detail(response)
            logger.warning(
                "Decision service %s %s returned %d: %s",
                method, path, response.status_code, detail,
            )
            raise DecisionServiceError(detail, response.status_code)

        try:
            return response.json()
        except ValueError:
            raise DecisionServiceError("Decision service returned invalid JSON", response.status_code)

    # ----- Model catalog -----

    async def fetch_models(self) -> dict[str, Any]:
        """Raw JSON:API model list document."""
        return await self._request("GET", "/models")

    async def fetch_model(self, model_id: str) -> dict[str, Any]:
        """Raw JSON:API model document."""
        return await self._request("GET", f"/models/{model_id}")

    async def list_models(self) -> list[ModelSummary]:
        """List the models available to this API key."""
        document = await self.fetch_models()
        return parse_model_list(document)

    async def get_model(self, model_id: str) -> ModelDetail:
        """
        Get a model's metadata: attribute definitions and exclusion rules.

        Raises:
            DecisionServiceError: on failure or malformed metadata
        """
        document = await self.fetch_model(model_id)
        return parse_model_detail(document)

    # ----- Decisions -----

    async def submit_decision(
        self,
        model_id: str,
        payload: ScenarioPayload | dict[str, Any],
    ) -> Any:
        """
        Request a decision for one scenario.

        Args:
            model_id: Decision model ID
            payload: Scenario JSON:API document

        Returns:
            The raw decision document
        """
        if isinstance(payload, ScenarioPayload):
            payload = payload.model_dump()
        return await self._request("POST", f"/decision/{model_id}", json=payload)

    async def submit_batch(
        self,
        model_id: str,
        inputs: list[dict[str, Any]],
    ) -> list[Any]:
        """
        Request decisions for many scenarios at once.

        Returns one result per input, in input order.
        """
        results = await self._request("POST", f"/decision/batch/{model_id}", json={"inputs": inputs})
        if not isinstance(results, list):
            raise DecisionServiceError("Batch decision response is not a list")
        if len(results) != len(inputs):
            raise DecisionServiceError(
                f"Batch decision returned {len(results)} results for {len(inputs)} inputs"
            )
        return results


def parse_model_list(document: Any) -> list[ModelSummary]:
    """Flatten a JSON:API model list document."""
    resources = document.get("data") if isinstance(document, dict) else None
    if not isinstance(resources, list):
        raise DecisionServiceError("Model list response has no data")
    try:
        return [ModelSummary.from_resource(r) for r in resources]
    except ValidationError as e:
        raise DecisionServiceError(f"Model list is invalid: {e}")


def parse_model_detail(document: Any) -> ModelDetail:
    """Flatten a JSON:API model document, validating its metadata."""
    resource = document.get("data") if isinstance(document, dict) else None
    if not isinstance(resource, dict):
        raise DecisionServiceError("Model response has no data")
    try:
        return ModelDetail.from_resource(resource)
    except ValidationError as e:
        raise DecisionServiceError(f"Model metadata is invalid: {e}")
