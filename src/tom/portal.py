"""
Portal API Client

Client used by the UI to talk to this project's own HTTP API rather than
to the decision service directly, so every decision goes through the
proxy that records it in the decision log.

Mirrors the part of the TomClient surface the form needs (get_model,
submit_decision, submit_batch) so the controller can work against either.
"""

import logging
from typing import Any, Optional

import httpx

from src.config import get_settings
from src.models.catalog import ModelDetail
from src.models.decision import ScenarioPayload
from src.tom.client import DecisionServiceError, error_detail, parse_model_detail

logger = logging.getLogger(__name__)


class PortalClient:
    """Async client for the portal's ``/api`` routes."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.portal_api_url).rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "PortalClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        client = self._get_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            # Transport failures carry no detail worth showing; the form
            # falls back to its generic message.
            logger.error("Portal API %s %s failed: %s", method, path, e)
            raise DecisionServiceError("")

        if response.is_error:
            # No detail: the form shows its generic remote error message.
            raise DecisionServiceError(error_detail(response, fallback=""), response.status_code)
        try:
            return response.json()
        except ValueError:
            raise DecisionServiceError("Portal API returned invalid JSON", response.status_code)

    async def get_model(self, model_id: str) -> ModelDetail:
        return parse_model_detail(await self._request("GET", f"/api/models/{model_id}"))

    async def submit_decision(
        self,
        model_id: str,
        payload: ScenarioPayload | dict[str, Any],
    ) -> Any:
        if isinstance(payload, ScenarioPayload):
            payload = payload.model_dump()
        return await self._request(
            "POST",
            "/api/decision",
            json={"modelId": model_id, "inputData": payload},
        )

    async def submit_batch(self, model_id: str, inputs: list[dict[str, Any]]) -> list[Any]:
        return await self._request(
            "POST",
            "/api/decision/batch",
            json={"modelId": model_id, "batchInputs": inputs},
        )
