"""Scenario payloads, decision requests and decision log records."""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class ScenarioAttributes(BaseModel):
    input: dict[str, Any] = Field(default_factory=dict)


class ScenarioData(BaseModel):
    type: str = "scenario"
    attributes: ScenarioAttributes = Field(default_factory=ScenarioAttributes)


class ScenarioPayload(BaseModel):
    """
    JSON:API document carrying one scenario to the decision service.

    Serialises as ``{"data": {"type": "scenario", "attributes": {"input": {...}}}}``.
    """

    data: ScenarioData = Field(default_factory=ScenarioData)

    @classmethod
    def for_input(cls, processed_input: dict[str, Any]) -> "ScenarioPayload":
        return cls(data=ScenarioData(attributes=ScenarioAttributes(input=dict(processed_input))))

    @property
    def input(self) -> dict[str, Any]:
        return self.data.attributes.input


class DecisionRequest(BaseModel):
    """Body of ``POST /api/decision``."""

    model_id: str = Field(..., min_length=1, alias="modelId")
    input_data: dict[str, Any] = Field(..., alias="inputData")

    model_config = {
        "populate_by_name": True,
        "protected_namespaces": (),
        "json_schema_extra": {
            "example": {
                "modelId": "58d3bcf97c6b1644db73ad12",
                "inputData": {
                    "data": {
                        "type": "scenario",
                        "attributes": {"input": {"age": 30, "plan": "Premium"}},
                    }
                },
            }
        },
    }


class BatchDecisionRequest(BaseModel):
    """Body of ``POST /api/decision/batch``."""
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    model_id: str = Field(..., min_length=1, alias="modelId")
    batch_inputs: list[dict[str, Any]] = Field(..., alias="batchInputs")


class DecisionLogRecord(BaseModel):
    """
    Persisted record of one decision submission and its result.

    Append-only - records are never modified or deleted.
    """
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    log_id: UUID = Field(default_factory=uuid4)
    model_id: str = Field(..., description="Decision model the scenario was sent to")
    input_data: dict[str, Any] = Field(..., description="Payload forwarded to the decision service")
    decision_result: Any = Field(..., description="Raw decision returned by the service")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
