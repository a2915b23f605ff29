"""
Data Models & Schema Layer

Core Pydantic models for the decision portal.
All modules import from here - no circular dependencies allowed.
"""

from src.models.enums import (
    FieldType,
    ConditionType,
    RuleType,
    SubmissionState,
)
from src.models.catalog import (
    ContinuousDomain,
    NominalDomain,
    ContinuousField,
    NominalField,
    OpaqueField,
    FieldDefinition,
    Condition,
    ValueExclusion,
    BlatantExclusion,
    RelationshipExclusion,
    ExclusionRule,
    ModelMetadata,
    ExclusionSet,
    ModelSummary,
    ModelDetail,
)
from src.models.decision import (
    ScenarioPayload,
    DecisionRequest,
    BatchDecisionRequest,
    DecisionLogRecord,
)

__all__ = [
    # Enums
    "FieldType",
    "ConditionType",
    "RuleType",
    "SubmissionState",
    # Catalog
    "ContinuousDomain",
    "NominalDomain",
    "ContinuousField",
    "NominalField",
    "OpaqueField",
    "FieldDefinition",
    "Condition",
    "ValueExclusion",
    "BlatantExclusion",
    "RelationshipExclusion",
    "ExclusionRule",
    "ModelMetadata",
    "ExclusionSet",
    "ModelSummary",
    "ModelDetail",
    # Decision
    "ScenarioPayload",
    "DecisionRequest",
    "BatchDecisionRequest",
    "DecisionLogRecord",
]
