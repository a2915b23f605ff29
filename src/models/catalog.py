"""
Model catalog schema.

Typed views of what the decision service returns for its model list and
for a single model's metadata: attribute definitions and exclusion rules.
Raw JSON:API documents are flattened into these models at the client
boundary, so everything downstream works on normalised, closed types.
"""

from typing import Annotated, Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    field_validator,
    model_validator,
)

from src.models.enums import ConditionType, FieldType, RuleType


Number = Union[int, float]
Threshold = Union[int, float, str]


# -----------------------------------------------------------------------------
# Attribute definitions
# -----------------------------------------------------------------------------

class ContinuousDomain(BaseModel):
    """Inclusive numeric range, optionally restricted to integers."""
    model_config = ConfigDict(extra="ignore")

    lower: Number
    upper: Number
    discrete: bool = False


class NominalDomain(BaseModel):
    """Ordered set of allowed string literals."""
    model_config = ConfigDict(extra="ignore")

    values: list[str] = Field(default_factory=list)


class AttributeBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = Field(..., min_length=1)
    question: Optional[str] = None

    @property
    def label(self) -> str:
        """Human readable label, falling back to the attribute name."""
        return self.question or self.name


class ContinuousField(AttributeBase):
    type: Literal["Continuous"] = "Continuous"
    domain: ContinuousDomain


class NominalField(AttributeBase):
    type: Literal["Nominal"] = "Nominal"
    domain: NominalDomain


class OpaqueField(AttributeBase):
    """Attribute of a type this portal does not know how to validate."""
    type: str = ""
    domain: Optional[dict[str, Any]] = None


def _field_kind(value: Any) -> str:
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if kind in (FieldType.CONTINUOUS.value, FieldType.NOMINAL.value):
        return str(kind)
    return "opaque"


FieldDefinition = Annotated[
    Union[
        Annotated[ContinuousField, Tag(FieldType.CONTINUOUS.value)],
        Annotated[NominalField, Tag(FieldType.NOMINAL.value)],
        Annotated[OpaqueField, Tag("opaque")],
    ],
    Discriminator(_field_kind),
]


# -----------------------------------------------------------------------------
# Exclusion rules
# -----------------------------------------------------------------------------

class Condition(BaseModel):
    """Atomic comparison of one attribute's value against a threshold."""
    model_config = ConfigDict(extra="ignore")

    index: int = Field(..., ge=0, description="Position in the model's attribute list")
    type: ConditionType
    threshold: Threshold


def as_condition_list(value: Any) -> Any:
    """Accept a single condition object where a sequence is expected."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


class ValueExclusion(BaseModel):
    """When every antecedent holds, every consequent must hold too."""
    model_config = ConfigDict(extra="ignore")

    type: Literal["ValueEx"] = RuleType.VALUE.value
    antecedent: list[Condition] = Field(..., min_length=1)
    consequent: list[Condition] = Field(..., min_length=1)

    @field_validator("antecedent", "consequent", mode="before")
    @classmethod
    def normalise_conditions(cls, v: Any) -> Any:
        return as_condition_list(v)

    def conditions(self) -> list[Condition]:
        return [*self.antecedent, *self.consequent]


class BlatantExclusion(BaseModel):
    """The antecedent combination is never allowed."""
    model_config = ConfigDict(extra="ignore")

    type: Literal["BlatantEx"] = RuleType.BLATANT.value
    antecedent: list[Condition] = Field(..., min_length=1)

    @field_validator("antecedent", mode="before")
    @classmethod
    def normalise_conditions(cls, v: Any) -> Any:
        return as_condition_list(v)

    def conditions(self) -> list[Condition]:
        return list(self.antecedent)


class RelationshipExclusion(BaseModel):
    """The relation condition must always hold."""
    model_config = ConfigDict(extra="ignore")

    type: Literal["RelationshipEx"] = RuleType.RELATIONSHIP.value
    relation: Condition

    def conditions(self) -> list[Condition]:
        return [self.relation]


ExclusionRule = Annotated[
    Union[ValueExclusion, BlatantExclusion, RelationshipExclusion],
    Field(discriminator="type"),
]


# -----------------------------------------------------------------------------
# Model documents
# -----------------------------------------------------------------------------

class ModelMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    attributes: list[FieldDefinition] = Field(default_factory=list)

    @field_validator("attributes", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class ExclusionSet(BaseModel):
    model_config = ConfigDict(extra="ignore")

    rules: list[ExclusionRule] = Field(default_factory=list)

    @field_validator("rules", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return [] if v is None else v


class ModelSummary(BaseModel):
    """One entry of the model catalog."""
    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> "ModelSummary":
        """Flatten a JSON:API ``{id, attributes: {...}}`` resource."""
        attributes = dict(resource.get("attributes") or {})
        attributes["id"] = str(resource.get("id", ""))
        return cls.model_validate(attributes)


class ModelDetail(BaseModel):
    """
    A decision model with its input attributes and exclusion rules.

    Attribute order is significant: exclusion conditions address
    attributes by position, and every such position is checked here.
    """
    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None
    description: Optional[str] = None
    metadata: ModelMetadata = Field(default_factory=ModelMetadata)
    exclusions: ExclusionSet = Field(default_factory=ExclusionSet)

    @field_validator("metadata", "exclusions", mode="before")
    @classmethod
    def none_is_default(cls, v: Any) -> Any:
        return {} if v is None else v

    @model_validator(mode="after")
    def check_condition_indices(self) -> "ModelDetail":
        count = len(self.metadata.attributes)
        for position, rule in enumerate(self.exclusions.rules):
            for condition in rule.conditions():
                if condition.index >= count:
                    raise ValueError(
                        f"Exclusion rule {position} references attribute index "
                        f"{condition.index}, but the model has {count} attributes"
                    )
        return self

    @property
    def attributes(self) -> list[FieldDefinition]:
        return self.metadata.attributes

    @property
    def rules(self) -> list[ExclusionRule]:
        return self.exclusions.rules

    @classmethod
    def from_resource(cls, resource: dict[str, Any]) -> "ModelDetail":
        """Flatten a JSON:API ``{id, attributes: {...}}`` resource."""
        attributes = dict(resource.get("attributes") or {})
        attributes["id"] = str(resource.get("id", ""))
        return cls.model_validate(attributes)
