"""
Exclusion Rule Engine

Evaluates a model's cross-field exclusion rules against a fully
processed scenario input. Rules are checked in declared order and the
first violated rule's description is returned; later rules are not
evaluated. An empty string means the scenario is allowed.

Rule classes:
- ValueEx: when every antecedent holds, every consequent must hold.
- BlatantEx: the antecedent combination is never allowed.
- RelationshipEx: the relation condition must always hold.

Inputs are assumed to have passed field validation already.
"""

import logging
from typing import Any, Optional, Sequence

from src.models.catalog import (
    BlatantExclusion,
    Condition,
    ExclusionRule,
    FieldDefinition,
    RelationshipExclusion,
    ValueExclusion,
)
from src.models.enums import ConditionType
from src.utils.text import format_value
from src.validation.conditions import evaluate

logger = logging.getLogger(__name__)

VIOLATION_PREFIX = "Exclusion rule violation: "

_RELATION_PHRASES: dict[ConditionType, str] = {
    ConditionType.LTEQ: "less than or equal to",
    ConditionType.GT: "greater than",
    ConditionType.EQ: "equal to",
    ConditionType.NEQ: "different from",
}


def _label(attributes: Sequence[FieldDefinition], condition: Condition) -> str:
    return attributes[condition.index].label


def _holds(
    condition: Condition,
    data: dict[str, Any],
    attributes: Sequence[FieldDefinition],
) -> bool:
    attribute = attributes[condition.index]
    return evaluate(data.get(attribute.name), condition)


def _all_hold(
    conditions: Sequence[Condition],
    data: dict[str, Any],
    attributes: Sequence[FieldDefinition],
) -> bool:
    return all(_holds(c, data, attributes) for c in conditions)


def _describe_clauses(
    conditions: Sequence[Condition],
    attributes: Sequence[FieldDefinition],
) -> str:
    clauses = []
    for c in conditions:
        symbol = "=" if c.type == ConditionType.EQ else "≠"
        clauses.append(f"{_label(attributes, c)} {symbol} {format_value(c.threshold)}")
    return " and ".join(clauses)


def _describe_requirements(
    conditions: Sequence[Condition],
    attributes: Sequence[FieldDefinition],
) -> str:
    return " and ".join(
        f"{_label(attributes, c)} must be {format_value(c.threshold)}"
        for c in conditions
    )


def _check_value_rule(
    rule: ValueExclusion,
    data: dict[str, Any],
    attributes: Sequence[FieldDefinition],
) -> str:
    if not _all_hold(rule.antecedent, data, attributes):
        return ""
    if _all_hold(rule.consequent, data, attributes):
        return ""
    return (
        f"{VIOLATION_PREFIX}When {_describe_clauses(rule.antecedent, attributes)}, "
        f"then {_describe_requirements(rule.consequent, attributes)}."
    )


def _check_blatant_rule(
    rule: BlatantExclusion,
    data: dict[str, Any],
    attributes: Sequence[FieldDefinition],
) -> str:
    if not _all_hold(rule.antecedent, data, attributes):
        return ""
    return f"{VIOLATION_PREFIX}{_describe_clauses(rule.antecedent, attributes)} is not allowed."


def _check_relationship_rule(
    rule: RelationshipExclusion,
    data: dict[str, Any],
    attributes: Sequence[FieldDefinition],
) -> str:
    relation = rule.relation
    if _holds(relation, data, attributes):
        return ""
    return (
        f"{VIOLATION_PREFIX}{_label(attributes, relation)} must be "
        f"{_RELATION_PHRASES[relation.type]} {format_value(relation.threshold)}."
    )


def check_rule(
    rule: ExclusionRule,
    data: dict[str, Any],
    attributes: Sequence[FieldDefinition],
) -> str:
    """Check a single rule, returning its violation message or ``""``."""
    if isinstance(rule, ValueExclusion):
        return _check_value_rule(rule, data, attributes)
    if isinstance(rule, BlatantExclusion):
        return _check_blatant_rule(rule, data, attributes)
    if isinstance(rule, RelationshipExclusion):
        return _check_relationship_rule(rule, data, attributes)
    raise TypeError(f"Unsupported exclusion rule: {type(rule).__name__}")


def check_exclusions(
    data: dict[str, Any],
    attributes: Sequence[FieldDefinition],
    rules: Optional[Sequence[ExclusionRule]],
) -> str:
    """
    Evaluate *rules* against processed scenario *data*.

    Args:
        data: Processed input keyed by attribute name
        attributes: The model's attribute list (conditions index into it)
        rules: Exclusion rules in declared order

    Returns:
        The first violated rule's message, or ``""`` when none fires
    """
    if not rules:
        return ""

    for position, rule in enumerate(rules):
        message = check_rule(rule, data, attributes)
        if message:
            logger.debug("Exclusion rule %d (%s) violated", position, rule.type)
            return message
    return ""
