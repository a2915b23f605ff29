"""
Scenario validation.

Components:
    conditions  : atomic threshold comparisons
    fields      : per-attribute domain checks, value processing, hints
    exclusions  : ordered cross-field exclusion rules
"""

from src.validation.conditions import evaluate
from src.validation.exclusions import check_exclusions, check_rule
from src.validation.fields import field_hint, field_hints, process_value, validate_field

__all__ = [
    "check_exclusions",
    "check_rule",
    "evaluate",
    "field_hint",
    "field_hints",
    "process_value",
    "validate_field",
]
