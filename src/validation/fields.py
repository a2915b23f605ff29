"""
Field Validator

Checks one attribute's input against its declared type and domain,
converts raw form text into the value sent to the decision service,
and phrases the input hint shown next to each form field.

An empty string from ``validate_field`` means the value is acceptable.
"""

from typing import Any

from src.models.catalog import ContinuousField, FieldDefinition, NominalField
from src.utils.text import format_value, is_integral, join_options, parse_number


NUMERIC_ERROR = "Please enter a numeric value."
INTEGER_ERROR = "Please enter an integer value."


def validate_field(field: FieldDefinition, raw: Any) -> str:
    """
    Validate *raw* against *field*'s domain.

    Continuous attributes report at most one problem: a value outside
    ``[lower, upper]`` is reported as a range error even when it is also
    non-integral, since no integer fix would make it acceptable.
    Attributes of unknown type are always accepted.
    """
    if isinstance(field, ContinuousField):
        domain = field.domain
        value = parse_number(raw)
        if value is None:
            return NUMERIC_ERROR
        if value < domain.lower or value > domain.upper:
            return (
                f"Value must be between {format_value(domain.lower)} "
                f"and {format_value(domain.upper)}."
            )
        if domain.discrete and not is_integral(value):
            return INTEGER_ERROR
        return ""

    if isinstance(field, NominalField):
        if not isinstance(raw, str) or raw not in field.domain.values:
            return f"Select one of: {join_options(field.domain.values)}."
        return ""

    return ""


def process_value(field: FieldDefinition, raw: Any) -> Any:
    """
    Convert form input into the value placed in the scenario.

    Continuous input is parsed to a number (``None`` when it does not
    parse); everything else passes through unchanged.
    """
    if isinstance(field, ContinuousField):
        return parse_number(raw)
    return raw


def field_hint(field: FieldDefinition) -> str:
    """Input hint for a form field, empty for attributes of unknown type."""
    if isinstance(field, ContinuousField):
        domain = field.domain
        suffix = " (integer)" if domain.discrete else ""
        return (
            f"Enter a number between {format_value(domain.lower)} "
            f"and {format_value(domain.upper)}{suffix}."
        )
    if isinstance(field, NominalField):
        return f"Select one of: {join_options(field.domain.values)}."
    return ""


def field_hints(fields: list[FieldDefinition]) -> dict[str, str]:
    """Hints keyed by attribute name, skipping attributes without one."""
    hints: dict[str, str] = {}
    for field in fields:
        hint = field_hint(field)
        if hint:
            hints[field.name] = hint
    return hints
