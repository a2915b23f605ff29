"""Enumeration types for the decision portal."""

from enum import Enum


class FieldType(str, Enum):
    """Declared type of a model input attribute."""
    CONTINUOUS = "Continuous"
    NOMINAL = "Nominal"


class ConditionType(str, Enum):
    """Comparator used by an exclusion condition."""
    EQ = "EQ"        # value == threshold
    NEQ = "NEQ"      # value != threshold
    LTEQ = "LTEQ"    # value <= threshold
    GT = "GT"        # value > threshold


class RuleType(str, Enum):
    """Class of cross-field exclusion rule."""
    VALUE = "ValueEx"                # antecedents imply consequents
    BLATANT = "BlatantEx"            # antecedents are forbidden outright
    RELATIONSHIP = "RelationshipEx"  # relation must always hold


class SubmissionState(str, Enum):
    """State machine states for a single scenario submission."""
    IDLE = "idle"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    EXCLUSION_FAILED = "exclusion_failed"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
