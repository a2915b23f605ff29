"""Scenario form package."""

from src.form.controller import (
    BatchPreparation,
    ScenarioFormController,
    SubmissionOutcome,
)
from src.form.state_machine import (
    InvalidStateTransition,
    SubmissionContext,
    SubmissionInProgress,
    SubmissionStateMachine,
)

__all__ = [
    "BatchPreparation",
    "InvalidStateTransition",
    "ScenarioFormController",
    "SubmissionContext",
    "SubmissionInProgress",
    "SubmissionOutcome",
    "SubmissionStateMachine",
]
