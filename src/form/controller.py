"""
Scenario Form Controller

UI-independent logic behind a model's input form:

1. Hints per field when the model is loaded
2. Immediate validation of each edit
3. On submit: full field pass -> exclusion rules -> decision request
4. Batch preparation: the same checks applied row by row

The controller keeps the form's state (raw values, error slots, the
last decision or error) so any front-end can render it.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from src.form.state_machine import SubmissionStateMachine
from src.models.catalog import FieldDefinition, ModelDetail
from src.models.decision import ScenarioPayload
from src.models.enums import SubmissionState
from src.tom.client import DecisionServiceError
from src.validation.exclusions import check_exclusions
from src.validation.fields import field_hints, process_value, validate_field

logger = logging.getLogger(__name__)

FIELD_ERRORS_MESSAGE = "Please correct the highlighted errors before submitting."
EXCLUSION_MESSAGE = "Your input scenario violates an exclusion rule."
REMOTE_ERROR_MESSAGE = "Something went wrong"
SUBMIT_FAILED_MESSAGE = "Failed to submit decision."


class DecisionSubmitter(Protocol):
    """Anything that can forward a scenario to the decision service."""

    async def submit_decision(self, model_id: str, payload: ScenarioPayload) -> Any:
        ...


@dataclass
class SubmissionOutcome:
    """What one submit attempt produced, for display."""
    state: SubmissionState
    decision: Optional[Any] = None
    error: Optional[str] = None
    field_errors: dict[str, str] = field(default_factory=dict)
    exclusion_error: str = ""
    processed_input: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.state == SubmissionState.SUCCEEDED


@dataclass
class BatchPreparation:
    """Rows of a batch split into submittable inputs and per-row errors."""
    inputs: list[dict[str, Any]] = field(default_factory=list)
    row_numbers: list[int] = field(default_factory=list)
    errors: dict[int, str] = field(default_factory=dict)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


class ScenarioFormController:
    """
    Form state and submission flow for one decision model.

    Usage:
        form = ScenarioFormController(model, submitter=PortalClient())
        form.edit("age", "30")
        outcome = await form.submit()
    """

    def __init__(self, model: ModelDetail, submitter: DecisionSubmitter):
        self.model = model
        self.submitter = submitter
        self.state_machine = SubmissionStateMachine()

        self.hints: dict[str, str] = field_hints(model.attributes)
        self.form_data: dict[str, Any] = {}
        self.field_errors: dict[str, str] = {}
        self.exclusion_error: str = ""
        self.error: Optional[str] = None
        self.decision: Optional[Any] = None

    @property
    def model_id(self) -> str:
        return self.model.id

    @property
    def fields(self) -> list[FieldDefinition]:
        return self.model.attributes

    @property
    def state(self) -> SubmissionState:
        return self.state_machine.state

    @property
    def is_submitting(self) -> bool:
        return self.state_machine.is_in_flight

    def get_field(self, name: str) -> FieldDefinition:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(f"Model {self.model_id} has no attribute named {name!r}")

    # ----- Editing -----

    def edit(self, name: str, raw: Any) -> str:
        """
        Store a new raw value and validate it straight away.

        Returns the field's error message ("" when valid). Never blocks
        further edits.
        """
        field_def = self.get_field(name)
        self.state_machine.reset()
        self.form_data[name] = raw
        message = validate_field(field_def, raw)
        self.field_errors[name] = message
        return message

    def process(self, raw_values: dict[str, Any]) -> tuple[dict[str, Any], dict[str, str]]:
        """
        Process and validate every declared field.

        Returns:
            (processed input keyed by name, errors keyed by name)
        """
        processed: dict[str, Any] = {}
        errors: dict[str, str] = {}
        for field_def in self.fields:
            value = process_value(field_def, raw_values.get(field_def.name))
            message = validate_field(field_def, value)
            if message:
                errors[field_def.name] = message
            processed[field_def.name] = value
        return processed, errors

    def check_exclusions(self, processed: dict[str, Any]) -> str:
        return check_exclusions(processed, self.fields, self.model.rules)

    # ----- Submitting -----

    async def submit(self) -> SubmissionOutcome:
        """
        Validate the current form and, if it passes, request a decision.

        Raises:
            SubmissionInProgress: if a previous submit has not finished
        """
        ctx = await self.state_machine.start(self.model_id)
        self.error = None
        self.decision = None
        self.exclusion_error = ""

        processed, errors = self.process(self.form_data)
        ctx.processed_input = processed
        self.field_errors = errors

        if errors:
            self.error = FIELD_ERRORS_MESSAGE
            await self.state_machine.reject(SubmissionState.VALIDATION_FAILED, self.error)
            return self._outcome(processed)

        exclusion = self.check_exclusions(processed)
        if exclusion:
            self.exclusion_error = exclusion
            self.error = EXCLUSION_MESSAGE
            await self.state_machine.reject(SubmissionState.EXCLUSION_FAILED, exclusion)
            return self._outcome(processed)

        await self.state_machine.begin_submit()
        payload = ScenarioPayload.for_input(processed)
        try:
            result = await self.submitter.submit_decision(self.model_id, payload)
        except DecisionServiceError as e:
            self.error = e.message or (REMOTE_ERROR_MESSAGE if e.status_code else SUBMIT_FAILED_MESSAGE)
            logger.warning("Decision request for model %s failed: %s", self.model_id, self.error)
            await self.state_machine.fail(self.error)
            return self._outcome(processed)
        except BaseException:
            # Includes cancellation: the attempt must not stay in flight.
            self.error = SUBMIT_FAILED_MESSAGE
            self.state_machine.abort(self.error)
            raise

        self.decision = result
        await self.state_machine.succeed(result)
        logger.info(
            "Decision for model %s received in %s ms",
            self.model_id, ctx.duration_ms,
        )
        return self._outcome(processed)

    def _outcome(self, processed: dict[str, Any]) -> SubmissionOutcome:
        return SubmissionOutcome(
            state=self.state,
            decision=self.decision,
            error=self.error,
            field_errors=dict(self.field_errors),
            exclusion_error=self.exclusion_error,
            processed_input=processed,
        )

    # ----- Batch -----

    def prepare_batch(self, rows: list[dict[str, Any]]) -> BatchPreparation:
        """
        Run field and exclusion checks over each batch row.

        Rows are numbered from 1. Valid rows become scenario inputs;
        invalid rows are reported with their first problem.
        """
        prepared = BatchPreparation()
        for number, row in enumerate(rows, start=1):
            processed, errors = self.process(row)
            if errors:
                name, message = next(iter(errors.items()))
                prepared.errors[number] = f"{name}: {message}"
                continue
            exclusion = self.check_exclusions(processed)
            if exclusion:
                prepared.errors[number] = exclusion
                continue
            prepared.inputs.append(processed)
            prepared.row_numbers.append(number)
        return prepared
