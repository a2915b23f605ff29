"""
Submission State Machine

Tracks the lifecycle of one scenario submission attempt from a form.

States:
- IDLE: No submission in progress
- VALIDATING: Per-field and exclusion checks running
- VALIDATION_FAILED: At least one field is invalid
- EXCLUSION_FAILED: Fields are valid but an exclusion rule fired
- SUBMITTING: Request in flight to the decision service
- SUCCEEDED: Decision received
- FAILED: Decision service call failed

Every terminal state returns to IDLE when the next attempt starts.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

from src.models.enums import SubmissionState

logger = logging.getLogger(__name__)


# Valid state transitions
VALID_TRANSITIONS: dict[SubmissionState, set[SubmissionState]] = {
    SubmissionState.IDLE: {SubmissionState.VALIDATING},
    SubmissionState.VALIDATING: {
        SubmissionState.VALIDATION_FAILED,
        SubmissionState.EXCLUSION_FAILED,
        SubmissionState.SUBMITTING,
    },
    SubmissionState.SUBMITTING: {
        SubmissionState.SUCCEEDED,
        SubmissionState.FAILED,
    },
    SubmissionState.VALIDATION_FAILED: {SubmissionState.IDLE},
    SubmissionState.EXCLUSION_FAILED: {SubmissionState.IDLE},
    SubmissionState.SUCCEEDED: {SubmissionState.IDLE},
    SubmissionState.FAILED: {SubmissionState.IDLE},
}

TERMINAL_STATES = frozenset({
    SubmissionState.VALIDATION_FAILED,
    SubmissionState.EXCLUSION_FAILED,
    SubmissionState.SUCCEEDED,
    SubmissionState.FAILED,
})

IN_FLIGHT_STATES = frozenset({
    SubmissionState.VALIDATING,
    SubmissionState.SUBMITTING,
})


class InvalidStateTransition(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_state: SubmissionState, to_state: SubmissionState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(f"Invalid transition: {from_state.value} -> {to_state.value}")


class SubmissionInProgress(Exception):
    """Raised when a submission is started while another is in flight."""

    def __init__(self, state: SubmissionState):
        self.state = state
        super().__init__(f"Cannot submit: a submission is already {state.value}")


@dataclass
class SubmissionContext:
    """Everything known about one submission attempt."""
    trace_id: str = field(default_factory=lambda: f"submit_{uuid4().hex[:12]}")
    model_id: str = ""

    # Timestamps
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: Optional[datetime] = None

    # Results
    processed_input: dict[str, Any] = field(default_factory=dict)
    result: Optional[Any] = None
    error: Optional[str] = None

    @property
    def duration_ms(self) -> Optional[int]:
        """Calculate execution duration in milliseconds."""
        if self.ended_at:
            delta = self.ended_at - self.started_at
            return int(delta.total_seconds() * 1000)
        return None

    def mark_complete(self, result: Any = None) -> None:
        self.ended_at = datetime.now(timezone.utc)
        self.result = result

    def mark_error(self, error: str) -> None:
        self.ended_at = datetime.now(timezone.utc)
        self.error = error


# Type for state change callbacks
StateCallback = Callable[[SubmissionState, SubmissionState, SubmissionContext], None]


class SubmissionStateMachine:
    """
    State machine for a form's submissions.

    At most one submission is in flight at a time: ``start()`` refuses
    to begin while VALIDATING or SUBMITTING.
    """

    def __init__(self, on_state_change: Optional[StateCallback] = None):
        self._state = SubmissionState.IDLE
        self._context: Optional[SubmissionContext] = None
        self._on_state_change = on_state_change
        self._lock = asyncio.Lock()
        self._state_history: list[tuple[SubmissionState, datetime]] = []

    @property
    def state(self) -> SubmissionState:
        """Current state."""
        return self._state

    @property
    def context(self) -> Optional[SubmissionContext]:
        """Context of the current or most recent attempt."""
        return self._context

    @property
    def is_in_flight(self) -> bool:
        return self._state in IN_FLIGHT_STATES

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    def _can_transition(self, to_state: SubmissionState) -> bool:
        return to_state in VALID_TRANSITIONS.get(self._state, set())

    def _apply(self, to_state: SubmissionState) -> None:
        if not self._can_transition(to_state):
            raise InvalidStateTransition(self._state, to_state)

        from_state = self._state
        self._state = to_state
        self._state_history.append((to_state, datetime.now(timezone.utc)))

        if self._on_state_change and self._context:
            try:
                self._on_state_change(from_state, to_state, self._context)
            except Exception:
                logger.exception("State change callback failed")

    async def transition(self, to_state: SubmissionState) -> None:
        """
        Transition to a new state.

        Raises InvalidStateTransition if not allowed.
        """
        async with self._lock:
            self._apply(to_state)

    async def start(self, model_id: str = "") -> SubmissionContext:
        """
        Begin a new attempt, clearing any terminal state into IDLE first.

        Raises:
            SubmissionInProgress: if an attempt is still running
        """
        async with self._lock:
            if self.is_in_flight:
                raise SubmissionInProgress(self._state)
            if self.is_terminal:
                self._apply(SubmissionState.IDLE)

            self._context = SubmissionContext(model_id=model_id)
            self._state_history = [(SubmissionState.IDLE, self._context.started_at)]
            self._apply(SubmissionState.VALIDATING)
        return self._context

    async def reject(self, state: SubmissionState, error: str) -> None:
        """End the attempt in VALIDATION_FAILED or EXCLUSION_FAILED."""
        if self._context:
            self._context.mark_error(error)
        await self.transition(state)

    async def begin_submit(self) -> None:
        await self.transition(SubmissionState.SUBMITTING)

    async def succeed(self, result: Any = None) -> None:
        if self._context:
            self._context.mark_complete(result)
        await self.transition(SubmissionState.SUCCEEDED)

    async def fail(self, error: str) -> None:
        if self._context:
            self._context.mark_error(error)
        await self.transition(SubmissionState.FAILED)

    def abort(self, error: str) -> None:
        """
        Fail an in-flight request without awaiting.

        Safe to call while the task is being cancelled.
        """
        if self._state != SubmissionState.SUBMITTING:
            return
        if self._context:
            self._context.mark_error(error)
        self._apply(SubmissionState.FAILED)

    def reset(self) -> None:
        """Return to IDLE after a terminal state (e.g. on the next edit)."""
        if self.is_terminal:
            self._apply(SubmissionState.IDLE)

    def get_state_history(self) -> list[tuple[str, str]]:
        """Get state transition history."""
        return [(s.value, t.isoformat()) for s, t in self._state_history]
