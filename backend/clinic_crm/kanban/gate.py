"""
Transition gate: decides whether a requested move is a no-op, proceeds
directly, or needs an attendance outcome first.

The gate never touches the board. It only inspects statuses.
"""

from enum import Enum
from typing import Optional

from clinic_crm.statuses import (
    PipelineRegistry,
    ATTENDANCE_OUTCOME_VALUES,
    DEFAULT_ATTENDANCE_OUTCOME,
    is_attendance_outcome,
)


class Decision(Enum):
    NOOP = "noop"
    PROCEED = "proceed"
    PROMPT = "prompt"


class InvalidTransitionError(ValueError):
    """The requested target is not a state of the pipeline."""

    def __init__(self, message: str, record_id=None, target=None):
        super().__init__(message)
        self.message = message
        self.record_id = record_id
        self.target = target


class TransitionCancelled(Exception):
    """The outcome prompt was dismissed and no default applies."""


class TransitionGate:
    def __init__(self, registry: PipelineRegistry, default_outcome: Optional[str] = DEFAULT_ATTENDANCE_OUTCOME):
        if default_outcome is not None and not is_attendance_outcome(default_outcome):
            raise ValueError(f"Unknown default outcome: {default_outcome!r}")
        self.registry = registry
        self.default_outcome = default_outcome

    def evaluate(self, current: str, target: str, record_id=None) -> Decision:
        """Classify a move of `record_id` from `current` to `target`."""
        if not self.registry.is_valid(target):
            raise InvalidTransitionError(
                f"Invalid status: {target}", record_id=record_id, target=target
            )
        if target == current:
            return Decision.NOOP
        if self.registry.is_terminal(target):
            return Decision.PROMPT
        return Decision.PROCEED

    def resolve_outcome(self, choice: Optional[str]) -> str:
        """Turn the prompt's answer into the outcome that gets submitted."""
        if choice is None:
            if self.default_outcome is None:
                raise TransitionCancelled("Outcome selection was dismissed")
            return self.default_outcome
        if not is_attendance_outcome(choice):
            raise InvalidTransitionError(
                f"Invalid attendance outcome: {choice}. Expected one of: {', '.join(ATTENDANCE_OUTCOME_VALUES)}"
            )
        return choice
