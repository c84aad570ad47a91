"""
Pipeline status registries shared by the REST backend and the board client.

Each registry is the fixed, ordered set of states a record can occupy on one
Kanban board, plus the terminal state that requires an attendance outcome.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

COLUMN_PREFIX = "column-"


@dataclass(frozen=True)
class OutcomeOption:
    """One entry of the attendance-outcome menu."""

    value: str
    label: str
    icon: str = ""


ATTENDANCE_OUTCOMES: Tuple[OutcomeOption, ...] = (
    OutcomeOption("compareceu", "Attended", "fas fa-check-circle"),
    OutcomeOption("nao_compareceu", "No-show", "fas fa-times-circle"),
    OutcomeOption("cancelado", "Cancelled", "fas fa-ban"),
    OutcomeOption("remarcado", "Rescheduled", "fas fa-calendar-alt"),
)
ATTENDANCE_OUTCOME_VALUES = tuple(option.value for option in ATTENDANCE_OUTCOMES)
DEFAULT_ATTENDANCE_OUTCOME = "compareceu"
OUTCOME_PROMPT_MESSAGE = "What was the outcome of the visit?"


def is_attendance_outcome(value) -> bool:
    return value in ATTENDANCE_OUTCOME_VALUES


@dataclass(frozen=True)
class PipelineRegistry:
    """Ordered pipeline states of one resource and its REST paths."""

    resource: str
    statuses: Tuple[str, ...]
    terminal: str
    collection_path: str
    status_path_template: str
    initial: str = field(default="")
    # Extra query string for the board listing
    board_query: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self):
        if self.terminal not in self.statuses:
            raise ValueError(f"Terminal status {self.terminal!r} is not in {self.statuses}")
        if not self.initial:
            object.__setattr__(self, "initial", self.statuses[0])

    def is_valid(self, status) -> bool:
        """Return True if `status` is a recognized pipeline state."""
        return isinstance(status, str) and status in self.statuses

    def is_terminal(self, status) -> bool:
        return status == self.terminal

    def order_of(self, status: str) -> int:
        """Position of `status` in the pipeline (unknown states sort last)."""
        try:
            return self.statuses.index(status)
        except ValueError:
            return len(self.statuses)

    def column_for_status(self, status: str) -> str:
        if not self.is_valid(status):
            raise ValueError(f"Unknown {self.resource} status: {status!r}")
        return f"{COLUMN_PREFIX}{status}"

    def status_for_column(self, column_id: str) -> Optional[str]:
        """Map a column identifier (`column-<status>` or the bare status) to a state."""
        if not isinstance(column_id, str):
            return None
        candidate = column_id[len(COLUMN_PREFIX):] if column_id.startswith(COLUMN_PREFIX) else column_id
        return candidate if self.is_valid(candidate) else None

    def status_path(self, record_id: int) -> str:
        return self.status_path_template.format(id=record_id)

    def board_params(self) -> dict:
        return dict(self.board_query)


PATIENT_STATUSES = ("waiting", "triage", "consultation", "finished")

PATIENT_PIPELINE = PipelineRegistry(
    resource="patients",
    statuses=PATIENT_STATUSES,
    terminal="finished",
    collection_path="/api/patients",
    status_path_template="/api/patients/{id}/status",
)

LEAD_STATUSES = ("novo", "em_atendimento", "agendado", "finalizado")
LEAD_ARCHIVED = "archived"
# Every value the lead table accepts; archived leads are never shown on the board
LEAD_STORED_STATUSES = LEAD_STATUSES + (LEAD_ARCHIVED,)

LEAD_PIPELINE = PipelineRegistry(
    resource="leads",
    statuses=LEAD_STATUSES,
    terminal="finalizado",
    collection_path="/api/leads",
    status_path_template="/api/leads/{id}",
    board_query=(("view", "kanban"),),
)

LEAD_TYPES = (
    "primeira_consulta",
    "retorno",
    "recorrente",
    "exame",
    "geral",
)
DEFAULT_LEAD_TYPE = "geral"
