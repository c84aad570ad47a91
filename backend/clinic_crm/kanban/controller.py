"""
Kanban controller: runs a drop or an explicit move through the gate, the
optimistic mutator and the reconciliation client.

    Idle -> Validating -> (rejected -> Idle)
         -> Mutating -> Persisting -> Confirmed
                                   -> Failed -> Reverting -> Idle at origin
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Optional

from clinic_crm.kanban.board import Board, OptimisticMutator
from clinic_crm.kanban.client import ReconciliationClient
from clinic_crm.kanban.gate import (
    Decision,
    InvalidTransitionError,
    TransitionCancelled,
    TransitionGate,
)
from clinic_crm.kanban.prompt import OutcomePrompt
from clinic_crm.statuses import ATTENDANCE_OUTCOMES, OUTCOME_PROMPT_MESSAGE, PipelineRegistry

logger = logging.getLogger("kanban.controller")


class MoveOutcome(Enum):
    NOOP = "noop"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    CONFIRMED = "confirmed"
    REVERTED = "reverted"


class KanbanController:
    def __init__(
        self,
        registry: PipelineRegistry,
        board: Board,
        client: ReconciliationClient,
        prompt: OutcomePrompt,
        gate: Optional[TransitionGate] = None,
    ):
        self.registry = registry
        self.board = board
        self.client = client
        self.prompt = prompt
        self.gate = gate or TransitionGate(registry)
        self.mutator = client.mutator
        self._dragged_id: Optional[int] = None

    @classmethod
    def build(cls, registry, http, sink, prompt, token_provider=None, gate=None) -> "KanbanController":
        """Wire a board, mutator and client around one HTTP client."""
        board = Board(registry)
        client = ReconciliationClient(registry, http, OptimisticMutator(board), sink, token_provider)
        return cls(registry, board, client, prompt, gate=gate)

    @property
    def sink(self):
        return self.client.sink

    # =========================================================================
    # Drag slot
    # =========================================================================

    @property
    def dragged_id(self) -> Optional[int]:
        return self._dragged_id

    def drag_start(self, record_id: int) -> None:
        self._dragged_id = record_id

    def drag_end(self) -> None:
        self._dragged_id = None

    @contextmanager
    def dragging(self, record_id: int):
        self.drag_start(record_id)
        try:
            yield self
        finally:
            self.drag_end()

    async def drop(self, target: str) -> MoveOutcome:
        """Drop the dragged card on a column (`column-<status>` or bare status)."""
        record_id = self._dragged_id
        self._dragged_id = None
        if record_id is None:
            return MoveOutcome.NOOP

        status = self.registry.status_for_column(target)
        return await self.move(record_id, status if status is not None else target)

    # =========================================================================
    # Move
    # =========================================================================

    async def move(self, record_id: int, target_status: str) -> MoveOutcome:
        card = self.board.card(record_id)
        if card is None:
            self.sink.error(f"Card {record_id} is not on the board")
            return MoveOutcome.REJECTED

        # Validating
        try:
            decision = self.gate.evaluate(card.status, target_status, record_id)
        except InvalidTransitionError as exc:
            logger.warning(f"Rejected move of {record_id} to {target_status!r}")
            self.sink.error(exc.message)
            return MoveOutcome.REJECTED

        if decision == Decision.NOOP:
            return MoveOutcome.NOOP

        outcome = None
        if decision == Decision.PROMPT:
            choice = await self.prompt.choose(OUTCOME_PROMPT_MESSAGE, ATTENDANCE_OUTCOMES)
            try:
                outcome = self.gate.resolve_outcome(choice)
            except TransitionCancelled:
                logger.info(f"Move of {record_id} to {target_status} cancelled")
                return MoveOutcome.CANCELLED
            except InvalidTransitionError as exc:
                self.sink.error(exc.message)
                return MoveOutcome.REJECTED

            # The card may have moved while the prompt was open
            if self.board.card(record_id) is None:
                return MoveOutcome.REJECTED
            if self.board.card(record_id).status == target_status:
                return MoveOutcome.NOOP

        # Mutating
        origin = self.mutator.apply(record_id, target_status, outcome)

        # Persisting
        result = await self.client.reconcile(record_id, target_status, outcome, origin)
        return MoveOutcome.CONFIRMED if result.ok else MoveOutcome.REVERTED

    async def load(self, **params) -> Board:
        records = await self.client.fetch_records(**params)
        self.board.load(records)
        logger.info(f"Loaded {sum(self.board.counters.values())} {self.registry.resource} onto the board")
        return self.board
