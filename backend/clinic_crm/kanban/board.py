"""
In-memory Kanban board and the optimistic mutator that moves its cards.

The board owns one ordered column per pipeline state. A card lives in exactly
one column; every placement removes it from wherever it was first. Column
counters are derived from membership after every change.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from clinic_crm.statuses import PipelineRegistry

logger = logging.getLogger("kanban.board")


@dataclass
class Card:
    id: int
    status: str
    name: str = ""
    attendance_status: Optional[str] = None
    data: dict = field(default_factory=dict)

    @classmethod
    def from_record(cls, record: dict) -> "Card":
        return cls(
            id=int(record["id"]),
            status=record.get("status"),
            name=record.get("name") or "",
            attendance_status=record.get("attendance_status"),
            data=dict(record),
        )


@dataclass(frozen=True)
class Placement:
    """Where a card sat before an optimistic move."""

    status: str
    before_id: Optional[int]
    attendance_status: Optional[str] = None


class Board:
    def __init__(self, registry: PipelineRegistry):
        self.registry = registry
        self.columns: Dict[str, List[Card]] = {status: [] for status in registry.statuses}
        self.counters: Dict[str, int] = {status: 0 for status in registry.statuses}

    def load(self, records: Iterable[dict]) -> None:
        """Rebuild every column from a bulk fetch."""
        for column in self.columns.values():
            column.clear()

        for record in records:
            card = Card.from_record(record)
            if not self.registry.is_valid(card.status):
                logger.warning(f"Skipping {self.registry.resource} {card.id} with unknown status {card.status!r}")
                continue
            if self.locate(card.id) is not None:
                self._remove(card.id)
            self.columns[card.status].append(card)

        self.refresh_counters()

    # =========================================================================
    # Lookup
    # =========================================================================

    def locate(self, card_id: int) -> Optional[str]:
        """Status of the column holding `card_id`, or None."""
        for status, column in self.columns.items():
            if any(card.id == card_id for card in column):
                return status
        return None

    def card(self, card_id: int) -> Optional[Card]:
        for column in self.columns.values():
            for card in column:
                if card.id == card_id:
                    return card
        return None

    def column(self, status: str) -> List[int]:
        """Card ids of one column, top to bottom."""
        return [card.id for card in self.columns[status]]

    def next_sibling(self, card_id: int) -> Optional[int]:
        status = self.locate(card_id)
        if status is None:
            return None
        ids = self.column(status)
        index = ids.index(card_id)
        return ids[index + 1] if index + 1 < len(ids) else None

    # =========================================================================
    # Placement
    # =========================================================================

    def _remove(self, card_id: int) -> Optional[Card]:
        for column in self.columns.values():
            for index, card in enumerate(column):
                if card.id == card_id:
                    return column.pop(index)
        return None

    def place(self, card_id: int, status: str, before_id: Optional[int] = None) -> Card:
        """Move a card into `status`, before `before_id` or at the end."""
        if status not in self.columns:
            raise ValueError(f"Unknown column: {status!r}")
        card = self._remove(card_id)
        if card is None:
            raise KeyError(f"Card {card_id} is not on the board")

        target = self.columns[status]
        index = len(target)
        if before_id is not None:
            for position, sibling in enumerate(target):
                if sibling.id == before_id:
                    index = position
                    break
        target.insert(index, card)
        card.status = status
        return card

    # =========================================================================
    # Counters
    # =========================================================================

    def counts(self) -> Dict[str, int]:
        """Actual membership per column."""
        return {status: len(column) for status, column in self.columns.items()}

    def refresh_counters(self) -> Dict[str, int]:
        self.counters = self.counts()
        return self.counters


class OptimisticMutator:
    """Applies a move locally before the server confirms it, and undoes it."""

    def __init__(self, board: Board):
        self.board = board

    def apply(self, record_id: int, target: str, outcome: Optional[str] = None) -> Placement:
        card = self.board.card(record_id)
        if card is None:
            raise KeyError(f"Card {record_id} is not on the board")

        origin = Placement(
            status=card.status,
            before_id=self.board.next_sibling(record_id),
            attendance_status=card.attendance_status,
        )

        self.board.place(record_id, target)
        card.attendance_status = outcome if self.board.registry.is_terminal(target) else None
        self.board.refresh_counters()
        return origin

    def revert(self, record_id: int, placement: Placement) -> None:
        card = self.board.card(record_id)
        if card is None:
            logger.warning(f"Cannot revert card {record_id}: no longer on the board")
            return

        # A sibling that has since moved away no longer anchors the position
        before_id = placement.before_id
        if before_id is not None and self.board.locate(before_id) != placement.status:
            before_id = None

        self.board.place(record_id, placement.status, before_id)
        card.attendance_status = placement.attendance_status
        self.board.refresh_counters()
        logger.warning(f"Reverted card {record_id} to {placement.status}")
