"""
Headless Kanban board client.

Drives status transitions against the CRM REST API with optimistic local
moves that are rolled back when the server rejects them.
"""

from .board import Board, Card, Placement, OptimisticMutator
from .client import ReconciliationClient, TransitionResult, build_http_client
from .controller import KanbanController, MoveOutcome
from .gate import Decision, InvalidTransitionError, TransitionCancelled, TransitionGate
from .notifications import NotificationSink, Severity, Toast
from .prompt import OutcomePrompt, FixedOutcomePrompt

__all__ = [
    "Board",
    "Card",
    "Placement",
    "OptimisticMutator",
    "ReconciliationClient",
    "TransitionResult",
    "build_http_client",
    "KanbanController",
    "MoveOutcome",
    "Decision",
    "InvalidTransitionError",
    "TransitionCancelled",
    "TransitionGate",
    "NotificationSink",
    "Severity",
    "Toast",
    "OutcomePrompt",
    "FixedOutcomePrompt",
]
