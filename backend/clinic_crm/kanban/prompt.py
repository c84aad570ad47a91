"""
Outcome prompt protocol: whatever collects the attendance outcome when a
card enters the terminal column.
"""

from typing import Optional, Protocol, Sequence

from clinic_crm.statuses import OutcomeOption


class OutcomePrompt(Protocol):
    async def choose(self, message: str, options: Sequence[OutcomeOption]) -> Optional[str]:
        """Return the chosen option value, or None when dismissed."""
        ...


class FixedOutcomePrompt:
    """Answers every prompt with the same value (headless runs, scripts)."""

    def __init__(self, value: Optional[str] = None):
        self.value = value
        self.asked = 0

    async def choose(self, message: str, options: Sequence[OutcomeOption]) -> Optional[str]:
        self.asked += 1
        return self.value
