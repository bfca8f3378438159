"""
Poll cycle outcome models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class PollOutcome:
    """What happened to one subscription during a poll cycle."""

    subscription_id: Optional[str]
    chat_id: str
    fetched: int = 0
    new: int = 0
    notified: int = 0
    skipped_items: int = 0
    persisted: bool = False
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class RunReport:
    """Summary of one poll cycle over all active subscriptions."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    outcomes: List[PollOutcome] = field(default_factory=list)

    @property
    def total_notified(self) -> int:
        return sum(outcome.notified for outcome in self.outcomes)

    @property
    def failed_subscriptions(self) -> List[PollOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.succeeded]

    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()
