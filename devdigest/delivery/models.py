"""
Delivery models - per-recipient attempt state and the dispatch report.

DeliveryAttempt is ephemeral: it exists only while the Dispatcher works on one
recipient and is frozen into a DeliveryOutcome once it reaches a terminal
state. Nothing here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from devdigest.utils.redaction import redact_email


class DeliveryState(str, Enum):
    """
    Per-recipient state machine:

    PENDING -> ATTEMPTING -> DELIVERED
                          -> BACKOFF -> ATTEMPTING -> ...
                          -> EXHAUSTED
    """

    PENDING = "pending"
    ATTEMPTING = "attempting"
    BACKOFF = "backoff"
    DELIVERED = "delivered"
    EXHAUSTED = "exhausted"

    @property
    def is_terminal(self) -> bool:
        return self in (DeliveryState.DELIVERED, DeliveryState.EXHAUSTED)


# Legal transitions; anything else is a programming error
_TRANSITIONS: dict[DeliveryState, set[DeliveryState]] = {
    DeliveryState.PENDING: {DeliveryState.ATTEMPTING},
    DeliveryState.ATTEMPTING: {
        DeliveryState.DELIVERED,
        DeliveryState.BACKOFF,
        DeliveryState.EXHAUSTED,
    },
    DeliveryState.BACKOFF: {DeliveryState.ATTEMPTING},
    DeliveryState.DELIVERED: set(),
    DeliveryState.EXHAUSTED: set(),
}


@dataclass(frozen=True)
class DeliveryOutcome:
    """Terminal result for one recipient in one cycle."""

    recipient: str
    state: DeliveryState
    attempts: int
    delays: tuple[float, ...] = ()
    error: str | None = None

    @property
    def delivered(self) -> bool:
        return self.state == DeliveryState.DELIVERED

    def to_dict(self) -> dict[str, Any]:
        return {
            "recipient": self.recipient,
            "status": self.state.value,
            "attempts": self.attempts,
            "error": self.error,
        }


@dataclass
class DeliveryAttempt:
    """Mutable attempt tracker for one recipient."""

    recipient: str
    attempts: int = 0
    state: DeliveryState = DeliveryState.PENDING
    last_error: str | None = None
    delays: list[float] = field(default_factory=list)

    def transition(self, new_state: DeliveryState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            raise RuntimeError(
                f"Illegal delivery transition {self.state.value} -> {new_state.value} "
                f"for {redact_email(self.recipient)}"
            )
        if new_state == DeliveryState.ATTEMPTING:
            self.attempts += 1
        self.state = new_state

    def outcome(self) -> DeliveryOutcome:
        if not self.state.is_terminal:
            raise RuntimeError(f"Delivery attempt still {self.state.value}")
        return DeliveryOutcome(
            recipient=self.recipient,
            state=self.state,
            attempts=self.attempts,
            delays=tuple(self.delays),
            error=None if self.state == DeliveryState.DELIVERED else self.last_error,
        )


@dataclass(frozen=True)
class DispatchReport:
    """Per-recipient outcomes for one dispatch run."""

    outcomes: tuple[DeliveryOutcome, ...] = ()

    @property
    def delivered(self) -> int:
        return sum(1 for o in self.outcomes if o.delivered)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.delivered)

    @property
    def failed_recipients(self) -> list[str]:
        return [o.recipient for o in self.outcomes if not o.delivered]

    def outcome_for(self, recipient: str) -> DeliveryOutcome | None:
        for outcome in self.outcomes:
            if outcome.recipient == recipient:
                return outcome
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "delivered": self.delivered,
            "failed": self.failed,
            "outcomes": [o.to_dict() for o in self.outcomes],
        }
