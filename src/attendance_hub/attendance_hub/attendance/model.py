from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ClockEventType, ClockState


@dataclass(frozen=True)
class AttendanceEvent:
    """Domain entity: one immutable clock action."""

    event_id: int
    user_id: int
    event_type: ClockEventType
    timestamp: datetime
    created_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "user_id": self.user_id,
            "type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


@dataclass(frozen=True)
class ClockStatus:
    """Read-model for the clock widget, derived from today's latest event."""

    state: ClockState
    last_event: Optional[AttendanceEvent]

    @property
    def can_clock_in(self) -> bool:
        return self.state != ClockState.CLOCKED_IN

    @property
    def can_clock_out(self) -> bool:
        return self.state == ClockState.CLOCKED_IN
