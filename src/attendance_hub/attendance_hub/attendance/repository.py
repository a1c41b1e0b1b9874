from __future__ import annotations

from datetime import datetime
from typing import AbstractSet, Optional, Protocol, Sequence

from ..core.enums import ClockEventType
from .model import AttendanceEvent


class AttendanceRepository(Protocol):
    def append_if_latest_in(
        self,
        *,
        user_id: int,
        event_type: ClockEventType,
        timestamp: datetime,
        window_start: datetime,
        window_end: datetime,
        allowed_previous: AbstractSet[Optional[ClockEventType]],
    ) -> Optional[AttendanceEvent]:
        """Conditional append.

        Inserts the event only if the type of the user's latest event inside
        [window_start, window_end) is in `allowed_previous` (None = no event),
        atomically with respect to other appends for the same user.
        Returns the stored event, or None when the condition failed.
        """

        raise NotImplementedError

    def list_events(
        self,
        *,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceEvent]:
        """Events newest first; `end` is exclusive."""

        raise NotImplementedError

    def count_all(self) -> int:
        raise NotImplementedError
