from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

import structlog

from ..access.policy import AccessPolicy
from ..access.principal import Principal
from ..common.datetime_utils import day_bounds, now_local
from ..core.enums import ClockEventType, ClockState
from ..core.exceptions import AccountDisabledError, ClockStateError, NotFoundError, QueryUnavailableError, ValidationError
from ..users.repository import UserRepository
from .model import AttendanceEvent, ClockStatus
from .repository import AttendanceRepository

logger = structlog.get_logger(__name__)

# Latest event of the day that permits each action (None = nothing yet today).
_ALLOWED_PREVIOUS = {
    ClockEventType.CLOCK_IN: frozenset({None, ClockEventType.CLOCK_OUT}),
    ClockEventType.CLOCK_OUT: frozenset({ClockEventType.CLOCK_IN}),
}

_REJECTION = {
    ClockEventType.CLOCK_IN: "You are already clocked in",
    ClockEventType.CLOCK_OUT: "You are not clocked in",
}


class AttendanceService:
    """Clock state machine over the append-only attendance ledger."""

    def __init__(self, attendance: AttendanceRepository, users: UserRepository, policy: AccessPolicy):
        self._attendance = attendance
        self._users = users
        self._policy = policy

    def _append(
        self,
        user_id: int,
        event_type: ClockEventType,
        *,
        now: Optional[datetime],
        principal: Optional[Principal],
    ) -> AttendanceEvent:
        if principal is not None:
            self._policy.ensure_self(principal, user_id, "clock in or out")

        user = self._users.get_by_id(int(user_id))
        if not user:
            raise NotFoundError("User not found")
        if not user.is_active:
            raise AccountDisabledError("Account disabled")

        now = now or now_local()
        window_start, window_end = day_bounds(now.date())

        event = self._attendance.append_if_latest_in(
            user_id=user.user_id,
            event_type=event_type,
            timestamp=now,
            window_start=window_start,
            window_end=window_end,
            allowed_previous=_ALLOWED_PREVIOUS[event_type],
        )
        if event is None:
            logger.info("clock_action_rejected", user_id=user.user_id, action=event_type.value)
            raise ClockStateError(_REJECTION[event_type])

        logger.info("clock_action_recorded", user_id=user.user_id, action=event_type.value, event_id=event.event_id)
        return event

    def clock_in(self, user_id: int, *, now: Optional[datetime] = None, principal: Optional[Principal] = None) -> AttendanceEvent:
        return self._append(user_id, ClockEventType.CLOCK_IN, now=now, principal=principal)

    def clock_out(self, user_id: int, *, now: Optional[datetime] = None, principal: Optional[Principal] = None) -> AttendanceEvent:
        return self._append(user_id, ClockEventType.CLOCK_OUT, now=now, principal=principal)

    def get_today_attendance(self, user_id: int, *, today: Optional[date] = None) -> Sequence[AttendanceEvent]:
        """Today's events, newest first.

        An unavailable table/index yields [] so the clock action stays usable;
        an empty list therefore means "no data or degraded", not "no events".
        """

        start, end = day_bounds(today or now_local().date())
        try:
            return self._attendance.list_events(user_id=int(user_id), start=start, end=end)
        except QueryUnavailableError as exc:
            logger.warning("today_attendance_degraded", user_id=user_id, error=str(exc))
            return []

    def get_clock_state(self, user_id: int, *, today: Optional[date] = None) -> ClockStatus:
        events = self.get_today_attendance(user_id, today=today)
        if not events:
            return ClockStatus(state=ClockState.NOT_CLOCKED, last_event=None)
        last = events[0]
        state = ClockState.CLOCKED_IN if last.event_type == ClockEventType.CLOCK_IN else ClockState.CLOCKED_OUT
        return ClockStatus(state=state, last_event=last)

    def get_attendance_records(
        self,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        *,
        department: Optional[str] = None,
    ) -> Sequence[AttendanceEvent]:
        """Ledger query, newest first.

        No user id and no department means the whole ledger; callers reach this
        through `list_records` which derives the predicate from the principal.
        """

        if start_date and end_date and end_date < start_date:
            raise ValidationError("End date must be on or after start date")

        start = datetime.combine(start_date, time.min) if start_date else None
        end = datetime.combine(end_date, time.min) + timedelta(days=1) if end_date else None

        return self._attendance.list_events(
            user_id=int(user_id) if user_id is not None else None,
            department=department,
            start=start,
            end=end,
        )

    def list_records(
        self,
        principal: Principal,
        *,
        user_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> Sequence[AttendanceEvent]:
        scope = self._policy.record_scope(principal, user_id=user_id)
        return self.get_attendance_records(
            scope.user_id,
            start_date,
            end_date,
            department=scope.department,
        )

    def today_for(self, principal: Principal, *, user_id: Optional[int] = None, today: Optional[date] = None):
        target = principal.user_id if user_id is None else int(user_id)
        scope = self._policy.record_scope(principal, user_id=target)
        return self.get_today_attendance(scope.user_id, today=today)
