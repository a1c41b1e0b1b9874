from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles, ascending privilege: employee < manager < admin."""

    ADMIN = "admin"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class ClockEventType(str, Enum):
    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"


class ClockState(str, Enum):
    """Derived from the latest clock event of the day."""

    NOT_CLOCKED = "not_clocked"
    CLOCKED_IN = "clocked_in"
    CLOCKED_OUT = "clocked_out"


class RequestStatus(str, Enum):
    """Review workflow status shared by leave and overtime requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestKind(str, Enum):
    LEAVE = "leave"
    OVERTIME = "overtime"


class EmailStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
