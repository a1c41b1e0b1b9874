from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EmailStatus


@dataclass(frozen=True)
class EmailLogEntry:
    """One delivery attempt; written for every attempt, success or not."""

    log_id: int
    to: str
    subject: str
    email_type: str
    status: EmailStatus
    sent_at: datetime
    related_id: Optional[str] = None
    error_message: Optional[str] = None

    def as_dict(self) -> dict:
        return {
            "log_id": self.log_id,
            "to": self.to,
            "subject": self.subject,
            "type": self.email_type,
            "related_id": self.related_id,
            "status": self.status.value,
            "error_message": self.error_message,
            "sent_at": self.sent_at.isoformat(),
        }


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
