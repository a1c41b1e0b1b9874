from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import EmailStatus
from .model import EmailLogEntry


class EmailLogRepository(Protocol):
    def append(
        self,
        *,
        to: str,
        subject: str,
        email_type: str,
        related_id: Optional[str],
        status: EmailStatus,
        error_message: Optional[str],
        sent_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_recent(self, *, limit: int) -> Sequence[EmailLogEntry]:
        """Newest `sent_at` first."""

        raise NotImplementedError
