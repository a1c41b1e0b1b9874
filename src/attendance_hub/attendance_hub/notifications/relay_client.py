"""
Mail relay client
Posts a plain-text message to the HTTP mail relay and interprets its reply.
"""
from __future__ import annotations

from typing import Any, Optional

import httpx

from ..core.constants import DEFAULT_NOTIFICATION_TIMEOUT_SECONDS
from ..core.exceptions import NotificationDeliveryError
from .model import NotificationResult


class MailRelayClient:
    """Client for the mail relay endpoint.

    Request body: {to, subject, textContent, from: {email, name}}
    Reply body:   {success, message?, error?}
    """

    def __init__(
        self,
        url: Optional[str],
        sender_email: Optional[str],
        sender_name: str = "Attendance Hub",
        *,
        timeout: float = DEFAULT_NOTIFICATION_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.url = (url or "").strip()
        self.sender_email = (sender_email or "").strip()
        self.sender_name = sender_name or "Attendance Hub"
        self.timeout = float(timeout)
        self._transport = transport

    def send(
        self,
        *,
        to: str,
        subject: str,
        text: str,
        sender_name: Optional[str] = None,
        sender_email: Optional[str] = None,
    ) -> NotificationResult:
        """Deliver one message; raises NotificationDeliveryError unless the relay reports success.

        `sender_email` and `sender_name` override the configured sender for this message.
        """

        from_email = (sender_email or "").strip() or self.sender_email
        if not (self.url and from_email):
            raise NotificationDeliveryError("Mail relay is not configured")

        payload: dict[str, Any] = {
            "to": to,
            "subject": subject,
            "textContent": text,
            "from": {"email": from_email, "name": sender_name or self.sender_name},
        }

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json=payload)
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as exc:
            raise NotificationDeliveryError(f"Mail relay timed out after {self.timeout:g}s") from exc
        except httpx.HTTPError as exc:
            raise NotificationDeliveryError(f"Mail relay request failed: {exc}") from exc
        except ValueError as exc:
            raise NotificationDeliveryError("Mail relay returned a malformed response") from exc

        if not isinstance(body, dict):
            raise NotificationDeliveryError("Mail relay returned a malformed response")
        if not body.get("success"):
            raise NotificationDeliveryError(str(body.get("error") or "Mail relay rejected the message"))

        return NotificationResult(success=True, message=body.get("message"))
