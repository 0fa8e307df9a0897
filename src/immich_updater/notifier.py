"""Outcome notifications over Gotify, email, or nowhere.

Notification failures are logged and reported as ``False``; they never
abort a run or replace the error that triggered them.
"""

from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Any

import httpx

from immich_updater.config import Settings
from immich_updater.constants import HTTP_TIMEOUT, PRIORITY_FAILURE, PRIORITY_SUCCESS
from immich_updater.errors import NotificationFailed
from immich_updater.logging import get_logger

log = get_logger("immich_updater.notifier")


def build_gotify_payload(title: str, message: str, priority: int) -> dict[str, Any]:
    """Gotify message body. Serialised as JSON, so quotes/newlines are escaped."""
    return {"title": title, "message": message, "priority": priority}


class Notifier:
    """Dispatches notifications through the configured transport."""

    def __init__(self, settings: Settings, timeout: float = HTTP_TIMEOUT) -> None:
        self._settings = settings
        self._timeout = timeout

    @property
    def method(self) -> str:
        return self._settings.notification_method

    async def notify(self, title: str, message: str, priority: int = PRIORITY_SUCCESS) -> bool:
        """Send a notification. Returns False (after logging) if delivery failed."""
        try:
            if self.method == "gotify":
                await self._send_gotify(title, message, priority)
            elif self.method == "email":
                await self._send_email(title, message, priority)
            else:
                return True
        except NotificationFailed as exc:
            log.warning(f"⚠️ Failed to send {self.method} notification.", error=str(exc))
            return False

        log.debug("Notification sent", method=self.method, title=title, priority=priority)
        return True

    async def _send_gotify(self, title: str, message: str, priority: int) -> None:
        url = f"{self._settings.gotify_url}/message"
        headers = {"X-Gotify-Key": self._settings.gotify_token.get_secret_value()}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    url,
                    json=build_gotify_payload(title, message, priority),
                    headers=headers,
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NotificationFailed(f"Gotify request error: {exc}") from exc

        if not 200 <= resp.status_code < 300:
            raise NotificationFailed(f"Gotify returned HTTP {resp.status_code}")

    async def _send_email(self, title: str, message: str, priority: int) -> None:
        try:
            await asyncio.to_thread(self._deliver_email, title, message, priority)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotificationFailed(f"SMTP error: {exc}") from exc

    def _deliver_email(self, title: str, message: str, priority: int) -> None:
        msg = EmailMessage()
        msg["Subject"] = title
        msg["From"] = self._settings.email_sender
        msg["To"] = self._settings.notification_email
        if priority >= PRIORITY_FAILURE:
            msg["X-Priority"] = "1"
        msg.set_content(message)

        with smtplib.SMTP(
            self._settings.smtp_host, self._settings.smtp_port, timeout=self._timeout
        ) as smtp:
            smtp.send_message(msg)
