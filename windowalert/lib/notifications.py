"""Push notifications for open-window alerts.

Provides an abstract notification interface with a Pushed backend and a
no-op backend used when the notification service is disabled.
"""

import asyncio
import http.client
import urllib.error
import urllib.parse
import urllib.request
from abc import ABC, abstractmethod
from typing import override

from windowalert.lib.config import NotificationSettings, get_settings
from windowalert.lib.exceptions import AuthError, NetworkError, ServiceError
from windowalert.logging import get_logger

logger = get_logger("lib.notifications")

MESSAGE_TEMPLATE = "Das Fenster im {device_name} ist noch offen"

_AUTH_FAILURE_STATUSES = (401, 403)


def format_message(device_name: str) -> str:
    """Format the notification text for a device."""
    return MESSAGE_TEMPLATE.format(device_name=device_name)


class AbstractNotifier(ABC):
    """Abstract base class for notification backends."""

    @abstractmethod
    async def notify(self, device_name: str) -> None:
        """Send an open-window notification for the given device."""


class PushedNotifier(AbstractNotifier):
    """Pushed (pushed.co) app notification backend.

    Sends once; failures are raised to the caller, which logs them and moves
    on to the next device.
    """

    def __init__(self, settings: NotificationSettings | None = None) -> None:
        self._settings = settings or get_settings().notifications

    def _build_request(self, device_name: str) -> urllib.request.Request:
        body = urllib.parse.urlencode(
            {
                "app_key": self._settings.app_key,
                "app_secret": self._settings.app_secret.get_secret_value(),
                "target_type": "app",
                "content": format_message(device_name),
            }
        ).encode("utf-8")
        return urllib.request.Request(
            self._settings.url,
            data=body,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            method="POST",
        )

    def _send(self, request: urllib.request.Request) -> None:
        try:
            with urllib.request.urlopen(
                request, timeout=self._settings.timeout_sec
            ) as resp:
                if not 200 <= resp.status < 300:
                    raise ServiceError(resp.status)
        except urllib.error.HTTPError as e:
            if e.code in _AUTH_FAILURE_STATUSES:
                raise AuthError(
                    f"Push service rejected the app credentials ({e.code})"
                ) from e
            raise ServiceError(e.code) from e
        except (OSError, http.client.HTTPException) as e:
            raise NetworkError(f"Push request failed: {e}") from e

    @override
    async def notify(self, device_name: str) -> None:
        """Post the notification to the push service."""
        await asyncio.to_thread(self._send, self._build_request(device_name))
        logger.info("Sent push notification for %s", device_name)


class NoOpNotifier(AbstractNotifier):
    """No-op notifier that logs but doesn't send notifications."""

    @override
    async def notify(self, device_name: str) -> None:
        """Log the alert but don't send a notification."""
        logger.info(
            "Notifications disabled, skipping alert for %s", device_name
        )


def get_notifier(cfg: NotificationSettings | None = None) -> AbstractNotifier:
    """Factory function to get the configured notifier."""
    cfg = cfg or get_settings().notifications
    if not cfg.enabled:
        return NoOpNotifier()
    return PushedNotifier(cfg)
