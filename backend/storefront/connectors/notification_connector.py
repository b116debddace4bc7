"""
Notification delivery connectors

HttpNotificationConnector posts events to the mail/notification service.
LoggingNotifier is the fallback when no service URL is configured.
"""
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import httpx

from storefront.domain.notification import NotificationEvent

logger = logging.getLogger(__name__)


class NotificationDeliveryError(Exception):
    pass


class Notifier(ABC):
    @abstractmethod
    async def send(self, event: NotificationEvent) -> None:
        """Deliver one event; raises NotificationDeliveryError on failure"""

    async def close(self) -> None:
        return None


class HttpNotificationConnector(Notifier):
    """
    Connector for the notification service

    POST {base_url}/notifications with the event as JSON. Any non-2xx
    response or transport error is a delivery failure; the dispatcher
    decides whether to retry.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not base_url:
            raise ValueError(
                "Notification service not configured. "
                "Set NOTIFICATION_SERVICE_URL environment variable"
            )
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    @property
    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def send(self, event: NotificationEvent) -> None:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/notifications",
                    json=event.model_dump(mode="json"),
                    headers=self._headers,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise NotificationDeliveryError(
                    f"Notification service returned {e.response.status_code}"
                ) from e
            except httpx.HTTPError as e:
                raise NotificationDeliveryError(f"Notification service unreachable: {e}") from e


class LoggingNotifier(Notifier):
    async def send(self, event: NotificationEvent) -> None:
        logger.info(f"Notification (not delivered, no service configured): {event.describe()}")
