"""Notification transports."""

import httpx
import structlog

from globallogistics.notifications.base import BaseChannel

logger = structlog.get_logger(__name__)

CHANNEL_NAMES = ("email", "sms", "whatsapp")


class LogChannel(BaseChannel):
    """Simulated transport that only logs the message."""

    async def send(self, destination: str, message: str) -> None:
        logger.info(
            "Notification simulated",
            channel=self.name,
            destination=destination,
            body=message,
        )


class WebhookChannel(BaseChannel):
    """Hands messages to an HTTP relay that performs the real delivery."""

    def __init__(self, name: str, url: str, client: httpx.AsyncClient):
        super().__init__(name)
        self.url = url
        self.client = client

    async def send(self, destination: str, message: str) -> None:
        response = await self.client.post(
            self.url,
            json={
                "channel": self.name,
                "destination": destination,
                "message": message,
            },
        )
        response.raise_for_status()

    async def close(self) -> None:
        if not self.client.is_closed:
            await self.client.aclose()


def build_channels(
    webhook_url: str | None = None,
    timeout: float = 10.0,
) -> dict[str, BaseChannel]:
    """Build one channel per supported name.

    Without a webhook URL every channel is simulated.
    """
    if not webhook_url:
        return {name: LogChannel(name) for name in CHANNEL_NAMES}

    client = httpx.AsyncClient(timeout=timeout)
    return {name: WebhookChannel(name, webhook_url, client) for name in CHANNEL_NAMES}
