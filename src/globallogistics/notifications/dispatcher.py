"""Fire-and-forget notification dispatch."""

import asyncio

import structlog

from globallogistics.config import Settings
from globallogistics.notifications.base import (
    BaseChannel,
    Notification,
    NotificationTemplate,
    load_templates,
)
from globallogistics.notifications.channels import build_channels

logger = structlog.get_logger(__name__)


class NotificationDispatcher:
    """Queues notifications and delivers them from a background task.

    ``notify`` never blocks and never raises: callers hand a message over and
    carry on. Each message gets exactly one delivery attempt; failures are
    logged and dropped.
    """

    def __init__(
        self,
        channels: dict[str, BaseChannel],
        templates: dict[str, NotificationTemplate] | None = None,
        queue_size: int = 1000,
    ):
        self.channels = channels
        self.templates = templates or {}
        self._queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=queue_size)
        self._worker: asyncio.Task | None = None
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationDispatcher":
        return cls(
            channels=build_channels(
                settings.notification_webhook_url,
                timeout=settings.notification_timeout_seconds,
            ),
            templates=load_templates(settings.notification_templates_path),
            queue_size=settings.notification_queue_size,
        )

    @property
    def running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the delivery worker on the running event loop."""
        if self.running:
            return
        self._closed = False
        self._worker = asyncio.create_task(self._run(), name="notification-dispatcher")

    async def stop(self, timeout: float = 5.0) -> None:
        """Stop accepting messages, give queued ones a chance, then shut down."""
        self._closed = True

        if self.running:
            try:
                await asyncio.wait_for(self._queue.join(), timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Dropping undelivered notifications", pending=self._queue.qsize()
                )
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

        for channel in self.channels.values():
            await channel.close()

    async def drain(self) -> None:
        """Wait until every queued notification has been attempted."""
        await self._queue.join()

    def notify(self, channel: str, destination: str, message: str) -> None:
        """Queue a message for delivery. Never raises."""
        if self._closed:
            logger.warning("Dispatcher closed, dropping notification", channel=channel)
            return
        if channel not in self.channels:
            logger.warning("Unknown notification channel", channel=channel)
            return

        try:
            self._queue.put_nowait(Notification(channel, destination, message))
        except asyncio.QueueFull:
            logger.warning(
                "Notification queue full, dropping notification",
                channel=channel,
                destination=destination,
            )

    def notify_template(self, template_name: str, destination: str, **context) -> None:
        """Render a named template and queue it. Never raises."""
        template = self.templates.get(template_name)
        if template is None:
            logger.warning("Unknown notification template", template=template_name)
            return

        try:
            message = template.render(**context)
        except Exception as e:
            logger.warning(
                "Could not render notification", template=template_name, error=str(e)
            )
            return

        self.notify(template.channel, destination, message)

    async def _run(self) -> None:
        while True:
            notification = await self._queue.get()
            try:
                await self._deliver(notification)
            finally:
                self._queue.task_done()

    async def _deliver(self, notification: Notification) -> None:
        channel = self.channels[notification.channel]
        try:
            await channel.send(notification.destination, notification.message)
        except Exception as e:
            logger.warning(
                "Notification delivery failed",
                channel=notification.channel,
                destination=notification.destination,
                error=str(e),
            )
            return

        logger.debug(
            "Notification delivered",
            channel=notification.channel,
            destination=notification.destination,
        )
