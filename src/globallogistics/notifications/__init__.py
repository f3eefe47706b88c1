"""Notification dispatch package."""

from globallogistics.notifications.base import (
    BaseChannel,
    Notification,
    NotificationTemplate,
    load_templates,
)
from globallogistics.notifications.channels import LogChannel, WebhookChannel, build_channels
from globallogistics.notifications.dispatcher import NotificationDispatcher

__all__ = [
    "BaseChannel",
    "LogChannel",
    "Notification",
    "NotificationDispatcher",
    "NotificationTemplate",
    "WebhookChannel",
    "build_channels",
    "load_templates",
]
