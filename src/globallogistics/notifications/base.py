"""Base classes for notification channels and message templates."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import yaml
from jinja2 import StrictUndefined, Template


@dataclass
class Notification:
    """A message waiting to be delivered."""

    channel: str
    destination: str
    message: str


@dataclass
class NotificationTemplate:
    """A message template loaded from templates.yaml."""

    name: str
    channel: str
    body: str

    def render(self, **context) -> str:
        return Template(self.body, undefined=StrictUndefined).render(**context).strip()


def load_templates(yaml_path: Path) -> dict[str, NotificationTemplate]:
    """Load notification templates from a YAML file.

    The file maps template names to ``channel`` and ``body`` keys.
    """
    with open(yaml_path) as f:
        data = yaml.safe_load(f) or {}

    return {
        name: NotificationTemplate(
            name=name,
            channel=entry["channel"],
            body=entry["body"],
        )
        for name, entry in data.items()
    }


class BaseChannel(ABC):
    """Abstract base class for notification transports.

    To add a transport, subclass BaseChannel and implement ``send``. Raising
    from ``send`` is fine: the dispatcher logs the failure and moves on.
    """

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    async def send(self, destination: str, message: str) -> None:
        """Deliver one message to a destination (phone number, address)."""
        pass

    async def close(self) -> None:
        """Release any resources held by the channel."""
        pass
