"""Pytest configuration and fixtures."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from globallogistics.config import Settings
from globallogistics.db import Database
from globallogistics.db.models import Base
from globallogistics.notifications import BaseChannel, NotificationDispatcher, load_templates


class RecordingChannel(BaseChannel):
    """Channel that keeps every message it is asked to send."""

    def __init__(self, name: str):
        super().__init__(name)
        self.sent: list[tuple[str, str]] = []

    async def send(self, destination: str, message: str) -> None:
        self.sent.append((destination, message))


class FailingChannel(BaseChannel):
    """Channel whose transport is always down."""

    def __init__(self, name: str):
        super().__init__(name)
        self.attempts = 0

    async def send(self, destination: str, message: str) -> None:
        self.attempts += 1
        raise ConnectionError("transport unavailable")


@pytest.fixture
async def db_session():
    """Create an in-memory database session for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session

    await engine.dispose()


@pytest.fixture
async def database(tmp_path):
    """File-backed database, for tests that need several sessions."""
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await database.create_all()

    yield database

    await database.dispose()


@pytest.fixture
def templates():
    return load_templates(Settings().notification_templates_path)


@pytest.fixture
def channels():
    return {name: RecordingChannel(name) for name in ("email", "sms", "whatsapp")}


@pytest.fixture
async def dispatcher(channels, templates):
    """A running dispatcher that records instead of delivering."""
    dispatcher = NotificationDispatcher(channels, templates)
    dispatcher.start()

    yield dispatcher

    await dispatcher.stop()


@pytest.fixture
async def failing_dispatcher(templates):
    """A running dispatcher whose every channel fails."""
    dispatcher = NotificationDispatcher(
        {name: FailingChannel(name) for name in ("email", "sms", "whatsapp")},
        templates,
    )
    dispatcher.start()

    yield dispatcher

    await dispatcher.stop()
