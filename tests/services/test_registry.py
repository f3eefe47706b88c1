"""Tests for the shipment registry."""

from datetime import timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError

from globallogistics.db.models import Shipment, TrackingUpdate
from globallogistics.services import ShipmentRegistry
from globallogistics.services import registry as registry_module
from globallogistics.services.exceptions import (
    DuplicateTrackingNumber,
    NotFound,
    ValidationError,
)
from globallogistics.services.registry import INITIAL_DESCRIPTION
from globallogistics.services.tracking_numbers import is_valid_tracking_number


class TestCreateShipment:
    """Test shipment creation."""

    async def test_create_returns_pending_shipment(self, db_session, dispatcher, channels):
        registry = ShipmentRegistry(db_session, dispatcher, "https://track.example.com")

        shipment = await registry.create(
            sender_name="Acme Ltd",
            sender_address="1 Factory Rd",
            recipient_name="Jane Doe",
            recipient_address="5 Main St, Memphis, TN",
            recipient_phone="+15551234567",
            estimated_delivery="2026-10-20",
        )

        assert shipment.id is not None
        assert shipment.tracking_number.startswith("GL-")
        assert is_valid_tracking_number(shipment.tracking_number)
        assert shipment.status == "pending"
        assert shipment.current_location is None
        assert shipment.sender_address == "1 Factory Rd"
        assert shipment.estimated_delivery == "2026-10-20"

        _, updates = await registry.get(shipment.tracking_number)
        assert len(updates) == 1
        assert updates[0].status == "pending"
        assert updates[0].location is None
        assert updates[0].description == INITIAL_DESCRIPTION
        assert updates[0].timestamp == shipment.updated_at

        await dispatcher.drain()
        sent = channels["whatsapp"].sent
        assert len(sent) == 1
        destination, message = sent[0]
        assert destination == "+15551234567"
        assert shipment.tracking_number in message
        assert f"https://track.example.com/track/{shipment.tracking_number}" in message

    async def test_create_without_phone_sends_nothing(self, db_session, dispatcher, channels):
        registry = ShipmentRegistry(db_session, dispatcher)

        await registry.create(recipient_name="No Phone")

        await dispatcher.drain()
        assert all(not channel.sent for channel in channels.values())

    async def test_tracking_numbers_are_unique(self, db_session):
        registry = ShipmentRegistry(db_session)

        shipments = [await registry.create(recipient_name=f"R{i}") for i in range(25)]

        assert len({s.tracking_number for s in shipments}) == 25

    async def test_collision_is_retried(self, db_session, monkeypatch):
        registry = ShipmentRegistry(db_session, max_attempts=3)
        numbers = iter(["GL-AAAAAAAAAA", "GL-AAAAAAAAAA", "GL-BBBBBBBBBB"])
        monkeypatch.setattr(registry_module, "generate_tracking_number", lambda: next(numbers))

        first = await registry.create(recipient_name="First")
        first_number = first.tracking_number
        second = await registry.create(recipient_name="Second")

        assert first_number == "GL-AAAAAAAAAA"
        assert second.tracking_number == "GL-BBBBBBBBBB"

        # The failed attempt left nothing behind
        shipment_count = await db_session.scalar(select(func.count(Shipment.id)))
        update_count = await db_session.scalar(select(func.count(TrackingUpdate.id)))
        assert shipment_count == 2
        assert update_count == 2

    async def test_collision_gives_up_after_max_attempts(self, db_session, monkeypatch):
        registry = ShipmentRegistry(db_session, max_attempts=3)
        monkeypatch.setattr(registry_module, "generate_tracking_number", lambda: "GL-CCCCCCCCCC")

        await registry.create(recipient_name="First")

        with pytest.raises(DuplicateTrackingNumber) as exc_info:
            await registry.create(recipient_name="Second")

        assert exc_info.value.attempts == 3
        shipment_count = await db_session.scalar(select(func.count(Shipment.id)))
        assert shipment_count == 1

    async def test_store_failure_leaves_nothing_behind(self, db_session, dispatcher, channels, monkeypatch):
        registry = ShipmentRegistry(db_session, dispatcher)

        async def broken_commit():
            raise OperationalError("COMMIT", {}, Exception("disk full"))

        monkeypatch.setattr(db_session, "commit", broken_commit)

        with pytest.raises(ValidationError):
            await registry.create(recipient_name="Jane", recipient_phone="+15551234567")

        monkeypatch.undo()
        assert await db_session.scalar(select(func.count(Shipment.id))) == 0
        assert await db_session.scalar(select(func.count(TrackingUpdate.id))) == 0
        await dispatcher.drain()
        assert not channels["whatsapp"].sent

    async def test_other_integrity_errors_are_not_retried(self, db_session, monkeypatch):
        registry = ShipmentRegistry(db_session, max_attempts=3)
        attempts = []

        async def rejecting_commit():
            attempts.append(1)
            raise IntegrityError("INSERT", {}, Exception("CHECK constraint failed"))

        monkeypatch.setattr(db_session, "commit", rejecting_commit)

        with pytest.raises(ValidationError):
            await registry.create(recipient_name="Jane")

        monkeypatch.undo()
        assert len(attempts) == 1
        assert await db_session.scalar(select(func.count(Shipment.id))) == 0
        assert await db_session.scalar(select(func.count(TrackingUpdate.id))) == 0


class TestQueries:
    """Test shipment lookups and listing."""

    async def test_get_unknown_tracking_number(self, db_session):
        registry = ShipmentRegistry(db_session)

        with pytest.raises(NotFound):
            await registry.get("GL-NOSUCHID0")

    async def test_get_normalises_input(self, db_session):
        registry = ShipmentRegistry(db_session)
        shipment = await registry.create(recipient_name="Jane")

        found, _ = await registry.get(f"  {shipment.tracking_number.lower()} ")

        assert found.id == shipment.id

    async def test_get_malformed_tracking_number(self, db_session):
        registry = ShipmentRegistry(db_session)
        await registry.create(recipient_name="Jane")

        for tracking_number in ("", "GL-", "GL-12345", "XX-ABCDEFGHIJ"):
            with pytest.raises(NotFound):
                await registry.get(tracking_number)

    async def test_timestamps_come_back_in_utc(self, database):
        async with database.session() as session:
            shipment = await ShipmentRegistry(session).create(recipient_name="Jane")
            tracking_number = shipment.tracking_number
            created_at = shipment.created_at

        async with database.session() as session:
            found, updates = await ShipmentRegistry(session).get(tracking_number)

        assert found.created_at == created_at
        assert found.created_at.tzinfo == timezone.utc
        assert found.updated_at.tzinfo == timezone.utc
        assert updates[0].timestamp == found.updated_at
        assert updates[0].timestamp.tzinfo == timezone.utc

    async def test_list_newest_first(self, db_session):
        registry = ShipmentRegistry(db_session)
        created = [await registry.create(recipient_name=f"R{i}") for i in range(5)]

        listed = await registry.list()

        assert [s.id for s in listed] == [s.id for s in reversed(created)]

    async def test_list_pagination(self, db_session):
        registry = ShipmentRegistry(db_session)
        created = [await registry.create(recipient_name=f"R{i}") for i in range(5)]

        page = await registry.list(limit=2, offset=1)

        assert [s.id for s in page] == [created[3].id, created[2].id]

    async def test_list_empty(self, db_session):
        assert await ShipmentRegistry(db_session).list() == []
