"""Database models."""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime stored and returned in UTC.

    SQLite keeps no offset, so values read back are naive; they are UTC by
    construction and get their tzinfo re-attached here.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class ShipmentStatus(str, Enum):
    """Well-known shipment status tags.

    The ``status`` columns are free-form strings; these values are the ones
    the service itself writes and the ones clients conventionally send.
    """

    PENDING = "pending"  # Order received, not yet with the courier
    IN_TRANSIT = "in_transit"  # On the way
    OUT_FOR_DELIVERY = "out_for_delivery"  # With local driver
    DELIVERED = "delivered"  # Successfully delivered
    FAILED_ATTEMPT = "failed_attempt"  # Delivery attempted but failed
    HELD = "held"  # Held at depot/customs
    RETURNED = "returned"  # Returned to sender
    EXCEPTION = "exception"  # Problem with delivery


class Shipment(Base):
    """A physical parcel and its current projected state."""

    __tablename__ = "shipments"

    id: Mapped[int] = mapped_column(primary_key=True)
    tracking_number: Mapped[str] = mapped_column(String(20), unique=True)

    # Contact details
    sender_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    sender_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    recipient_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    recipient_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    recipient_phone: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Current status, projected from the latest tracking update
    status: Mapped[str] = mapped_column(Text, default=ShipmentStatus.PENDING.value)
    current_location: Mapped[str | None] = mapped_column(Text, nullable=True)
    estimated_delivery: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)


class TrackingUpdate(Base):
    """One immutable entry in a shipment's tracking history."""

    __tablename__ = "tracking_updates"

    id: Mapped[int] = mapped_column(primary_key=True)
    shipment_id: Mapped[int] = mapped_column(ForeignKey("shipments.id"), index=True)

    # Snapshot of the shipment at the moment of the event
    status: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
