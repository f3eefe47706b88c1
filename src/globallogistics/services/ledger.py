"""Tracking ledger: the append-only history of shipment status changes."""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from globallogistics.db.models import Shipment, TrackingUpdate, utcnow
from globallogistics.notifications import NotificationDispatcher
from globallogistics.services.exceptions import NotFound, ValidationError
from globallogistics.services.locks import ShipmentLocks

logger = structlog.get_logger(__name__)


def history_query(shipment_id: int):
    """Tracking updates for one shipment, newest first."""
    return (
        select(TrackingUpdate)
        .where(TrackingUpdate.shipment_id == shipment_id)
        .order_by(TrackingUpdate.timestamp.desc(), TrackingUpdate.id.desc())
    )


class TrackingLedger:
    """Appends tracking updates and projects them onto their shipment.

    A shipment's ``status``, ``current_location`` and ``updated_at`` are only
    ever written here, in the same transaction as the tracking update they
    mirror.
    """

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: NotificationDispatcher | None = None,
        locks: ShipmentLocks | None = None,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.locks = locks if locks is not None else ShipmentLocks()

    async def append_and_project(
        self,
        shipment_id: int,
        status: str,
        location: str | None = None,
        description: str | None = None,
    ) -> Shipment:
        """Record a status change and make it the shipment's current state.

        Any status string is accepted.
        """
        async with self.locks.hold(shipment_id):
            try:
                result = await self.db.execute(
                    select(Shipment)
                    .where(Shipment.id == shipment_id)
                    .with_for_update()
                    .execution_options(populate_existing=True)
                )
                shipment = result.scalar_one_or_none()
                if shipment is None:
                    await self.db.rollback()
                    raise NotFound("Shipment", shipment_id)

                now = utcnow()
                self.db.add(
                    TrackingUpdate(
                        shipment_id=shipment.id,
                        status=status,
                        location=location,
                        description=description,
                        timestamp=now,
                    )
                )
                shipment.status = status
                shipment.current_location = location
                shipment.updated_at = now

                await self.db.commit()
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise ValidationError(f"Could not update shipment: {e}") from e

        logger.info(
            "Shipment updated",
            shipment_id=shipment.id,
            tracking_number=shipment.tracking_number,
            status=status,
            location=location,
        )

        if shipment.recipient_phone and self.dispatcher is not None:
            self.dispatcher.notify_template(
                "shipment_updated",
                shipment.recipient_phone,
                tracking_number=shipment.tracking_number,
                status=status,
                description=description,
            )

        return shipment

    async def history(self, shipment_id: int) -> list[TrackingUpdate]:
        """All tracking updates for a shipment, newest first."""
        if await self.db.get(Shipment, shipment_id) is None:
            raise NotFound("Shipment", shipment_id)

        result = await self.db.execute(history_query(shipment_id))
        return list(result.scalars().all())
