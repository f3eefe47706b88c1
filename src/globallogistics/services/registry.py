"""Shipment registry: identity and current state of shipments."""

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from globallogistics.db.models import Shipment, ShipmentStatus, TrackingUpdate, utcnow
from globallogistics.notifications import NotificationDispatcher
from globallogistics.services.exceptions import (
    DuplicateTrackingNumber,
    NotFound,
    ValidationError,
)
from globallogistics.services.ledger import history_query
from globallogistics.services.tracking_numbers import (
    generate_tracking_number,
    is_valid_tracking_number,
    normalise_tracking_number,
)

logger = structlog.get_logger(__name__)

INITIAL_DESCRIPTION = "Shipment order received and processing."


class ShipmentRegistry:
    """Creates shipments and answers queries about them."""

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: NotificationDispatcher | None = None,
        public_base_url: str = "",
        max_attempts: int = 5,
    ):
        self.db = db
        self.dispatcher = dispatcher
        self.public_base_url = public_base_url.rstrip("/")
        self.max_attempts = max_attempts

    async def create(
        self,
        sender_name: str | None = None,
        sender_address: str | None = None,
        recipient_name: str | None = None,
        recipient_address: str | None = None,
        recipient_phone: str | None = None,
        estimated_delivery: str | None = None,
    ) -> Shipment:
        """Create a shipment together with its initial tracking update.

        A tracking number collision is retried with a fresh number up to
        ``max_attempts`` times.
        """
        for attempt in range(1, self.max_attempts + 1):
            tracking_number = generate_tracking_number()
            now = utcnow()

            shipment = Shipment(
                tracking_number=tracking_number,
                sender_name=sender_name,
                sender_address=sender_address,
                recipient_name=recipient_name,
                recipient_address=recipient_address,
                recipient_phone=recipient_phone,
                estimated_delivery=estimated_delivery,
                status=ShipmentStatus.PENDING.value,
                created_at=now,
                updated_at=now,
            )
            self.db.add(shipment)

            try:
                await self.db.flush()
                self.db.add(
                    TrackingUpdate(
                        shipment_id=shipment.id,
                        status=ShipmentStatus.PENDING.value,
                        description=INITIAL_DESCRIPTION,
                        timestamp=now,
                    )
                )
                await self.db.commit()
            except IntegrityError as e:
                await self.db.rollback()
                if not await self._tracking_number_taken(tracking_number):
                    raise ValidationError(f"Could not create shipment: {e.orig}") from e
                logger.warning(
                    "Tracking number collision",
                    tracking_number=tracking_number,
                    attempt=attempt,
                )
                continue
            except SQLAlchemyError as e:
                await self.db.rollback()
                raise ValidationError(f"Could not create shipment: {e}") from e

            logger.info(
                "Shipment created",
                shipment_id=shipment.id,
                tracking_number=tracking_number,
            )

            if recipient_phone and self.dispatcher is not None:
                self.dispatcher.notify_template(
                    "shipment_created",
                    recipient_phone,
                    tracking_number=tracking_number,
                    tracking_url=self.tracking_url(tracking_number),
                )

            return shipment

        raise DuplicateTrackingNumber(self.max_attempts)

    async def get(self, tracking_number: str) -> tuple[Shipment, list[TrackingUpdate]]:
        """Get a shipment and its tracking history, newest first."""
        tracking_number = normalise_tracking_number(tracking_number)
        if not is_valid_tracking_number(tracking_number):
            raise NotFound("Shipment", tracking_number)

        result = await self.db.execute(
            select(Shipment).where(Shipment.tracking_number == tracking_number)
        )
        shipment = result.scalar_one_or_none()
        if shipment is None:
            raise NotFound("Shipment", tracking_number)

        updates = await self.db.execute(history_query(shipment.id))
        return shipment, list(updates.scalars().all())

    async def list(self, limit: int | None = None, offset: int = 0) -> list[Shipment]:
        """List shipments, most recently created first."""
        query = (
            select(Shipment)
            .order_by(Shipment.created_at.desc(), Shipment.id.desc())
            .offset(offset)
        )
        if limit is not None:
            query = query.limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    def tracking_url(self, tracking_number: str) -> str:
        return f"{self.public_base_url}/track/{tracking_number}"

    async def _tracking_number_taken(self, tracking_number: str) -> bool:
        result = await self.db.execute(
            select(Shipment.id).where(Shipment.tracking_number == tracking_number)
        )
        return result.first() is not None
