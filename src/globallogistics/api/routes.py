"""API routes for shipment tracking."""

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from globallogistics.api.schemas import (
    AlertSignup,
    ShipmentCreate,
    ShipmentOut,
    ShipmentUpdate,
    SuccessResponse,
    TrackingResponse,
    TrackingUpdateOut,
)
from globallogistics.db import get_db
from globallogistics.services import ShipmentRegistry, TrackingLedger

logger = structlog.get_logger(__name__)

router = APIRouter()


def get_registry(request: Request, db: AsyncSession = Depends(get_db)) -> ShipmentRegistry:
    settings = request.app.state.settings
    return ShipmentRegistry(
        db,
        dispatcher=request.app.state.dispatcher,
        public_base_url=settings.public_base_url,
        max_attempts=settings.tracking_number_attempts,
    )


def get_ledger(request: Request, db: AsyncSession = Depends(get_db)) -> TrackingLedger:
    return TrackingLedger(
        db,
        dispatcher=request.app.state.dispatcher,
        locks=request.app.state.shipment_locks,
    )


@router.get("/health")
async def health():
    return {"status": "healthy"}


@router.get("/api/track/{tracking_number}", response_model=TrackingResponse)
async def track_shipment(
    tracking_number: str,
    registry: ShipmentRegistry = Depends(get_registry),
):
    """Current state of a shipment plus its full history."""
    shipment, updates = await registry.get(tracking_number)
    return TrackingResponse(
        shipment=ShipmentOut.model_validate(shipment),
        updates=[TrackingUpdateOut.model_validate(update) for update in updates],
    )


@router.get("/api/shipments", response_model=list[ShipmentOut])
async def list_shipments(
    limit: int | None = None,
    offset: int = 0,
    registry: ShipmentRegistry = Depends(get_registry),
):
    """All shipments, newest first."""
    return await registry.list(limit=limit, offset=offset)


@router.post("/api/shipments", response_model=ShipmentOut)
async def create_shipment(
    payload: ShipmentCreate,
    registry: ShipmentRegistry = Depends(get_registry),
):
    """Create a shipment and notify the recipient."""
    return await registry.create(**payload.model_dump())


@router.put("/api/shipments/{shipment_id}", response_model=SuccessResponse)
async def update_shipment(
    shipment_id: int,
    payload: ShipmentUpdate,
    ledger: TrackingLedger = Depends(get_ledger),
):
    """Record a status change for a shipment."""
    await ledger.append_and_project(
        shipment_id,
        status=payload.status,
        location=payload.current_location,
        description=payload.description,
    )
    return SuccessResponse()


@router.post("/api/alerts/signup", response_model=SuccessResponse)
async def alerts_signup(payload: AlertSignup):
    """Register interest in alerts for a shipment.

    Signups are not persisted yet; they are only logged.
    """
    # TODO: store signups once a notification_preferences table exists
    logger.info(
        "Alert signup",
        shipment_id=payload.shipment_id,
        contact=payload.contact,
    )
    return SuccessResponse()
