"""Request and response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ShipmentCreate(BaseModel):
    sender_name: str | None = None
    sender_address: str | None = None
    recipient_name: str | None = None
    recipient_address: str | None = None
    recipient_phone: str | None = None
    estimated_delivery: str | None = None


class ShipmentUpdate(BaseModel):
    status: str
    current_location: str | None = None
    description: str | None = None


class AlertSignup(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    shipment_id: int | str = Field(alias="shipmentId")
    contact: str = Field(min_length=1)


class ShipmentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tracking_number: str
    sender_name: str | None
    sender_address: str | None
    recipient_name: str | None
    recipient_address: str | None
    recipient_phone: str | None
    status: str
    current_location: str | None
    estimated_delivery: str | None
    created_at: datetime
    updated_at: datetime


class TrackingUpdateOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    shipment_id: int
    status: str | None
    location: str | None
    description: str | None
    timestamp: datetime


class TrackingResponse(BaseModel):
    shipment: ShipmentOut
    updates: list[TrackingUpdateOut]


class SuccessResponse(BaseModel):
    success: bool = True
