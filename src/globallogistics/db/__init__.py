"""Database package."""

from globallogistics.db.database import Database, get_db, init_db
from globallogistics.db.models import Base, Shipment, ShipmentStatus, TrackingUpdate

__all__ = [
    "Base",
    "Database",
    "Shipment",
    "ShipmentStatus",
    "TrackingUpdate",
    "get_db",
    "init_db",
]
