"""Services package."""

from globallogistics.services.ledger import TrackingLedger
from globallogistics.services.locks import ShipmentLocks
from globallogistics.services.registry import ShipmentRegistry

__all__ = ["ShipmentLocks", "ShipmentRegistry", "TrackingLedger"]
