"""GlobalLogistics shipment tracking service."""

__version__ = "0.1.0"
