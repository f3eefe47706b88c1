"""Errors raised by the shipment services."""


class TrackingError(Exception):
    """Base class for all shipment tracking errors."""

    error_code = "TRACKING_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "error_code": self.error_code, **self.details}


class NotFound(TrackingError):
    """Unknown tracking number or shipment id."""

    error_code = "NOT_FOUND"

    def __init__(self, resource: str, key: str | int):
        super().__init__(f"{resource} not found", {"key": key})
        self.resource = resource
        self.key = key


class DuplicateTrackingNumber(TrackingError):
    """No unique tracking number could be generated."""

    error_code = "DUPLICATE_TRACKING_NUMBER"

    def __init__(self, attempts: int):
        super().__init__(
            f"Could not allocate a unique tracking number after {attempts} attempts",
            {"attempts": attempts},
        )
        self.attempts = attempts


class ValidationError(TrackingError):
    """The store rejected a write, or the input was malformed."""

    error_code = "VALIDATION_ERROR"
