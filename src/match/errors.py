"""Matching engine errors."""


class MatchingError(Exception):
    """Base class for matching errors."""


class VehicleNotFound(MatchingError):
    """Raised when a vehicle id does not resolve."""

    def __init__(self, vehicle_id: str):
        self.vehicle_id = vehicle_id
        super().__init__(f"Vehicle not found: {vehicle_id}")


class ConfigurationError(MatchingError):
    """Raised when a salesperson record cannot be scored (e.g. zero lead capacity)."""

    def __init__(self, salesperson_id: str, message: str):
        self.salesperson_id = salesperson_id
        self.message = message
        super().__init__(f"Salesperson {salesperson_id}: {message}")
