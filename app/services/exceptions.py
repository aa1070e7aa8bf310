"""Error taxonomy shared by the car services and their collaborators."""
from typing import Any, Dict, List, Optional


class CarServiceError(Exception):
    """Base class for failures reported by the car services."""


class CarValidationError(CarServiceError):
    """Raised when a car on create/update is missing required fields or holds malformed values."""
    def __init__(self, errors: Optional[List[Dict[str, Any]]] = None, message: str = None):
        self.errors = errors or []
        self.message = message or f"Invalid car: {len(self.errors)} validation error(s)"
        super().__init__(self.message)


class CarNotFoundError(CarServiceError):
    """Raised when a car id does not exist in the repository."""
    def __init__(self, car_id: int, message: str = None):
        self.car_id = car_id
        self.message = message or f"Car with ID '{car_id}' not found"
        super().__init__(self.message)


class RepositoryFailure(CarServiceError):
    """Raised when the car store is unreachable or fails an operation."""


class EnrichmentUnavailable(CarServiceError):
    """
    Raised by price/location lookups on transport-level failure.
    Never leaves the enrichment step: callers see a sentinel or empty value instead.
    """
