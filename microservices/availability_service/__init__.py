"""
Availability Service Microservice

Inventory availability by billing window: status reconciliation, cached
dashboards and automatic expiration of stale holds.
"""

from .availability_service import AvailabilityService
from .expiration_sweeper import ExpirationSweeper
from .models import (
    AvailabilityFilter,
    InventoryItem,
    Reservation,
    ReservationStatus,
    ResolvedStatus,
)
from .protocols import (
    AvailabilityRepositoryProtocol,
    AvailabilityServiceError,
    InvalidFilterError,
    SweepFailure,
    TransientStoreError,
)

__version__ = "1.0.0"
__all__ = [
    "AvailabilityService",
    "ExpirationSweeper",
    "AvailabilityFilter",
    "InventoryItem",
    "Reservation",
    "ReservationStatus",
    "ResolvedStatus",
    "AvailabilityRepositoryProtocol",
    "AvailabilityServiceError",
    "InvalidFilterError",
    "SweepFailure",
    "TransientStoreError",
]
