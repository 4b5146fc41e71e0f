"""
Availability Service Protocols (Interfaces)

These interfaces define contracts for dependency injection.
NO import-time I/O dependencies - safe to import anywhere.
"""
from datetime import date, datetime
from typing import Dict, List, Optional, Protocol, Sequence, runtime_checkable

# Import only models (no I/O dependencies)
from .models import (
    BillingPeriod,
    CalendarWindow,
    ClientReservationCount,
    InventoryItem,
    Reservation,
    ReservationStatus,
)


# Custom exceptions - defined here to avoid importing repository
class AvailabilityServiceError(Exception):
    """Base exception for availability service errors"""
    pass


class TransientStoreError(AvailabilityServiceError):
    """Backing store unreachable or failed mid-query"""
    pass


class InvalidFilterError(AvailabilityServiceError):
    """Malformed or out-of-range filter / pagination input"""

    def __init__(self, message: str, errors: Optional[List[Dict]] = None):
        super().__init__(message)
        self.errors = errors or []


class BillingPeriodNotFoundError(AvailabilityServiceError):
    """Billing period id does not resolve to a window"""

    def __init__(self, period_id: int):
        super().__init__(f"Billing period {period_id} not found")
        self.period_id = period_id


class SweepFailure(AvailabilityServiceError):
    """Reservation expiration sweep could not complete"""
    pass


@runtime_checkable
class AvailabilityRepositoryProtocol(Protocol):
    """
    Interface for the availability data-access port.

    Implementations must provide these methods.
    Used for dependency injection to enable testing.
    Store failures must surface as TransientStoreError.
    """

    async def list_items(self, filters: Dict[str, str]) -> List[InventoryItem]:
        """List inventory items matching categorical filters (attribute -> value)"""
        ...

    async def list_active_reservations(
        self,
        item_ids: Sequence[int],
        calendar_ids: Optional[Sequence[int]] = None,
    ) -> List[Reservation]:
        """Active reservations of the items, optionally restricted to calendar windows"""
        ...

    async def list_overlapping_windows(self, start: date, end: date) -> List[CalendarWindow]:
        """Non-deleted calendar windows overlapping [start, end]"""
        ...

    async def get_billing_period(self, period_id: int) -> Optional[BillingPeriod]:
        """Get a billing period by ID"""
        ...

    async def get_current_billing_period(self, today: date) -> Optional[BillingPeriod]:
        """Billing period containing ``today``"""
        ...

    async def list_billing_periods(self, since_year: int) -> List[BillingPeriod]:
        """Billing periods from ``since_year`` on, newest first"""
        ...

    async def list_upcoming_billing_periods(self, today: date, limit: int = 6) -> List[BillingPeriod]:
        """Billing periods starting on or after ``today``, soonest first"""
        ...

    async def list_distinct_values(self, attribute: str) -> List[str]:
        """Distinct non-null values of an item attribute"""
        ...

    async def count_active_reservations(self, statuses: Optional[Sequence[ReservationStatus]] = None) -> int:
        """Count active reservations, optionally by status"""
        ...

    async def list_top_clients(self, limit: int = 5) -> List[ClientReservationCount]:
        """Clients with the most active reservations, highest count first"""
        ...

    async def expire_reservations(
        self,
        statuses: Sequence[ReservationStatus],
        reserved_before: datetime,
        expired_at: datetime,
    ) -> int:
        """Soft-delete active reservations older than the cutoff; returns affected rows"""
        ...
