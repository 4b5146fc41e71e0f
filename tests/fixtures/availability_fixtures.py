"""
Availability Service Fixtures

Factories for inventory items, reservations, calendar windows and billing
periods.
"""
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from microservices.availability_service.models import (
    BillingPeriod,
    CalendarWindow,
    InventoryItem,
    Reservation,
    ReservationStatus,
)

# Reference instant used across sweep tests
NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_item(
    item_id: int,
    plaza: Optional[str] = "Guadalajara",
    furniture: Optional[str] = "Parabus",
    format: Optional[str] = "Tradicional",
    municipality: Optional[str] = "Zapopan",
    state: Optional[str] = "Jalisco",
    furniture_type: Optional[str] = "Parabus",
    socioeconomic_level: Optional[str] = "AB",
    latitude: Optional[float] = 20.67,
    longitude: Optional[float] = -103.35,
    code: Optional[str] = None,
) -> InventoryItem:
    """Create an inventory item"""
    return InventoryItem(
        id=item_id,
        code=code or f"INV-{item_id:05d}",
        furniture_type=furniture_type,
        furniture=furniture,
        format=format,
        municipality=municipality,
        state=state,
        plaza=plaza,
        socioeconomic_level=socioeconomic_level,
        latitude=latitude,
        longitude=longitude,
    )


def make_items(count: int, start_id: int = 1, **overrides) -> List[InventoryItem]:
    """Create ``count`` items with consecutive ids"""
    return [make_item(start_id + i, **overrides) for i in range(count)]


def make_reservation(
    reservation_id: int,
    inventory_id: int,
    status: ReservationStatus = ReservationStatus.RESERVED,
    reserved_at: Optional[datetime] = None,
    calendar_id: Optional[int] = 1,
    client_id: Optional[int] = 100,
    deleted_at: Optional[datetime] = None,
) -> Reservation:
    """Create a reservation (active unless ``deleted_at`` is given)"""
    return Reservation(
        id=reservation_id,
        inventory_id=inventory_id,
        status=status,
        client_id=client_id,
        reserved_at=reserved_at or NOW - timedelta(days=1),
        calendar_id=calendar_id,
        deleted_at=deleted_at,
    )


def make_window(
    window_id: int = 1,
    start_date: date = date(2024, 6, 3),
    end_date: date = date(2024, 6, 16),
    deleted_at: Optional[datetime] = None,
) -> CalendarWindow:
    """Create a calendar window"""
    return CalendarWindow(id=window_id, start_date=start_date, end_date=end_date, deleted_at=deleted_at)


def make_billing_period(
    period_id: int = 12,
    number: int = 12,
    year: int = 2024,
    start_date: date = date(2024, 6, 3),
    end_date: date = date(2024, 6, 16),
) -> BillingPeriod:
    """Create a billing period ("catorcena")"""
    return BillingPeriod(
        id=period_id,
        number=number,
        year=year,
        start_date=start_date,
        end_date=end_date,
    )
