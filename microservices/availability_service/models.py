"""
Availability Service Models

Inventory placements, reservations, billing windows, the query filter
contract and the response shapes of the availability service.
"""

import json
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ReservationStatus(str, Enum):
    """Reservation status tag as stored by the booking workflow"""
    SOLD = "Vendido"
    RESERVED = "Reservado"
    BONUS = "Bonificado"
    BLOCKED = "Bloqueado"


class ResolvedStatus(str, Enum):
    """Derived availability of an inventory item for a time scope"""
    SOLD = "Vendido"
    RESERVED = "Reservado"
    BLOCKED = "Bloqueado"
    AVAILABLE = "Disponible"


# Reservation statuses that are tentative holds and age out
HOLD_STATUSES = (ReservationStatus.RESERVED, ReservationStatus.BONUS)


class Dimension(str, Enum):
    """Item attributes that distributions can be grouped by"""
    FURNITURE = "furniture"
    FORMAT = "format"
    MUNICIPALITY = "municipality"
    PLAZA = "plaza"
    SOCIOECONOMIC_LEVEL = "socioeconomic_level"


# ============================================================================
# Records
# ============================================================================

class InventoryItem(BaseModel):
    """Physical advertising placement (read-only catalog record)"""
    id: int
    code: Optional[str] = Field(None, description="Unique placement code")
    furniture_type: Optional[str] = None
    furniture: Optional[str] = None
    format: Optional[str] = Field(None, description="Traditional / digital")
    municipality: Optional[str] = None
    state: Optional[str] = None
    plaza: Optional[str] = None
    socioeconomic_level: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        # 0 is the catalog's placeholder for "not geolocated"
        return bool(self.latitude) and bool(self.longitude)

    def dimension_value(self, dimension: Dimension) -> Optional[str]:
        return getattr(self, dimension.value)


class Reservation(BaseModel):
    """Booking of one inventory item inside a calendar window"""
    id: int
    inventory_id: int
    status: ReservationStatus
    client_id: Optional[int] = None
    reserved_at: datetime
    calendar_id: Optional[int] = None
    deleted_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.deleted_at is None


class CalendarWindow(BaseModel):
    """Concrete dated span reservations attach to"""
    id: int
    start_date: date
    end_date: date
    deleted_at: Optional[datetime] = None

    def overlaps(self, start: date, end: date) -> bool:
        return self.start_date <= end and self.end_date >= start


class BillingPeriod(BaseModel):
    """Named billing cycle ("catorcena") over a calendar span"""
    id: int
    number: int
    year: int
    start_date: date
    end_date: date

    @property
    def label(self) -> str:
        return f"Cat {self.number} - {self.year}"


class TimeScope(BaseModel):
    """Resolved date range a query is restricted to"""
    start_date: date
    end_date: date


# ============================================================================
# Filter Contract
# ============================================================================

class AvailabilityFilter(BaseModel):
    """
    Every filter the availability queries recognize.

    Unknown fields are rejected. The time scope comes from either a billing
    period id or an explicit start/end date pair.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    # Categorical filters
    state: Optional[str] = Field(None, min_length=1)
    plaza: Optional[str] = Field(None, min_length=1)
    furniture_type: Optional[str] = Field(None, min_length=1)
    format: Optional[str] = Field(None, min_length=1)
    socioeconomic_level: Optional[str] = Field(None, min_length=1)

    # Time scope
    billing_period_id: Optional[int] = Field(None, ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    # Restrict breakdowns / detail rows to one resolved status
    status: Optional[ResolvedStatus] = None

    @model_validator(mode="after")
    def _check_date_range(self) -> "AvailabilityFilter":
        if (self.start_date is None) != (self.end_date is None):
            raise ValueError("start_date and end_date must be given together")
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def categorical(self) -> Dict[str, str]:
        """Non-empty categorical filters keyed by item attribute"""
        fields = ("state", "plaza", "furniture_type", "format", "socioeconomic_level")
        return {name: getattr(self, name) for name in fields if getattr(self, name)}

    def cache_key(self) -> str:
        """Deterministic serialization of the set filters"""
        return json.dumps(
            self.model_dump(mode="json", exclude_none=True),
            sort_keys=True,
            separators=(",", ":"),
        )


# ============================================================================
# Response Models
# ============================================================================

class StatusKpis(BaseModel):
    """Status counts over one item set"""
    total: int = Field(0, ge=0)
    available: int = Field(0, ge=0)
    reserved: int = Field(0, ge=0)
    sold: int = Field(0, ge=0)
    blocked: int = Field(0, ge=0)


class DistributionEntry(BaseModel):
    label: str
    count: int = Field(..., ge=0)


class AvailabilityStatsResponse(BaseModel):
    """KPIs and per-dimension breakdowns"""
    kpis: StatusKpis
    distributions: Dict[Dimension, List[DistributionEntry]]
    status: Optional[ResolvedStatus] = None
    matching: int = Field(..., ge=0, description="Items matching the status filter (all items if none)")
    time_scope: Optional[TimeScope] = None


class ResolvedItem(InventoryItem):
    """Inventory item with its derived status"""
    status: ResolvedStatus = ResolvedStatus.AVAILABLE


class Pagination(BaseModel):
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)


class PlazaSummary(BaseModel):
    """Item count and a representative coordinate per plaza"""
    plaza: str
    count: int = Field(..., ge=0)
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class MapPoint(BaseModel):
    id: int
    code: Optional[str] = None
    latitude: float
    longitude: float
    status: ResolvedStatus


class AvailabilityDetailResponse(BaseModel):
    """One page of resolved items plus map data for the filtered set"""
    items: List[ResolvedItem]
    pagination: Pagination
    plaza_summary: List[PlazaSummary]
    map_points: List[MapPoint]
    time_scope: Optional[TimeScope] = None


class BillingPeriodOption(BaseModel):
    id: int
    label: str
    number: int
    year: int
    start_date: date
    end_date: date

    @classmethod
    def from_period(cls, period: BillingPeriod, current: bool = False) -> "BillingPeriodOption":
        label = f"{period.label} (Actual)" if current else period.label
        return cls(
            id=period.id,
            label=label,
            number=period.number,
            year=period.year,
            start_date=period.start_date,
            end_date=period.end_date,
        )


class FilterOptionsResponse(BaseModel):
    """Values the filter widgets can offer"""
    states: List[str] = Field(default_factory=list)
    plazas: List[str] = Field(default_factory=list)
    furniture_types: List[str] = Field(default_factory=list)
    socioeconomic_levels: List[str] = Field(default_factory=list)
    current_period: Optional[BillingPeriodOption] = None
    periods: List[BillingPeriodOption] = Field(default_factory=list)


class ClientReservationCount(BaseModel):
    """Active reservation count of one client"""
    client_id: int
    name: Optional[str] = None
    total: int = Field(..., ge=0)


class SweepResult(BaseModel):
    expired_count: int = Field(..., ge=0)
    remaining_holds: Optional[int] = Field(
        None, ge=0, description="Active Reserved/Bonus reservations after the sweep (None when the count failed)"
    )
    holding_days: int
    swept_at: datetime


class SweeperStatusResponse(BaseModel):
    state: str
    holding_days: int
    interval_seconds: float
    scheduled: bool
    last_run_at: Optional[datetime] = None
    last_expired_count: Optional[int] = None
    last_error: Optional[str] = None


class CacheStatsResponse(BaseModel):
    size: int
    keys: List[str]


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    detail: Optional[Any] = None


class InvalidateResponse(BaseModel):
    prefix: str
    removed: int


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    dependencies: Dict[str, str] = Field(default_factory=dict)
