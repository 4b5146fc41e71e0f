"""
Availability Service - Business Logic

Answers "what is the state of the inventory for this time scope" queries:
fetch items and overlapping reservations, resolve one status per item,
aggregate, and memoize the result in the TTL cache.

Uses dependency injection for testability.
- Repository and cache are injected, not created at import time
- The expiration sweeper is optional (sweep_now needs it)
"""

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from core.config import AvailabilityConfig
from core.memory_cache import TTLCache

from . import aggregation
from .expiration_sweeper import AVAILABILITY_CACHE_PREFIX, ExpirationSweeper
from .models import (
    HOLD_STATUSES,
    AvailabilityDetailResponse,
    AvailabilityFilter,
    AvailabilityStatsResponse,
    BillingPeriodOption,
    CacheStatsResponse,
    ClientReservationCount,
    FilterOptionsResponse,
    InventoryItem,
    Pagination,
    ResolvedStatus,
    SweeperStatusResponse,
    SweepResult,
    TimeScope,
)
from .protocols import (
    AvailabilityRepositoryProtocol,
    BillingPeriodNotFoundError,
    InvalidFilterError,
    SweepFailure,
    TransientStoreError,
)
from .status_resolver import resolve_statuses

logger = logging.getLogger(__name__)

STATS_KEY = AVAILABILITY_CACHE_PREFIX + "stats:"
DETAIL_KEY = AVAILABILITY_CACHE_PREFIX + "detail:"
TOP_CLIENTS_KEY = AVAILABILITY_CACHE_PREFIX + "top-clients:"
# Reservation-independent; survives sweeps
FILTER_OPTIONS_KEY = "filter-options:all"

FilterInput = Union[AvailabilityFilter, Mapping[str, Any], None]


@dataclass
class InventorySnapshot:
    """Items matching a filter with their resolved statuses"""
    items: List[InventoryItem]
    statuses: Dict[int, ResolvedStatus]
    time_scope: Optional[TimeScope]


class AvailabilityService:
    """
    Availability reconciliation business logic

    Handles all query operations while delegating data access to the
    repository layer.
    """

    def __init__(
        self,
        repository: Optional[AvailabilityRepositoryProtocol] = None,
        cache: Optional[TTLCache] = None,
        config: Optional[AvailabilityConfig] = None,
        sweeper: Optional[ExpirationSweeper] = None,
        today: Callable[[], date] = date.today,
    ):
        """
        Initialize service with injected dependencies.

        Args:
            repository: Repository (inject mock for testing)
            cache: TTL cache shared by the process (fresh instance per test)
            config: Service configuration
            sweeper: Expiration sweeper backing sweep_now
            today: Date provider for billing period lookups
        """
        self.repo = repository
        self.config = config or AvailabilityConfig()
        self.cache = cache if cache is not None else TTLCache(self.config.cache.availability_ttl_seconds)
        self.sweeper = sweeper
        self.today = today

    # ========================================
    # Filter Normalization
    # ========================================

    @staticmethod
    def normalize_filter(raw: FilterInput) -> AvailabilityFilter:
        """
        Validate raw query input into an AvailabilityFilter.

        Raises:
            InvalidFilterError: unknown field, bad date, bad range, bad id
        """
        if raw is None:
            return AvailabilityFilter()
        if isinstance(raw, AvailabilityFilter):
            return raw

        cleaned = {key: value for key, value in raw.items() if value not in (None, "")}
        try:
            return AvailabilityFilter(**cleaned)
        except ValidationError as e:
            errors = [
                {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ]
            raise InvalidFilterError("Invalid availability filter", errors=errors) from e

    def _check_pagination(self, page: int, page_size: int) -> None:
        if page < 1:
            raise InvalidFilterError(f"page must be >= 1, got {page}")
        if page_size < 1 or page_size > self.config.max_page_size:
            raise InvalidFilterError(
                f"page_size must be between 1 and {self.config.max_page_size}, got {page_size}"
            )

    async def resolve_time_scope(self, filters: AvailabilityFilter) -> Optional[TimeScope]:
        """
        Billing period takes precedence over explicit dates. An unknown
        billing period means no time scope.
        """
        if filters.billing_period_id is not None:
            period = await self.repo.get_billing_period(filters.billing_period_id)
            if period is None:
                logger.warning(
                    f"Billing period {filters.billing_period_id} not found, "
                    f"querying without time scope"
                )
                return None
            return TimeScope(start_date=period.start_date, end_date=period.end_date)

        if filters.start_date and filters.end_date:
            return TimeScope(start_date=filters.start_date, end_date=filters.end_date)

        return None

    # ========================================
    # Reconciliation
    # ========================================

    async def load_snapshot(self, filters: AvailabilityFilter) -> InventorySnapshot:
        """Fetch items and in-scope reservations and resolve statuses"""
        items = await self.repo.list_items(filters.categorical())
        time_scope = await self.resolve_time_scope(filters)

        item_ids = [item.id for item in items]
        reservations = []
        if item_ids:
            if time_scope is None:
                reservations = await self.repo.list_active_reservations(item_ids)
            else:
                windows = await self.repo.list_overlapping_windows(
                    time_scope.start_date, time_scope.end_date
                )
                if windows:
                    reservations = await self.repo.list_active_reservations(
                        item_ids, calendar_ids=[window.id for window in windows]
                    )

        statuses = resolve_statuses(item_ids, reservations)
        logger.debug(
            f"Resolved {len(items)} items from {len(reservations)} reservations "
            f"(scope={time_scope})"
        )
        return InventorySnapshot(items=items, statuses=statuses, time_scope=time_scope)

    async def get_stats(self, raw_filter: FilterInput = None) -> AvailabilityStatsResponse:
        """KPIs plus distributions for every dimension"""
        filters = self.normalize_filter(raw_filter)
        key = STATS_KEY + filters.cache_key()

        async def compute() -> AvailabilityStatsResponse:
            snapshot = await self.load_snapshot(filters)
            kpis = aggregation.summarize_kpis(snapshot.items, snapshot.statuses)
            matching = len(
                aggregation.filter_by_status(snapshot.items, snapshot.statuses, filters.status)
            )
            return AvailabilityStatsResponse(
                kpis=kpis,
                distributions=aggregation.aggregate_all(
                    snapshot.items, snapshot.statuses, filters.status
                ),
                status=filters.status,
                matching=matching,
                time_scope=snapshot.time_scope,
            )

        return await self.cache.get_or_compute(
            key, compute, self.config.cache.availability_ttl_seconds
        )

    async def get_detail(
        self,
        raw_filter: FilterInput = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> AvailabilityDetailResponse:
        """One page of resolved items; totals and map data cover the whole filtered set"""
        if page_size is None:
            page_size = self.config.default_page_size
        self._check_pagination(page, page_size)
        filters = self.normalize_filter(raw_filter)
        key = f"{DETAIL_KEY}{filters.cache_key()}:{page}:{page_size}"

        async def compute() -> AvailabilityDetailResponse:
            snapshot = await self.load_snapshot(filters)
            matching = aggregation.filter_by_status(
                snapshot.items, snapshot.statuses, filters.status
            )
            page_items, pagination = paginate(matching, page, page_size)
            return AvailabilityDetailResponse(
                items=aggregation.with_status(page_items, snapshot.statuses),
                pagination=pagination,
                plaza_summary=aggregation.summarize_by_plaza(matching),
                map_points=aggregation.map_points(matching, snapshot.statuses),
                time_scope=snapshot.time_scope,
            )

        return await self.cache.get_or_compute(
            key, compute, self.config.cache.availability_ttl_seconds
        )

    # ========================================
    # Filter Options / Billing Periods
    # ========================================

    async def get_filter_options(self) -> FilterOptionsResponse:
        """Distinct filter values plus current and recent billing periods"""

        async def compute() -> FilterOptionsResponse:
            today = self.today()
            states = await self.repo.list_distinct_values("state")
            plazas = await self.repo.list_distinct_values("plaza")
            furniture_types = await self.repo.list_distinct_values("furniture_type")
            levels = await self.repo.list_distinct_values("socioeconomic_level")
            periods = await self.repo.list_billing_periods(since_year=today.year - 1)
            current = await self.repo.get_current_billing_period(today)

            return FilterOptionsResponse(
                states=sorted(filter(None, states)),
                plazas=sorted(filter(None, plazas)),
                furniture_types=sorted(filter(None, furniture_types)),
                socioeconomic_levels=sorted(filter(None, levels)),
                current_period=BillingPeriodOption.from_period(current, current=True) if current else None,
                periods=[BillingPeriodOption.from_period(p) for p in periods],
            )

        return await self.cache.get_or_compute(
            FILTER_OPTIONS_KEY, compute, self.config.cache.filter_options_ttl_seconds
        )

    async def get_billing_period(self, period_id: int) -> BillingPeriodOption:
        """
        Raises:
            BillingPeriodNotFoundError: no period with that id
        """
        period = await self.repo.get_billing_period(period_id)
        if period is None:
            raise BillingPeriodNotFoundError(period_id)
        return BillingPeriodOption.from_period(period)

    async def get_upcoming_periods(self, limit: int = 6) -> List[BillingPeriodOption]:
        if limit < 1:
            raise InvalidFilterError(f"limit must be >= 1, got {limit}")
        periods = await self.repo.list_upcoming_billing_periods(self.today(), limit=limit)
        return [BillingPeriodOption.from_period(p) for p in periods]

    async def get_top_clients(self, limit: int = 5) -> List[ClientReservationCount]:
        """Clients ranked by active reservations"""
        if limit < 1 or limit > self.config.max_page_size:
            raise InvalidFilterError(
                f"limit must be between 1 and {self.config.max_page_size}, got {limit}"
            )

        async def compute() -> List[ClientReservationCount]:
            return await self.repo.list_top_clients(limit=limit)

        return await self.cache.get_or_compute(
            f"{TOP_CLIENTS_KEY}{limit}", compute, self.config.cache.availability_ttl_seconds
        )

    # ========================================
    # Expiration / Cache Operations
    # ========================================

    async def sweep_now(self) -> SweepResult:
        """Run the expiration sweep immediately"""
        if self.sweeper is None:
            raise SweepFailure("Expiration sweeper not configured")

        swept_at = self.sweeper.clock()
        expired = await self.sweeper.sweep(now=swept_at)

        # Expiration is already committed here
        remaining: Optional[int] = None
        try:
            remaining = await self.repo.count_active_reservations(HOLD_STATUSES)
        except TransientStoreError as e:
            logger.warning(f"Swept {expired} reservations but could not count remaining holds: {e}")

        return SweepResult(
            expired_count=expired,
            remaining_holds=remaining,
            holding_days=self.sweeper.holding_days,
            swept_at=swept_at,
        )

    def sweeper_status(self) -> SweeperStatusResponse:
        if self.sweeper is None:
            raise SweepFailure("Expiration sweeper not configured")
        return self.sweeper.status()

    def cache_stats(self) -> CacheStatsResponse:
        return CacheStatsResponse(**self.cache.stats())

    def invalidate(self, prefix: str = AVAILABILITY_CACHE_PREFIX) -> int:
        """Drop cached results under ``prefix``"""
        removed = self.cache.delete_prefix(prefix)
        logger.info(f"Invalidated {removed} cache entries with prefix {prefix!r}")
        return removed


def paginate(rows: List[InventoryItem], page: int, page_size: int) -> Tuple[List[InventoryItem], Pagination]:
    """Slice a 1-indexed page out of ``rows``"""
    total = len(rows)
    start = (page - 1) * page_size
    pagination = Pagination(
        page=page,
        page_size=page_size,
        total=total,
        total_pages=math.ceil(total / page_size),
    )
    return rows[start:start + page_size], pagination
