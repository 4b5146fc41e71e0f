"""
Aggregation Engine

Pure functions turning resolved statuses into KPI counts, per-dimension
distributions, plaza summaries and map points.

Ordering of every grouped output: descending count, then label ascending.
"""

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .models import (
    Dimension,
    DistributionEntry,
    InventoryItem,
    MapPoint,
    PlazaSummary,
    ResolvedItem,
    ResolvedStatus,
    StatusKpis,
)

StatusMap = Mapping[int, ResolvedStatus]


def effective_status(statuses: StatusMap, item_id: int) -> ResolvedStatus:
    return statuses.get(item_id, ResolvedStatus.AVAILABLE)


def _ranked(counts: Dict[str, int]) -> List[tuple]:
    for label, count in counts.items():
        if count < 0:
            raise ValueError(f"negative count {count} for {label!r}")
    return sorted(counts.items(), key=lambda pair: (-pair[1], pair[0]))


def aggregate(
    items: Iterable[InventoryItem],
    statuses: StatusMap,
    dimension: Dimension,
    status_filter: Optional[ResolvedStatus] = None,
) -> List[DistributionEntry]:
    """
    Count items per value of ``dimension``.

    Items with a null or empty value are left out; when ``status_filter``
    is set only items with that effective status are counted.
    """
    counts: Dict[str, int] = {}

    for item in items:
        if status_filter is not None and effective_status(statuses, item.id) != status_filter:
            continue
        value = item.dimension_value(dimension)
        if value:
            counts[value] = counts.get(value, 0) + 1

    return [DistributionEntry(label=label, count=count) for label, count in _ranked(counts)]


def aggregate_all(
    items: Sequence[InventoryItem],
    statuses: StatusMap,
    status_filter: Optional[ResolvedStatus] = None,
) -> Dict[Dimension, List[DistributionEntry]]:
    return {
        dimension: aggregate(items, statuses, dimension, status_filter)
        for dimension in Dimension
    }


def summarize_kpis(items: Iterable[InventoryItem], statuses: StatusMap) -> StatusKpis:
    counts = {status: 0 for status in ResolvedStatus}
    total = 0
    for item in items:
        counts[effective_status(statuses, item.id)] += 1
        total += 1

    return StatusKpis(
        total=total,
        available=counts[ResolvedStatus.AVAILABLE],
        reserved=counts[ResolvedStatus.RESERVED],
        sold=counts[ResolvedStatus.SOLD],
        blocked=counts[ResolvedStatus.BLOCKED],
    )


def filter_by_status(
    items: Iterable[InventoryItem],
    statuses: StatusMap,
    status: Optional[ResolvedStatus],
) -> List[InventoryItem]:
    if status is None:
        return list(items)
    return [item for item in items if effective_status(statuses, item.id) == status]


def summarize_by_plaza(items: Iterable[InventoryItem]) -> List[PlazaSummary]:
    """Count items per plaza, keeping the first geolocated item's coordinates"""
    counts: Dict[str, int] = {}
    coordinates: Dict[str, tuple] = {}

    for item in items:
        if not item.plaza:
            continue
        counts[item.plaza] = counts.get(item.plaza, 0) + 1
        if item.plaza not in coordinates and item.has_coordinates:
            coordinates[item.plaza] = (item.latitude, item.longitude)

    summaries = []
    for plaza, count in _ranked(counts):
        latitude, longitude = coordinates.get(plaza, (None, None))
        summaries.append(PlazaSummary(plaza=plaza, count=count, latitude=latitude, longitude=longitude))
    return summaries


def map_points(items: Iterable[InventoryItem], statuses: StatusMap) -> List[MapPoint]:
    return [
        MapPoint(
            id=item.id,
            code=item.code,
            latitude=item.latitude,
            longitude=item.longitude,
            status=effective_status(statuses, item.id),
        )
        for item in items
        if item.has_coordinates
    ]


def with_status(items: Iterable[InventoryItem], statuses: StatusMap) -> List[ResolvedItem]:
    return [
        ResolvedItem(**item.model_dump(), status=effective_status(statuses, item.id))
        for item in items
    ]
