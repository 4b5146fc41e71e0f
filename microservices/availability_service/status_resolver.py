"""
Status Resolver

Derives one availability status per inventory item from the reservations
that overlap the requested time scope.

Priority: Sold > Reserved/Bonus > Blocked > none. A reservation replaces the
running status of its item only when it ranks strictly higher, so among
equal-priority reservations the first one encountered wins. Bonus ranks with
Reserved and is reported as Reserved.
"""

from enum import IntEnum
from typing import Dict, Iterable, Optional

from .models import Reservation, ReservationStatus, ResolvedStatus


class StatusPriority(IntEnum):
    NONE = 0
    BLOCKED = 1
    RESERVED = 2
    SOLD = 3


_PRIORITY = {
    ReservationStatus.SOLD: StatusPriority.SOLD,
    ReservationStatus.RESERVED: StatusPriority.RESERVED,
    ReservationStatus.BONUS: StatusPriority.RESERVED,
    ReservationStatus.BLOCKED: StatusPriority.BLOCKED,
}

_RESOLVED = {
    ReservationStatus.SOLD: ResolvedStatus.SOLD,
    ReservationStatus.RESERVED: ResolvedStatus.RESERVED,
    ReservationStatus.BONUS: ResolvedStatus.RESERVED,
    ReservationStatus.BLOCKED: ResolvedStatus.BLOCKED,
}


def priority_of(status: Optional[ReservationStatus]) -> StatusPriority:
    if status is None:
        return StatusPriority.NONE
    return _PRIORITY[status]


def outranks(candidate: ReservationStatus, current: Optional[ReservationStatus]) -> bool:
    """True when ``candidate`` should replace ``current``"""
    return priority_of(candidate) > priority_of(current)


def to_resolved(status: Optional[ReservationStatus]) -> ResolvedStatus:
    if status is None:
        return ResolvedStatus.AVAILABLE
    return _RESOLVED[status]


def resolve_statuses(
    item_ids: Iterable[int],
    reservations: Iterable[Reservation],
) -> Dict[int, ResolvedStatus]:
    """
    Resolve the status of every item in ``item_ids``.

    Args:
        item_ids: Items to resolve
        reservations: Active reservations in the time scope, in encounter order

    Returns:
        item id -> resolved status; items without reservations are Available
    """
    wanted = set(item_ids)
    winners: Dict[int, ReservationStatus] = {}

    for reservation in reservations:
        item_id = reservation.inventory_id
        if item_id not in wanted:
            continue
        if outranks(reservation.status, winners.get(item_id)):
            winners[item_id] = reservation.status

    return {item_id: to_resolved(winners.get(item_id)) for item_id in wanted}
