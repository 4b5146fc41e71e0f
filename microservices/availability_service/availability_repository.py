"""
Availability Repository

Data access layer for inventory availability using PostgresClient (asyncpg).
Matches schema: inventarios, reservas, calendario, catorcenas (cliente for names)

Timestamp columns are ``timestamptz``; ``reservas.deleted_at`` is the
soft-deletion marker (NULL = active).
"""

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence

import asyncpg

from core.postgres_client import CONNECTION_ERRORS, DatabaseUnavailableError, PostgresClient

from .models import (
    BillingPeriod,
    CalendarWindow,
    ClientReservationCount,
    InventoryItem,
    Reservation,
    ReservationStatus,
)
from .protocols import InvalidFilterError, TransientStoreError

logger = logging.getLogger(__name__)

# Item attribute -> inventarios column
ITEM_COLUMNS: Dict[str, str] = {
    "id": "id",
    "code": "codigo_unico",
    "furniture_type": "tipo_de_mueble",
    "furniture": "mueble",
    "format": "tradicional_digital",
    "municipality": "municipio",
    "state": "estado",
    "plaza": "plaza",
    "socioeconomic_level": "nivel_socioeconomico",
    "latitude": "latitud",
    "longitude": "longitud",
}

FILTERABLE_ATTRIBUTES = ("state", "plaza", "furniture_type", "format", "socioeconomic_level")

_STORE_ERRORS = (DatabaseUnavailableError, asyncpg.PostgresError, *CONNECTION_ERRORS)


class AvailabilityRepository:
    """
    Repository for availability data operations.

    Tables:
        - inventarios: Inventory catalog (read-only here)
        - reservas: Reservations per inventory item and calendar window
        - calendario: Dated calendar windows
        - catorcenas: Named billing periods
        - cliente: Client names (read-only here)
    """

    def __init__(self, db: PostgresClient):
        self.db = db
        self.items_table = "inventarios"
        self.reservations_table = "reservas"
        self.windows_table = "calendario"
        self.periods_table = "catorcenas"
        self.clients_table = "cliente"
        self._item_select = ", ".join(
            f"{column} AS {attribute}" for attribute, column in ITEM_COLUMNS.items()
        )

    # ========================================
    # Low-level helpers
    # ========================================

    async def _query(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        try:
            return await self.db.query(sql, params)
        except _STORE_ERRORS as e:
            logger.error(f"Query failed: {e}")
            raise TransientStoreError(str(e)) from e

    async def _query_row(self, sql: str, params: Optional[Sequence[Any]] = None) -> Optional[Dict[str, Any]]:
        try:
            return await self.db.query_row(sql, params)
        except _STORE_ERRORS as e:
            logger.error(f"Query failed: {e}")
            raise TransientStoreError(str(e)) from e

    async def _execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        try:
            return await self.db.execute(sql, params)
        except _STORE_ERRORS as e:
            logger.error(f"Statement failed: {e}")
            raise TransientStoreError(str(e)) from e

    # ========================================
    # Inventory
    # ========================================

    async def list_items(self, filters: Dict[str, str]) -> List[InventoryItem]:
        """List inventory items matching categorical filters"""
        conditions = []
        params: List[Any] = []

        for attribute, value in filters.items():
            if attribute not in FILTERABLE_ATTRIBUTES:
                raise InvalidFilterError(f"Unsupported item filter: {attribute}")
            params.append(value)
            conditions.append(f"{ITEM_COLUMNS[attribute]} = ${len(params)}")

        where_clause = " AND ".join(conditions) if conditions else "TRUE"
        query = f"""
            SELECT {self._item_select}
            FROM {self.items_table}
            WHERE {where_clause}
            ORDER BY id
        """

        rows = await self._query(query, params)
        return [InventoryItem(**row) for row in rows]

    async def list_distinct_values(self, attribute: str) -> List[str]:
        """Distinct non-null values of an item attribute"""
        if attribute not in FILTERABLE_ATTRIBUTES:
            raise InvalidFilterError(f"Unsupported item attribute: {attribute}")

        column = ITEM_COLUMNS[attribute]
        query = f"""
            SELECT DISTINCT {column} AS value
            FROM {self.items_table}
            WHERE {column} IS NOT NULL
            ORDER BY 1
        """
        rows = await self._query(query)
        return [row["value"] for row in rows]

    # ========================================
    # Reservations
    # ========================================

    async def list_active_reservations(
        self,
        item_ids: Sequence[int],
        calendar_ids: Optional[Sequence[int]] = None,
    ) -> List[Reservation]:
        """Active reservations of the items, optionally restricted to calendar windows"""
        if not item_ids:
            return []

        params: List[Any] = [list(item_ids)]
        calendar_clause = ""
        if calendar_ids is not None:
            if not calendar_ids:
                return []
            params.append(list(calendar_ids))
            calendar_clause = "AND calendario_id = ANY($2::int[])"

        query = f"""
            SELECT id, inventario_id, estatus, cliente_id, fecha_reserva, calendario_id, deleted_at
            FROM {self.reservations_table}
            WHERE deleted_at IS NULL
              AND inventario_id = ANY($1::int[])
              {calendar_clause}
            ORDER BY id
        """

        rows = await self._query(query, params)
        reservations = []
        for row in rows:
            reservation = self._to_reservation(row)
            if reservation is not None:
                reservations.append(reservation)
        return reservations

    async def count_active_reservations(self, statuses: Optional[Sequence[ReservationStatus]] = None) -> int:
        """Count active reservations, optionally by status"""
        params: List[Any] = []
        status_clause = ""
        if statuses:
            params.append([status.value for status in statuses])
            status_clause = "AND estatus = ANY($1::text[])"

        row = await self._query_row(
            f"""
            SELECT COUNT(*) AS total
            FROM {self.reservations_table}
            WHERE deleted_at IS NULL {status_clause}
            """,
            params,
        )
        return int(row["total"]) if row else 0

    async def list_top_clients(self, limit: int = 5) -> List[ClientReservationCount]:
        """Clients with the most active reservations, names from the cliente table"""
        rows = await self._query(
            f"""
            SELECT r.cliente_id AS client_id,
                   COALESCE(NULLIF(c."T0_U_Cliente", ''), NULLIF(c."T0_U_RazonSocial", '')) AS name,
                   COUNT(*) AS total
            FROM {self.reservations_table} r
            LEFT JOIN {self.clients_table} c ON c.id = r.cliente_id
            WHERE r.deleted_at IS NULL AND r.cliente_id IS NOT NULL
            GROUP BY r.cliente_id, c."T0_U_Cliente", c."T0_U_RazonSocial"
            ORDER BY total DESC, r.cliente_id
            LIMIT $1
            """,
            [limit],
        )
        return [
            ClientReservationCount(client_id=row["client_id"], name=row["name"], total=int(row["total"]))
            for row in rows
        ]

    async def expire_reservations(
        self,
        statuses: Sequence[ReservationStatus],
        reserved_before: datetime,
        expired_at: datetime,
    ) -> int:
        """Soft-delete active reservations older than the cutoff in one statement"""
        query = f"""
            UPDATE {self.reservations_table}
            SET deleted_at = $1
            WHERE deleted_at IS NULL
              AND estatus = ANY($2::text[])
              AND fecha_reserva < $3
        """
        return await self._execute(
            query,
            [expired_at, [status.value for status in statuses], reserved_before],
        )

    # ========================================
    # Calendar Windows / Billing Periods
    # ========================================

    async def list_overlapping_windows(self, start: date, end: date) -> List[CalendarWindow]:
        query = f"""
            SELECT id, fecha_inicio AS start_date, fecha_fin AS end_date, deleted_at
            FROM {self.windows_table}
            WHERE deleted_at IS NULL
              AND fecha_inicio <= $1
              AND fecha_fin >= $2
            ORDER BY id
        """
        rows = await self._query(query, [end, start])
        return [CalendarWindow(**row) for row in rows]

    async def get_billing_period(self, period_id: int) -> Optional[BillingPeriod]:
        row = await self._query_row(
            f"{self._period_select()} WHERE id = $1",
            [period_id],
        )
        return BillingPeriod(**row) if row else None

    async def get_current_billing_period(self, today: date) -> Optional[BillingPeriod]:
        row = await self._query_row(
            f"{self._period_select()} WHERE fecha_inicio <= $1 AND fecha_fin >= $1 "
            f"ORDER BY fecha_inicio DESC LIMIT 1",
            [today],
        )
        return BillingPeriod(**row) if row else None

    async def list_billing_periods(self, since_year: int) -> List[BillingPeriod]:
        rows = await self._query(
            f"{self._period_select()} WHERE a_o >= $1 ORDER BY a_o DESC, numero_catorcena DESC",
            [since_year],
        )
        return [BillingPeriod(**row) for row in rows]

    async def list_upcoming_billing_periods(self, today: date, limit: int = 6) -> List[BillingPeriod]:
        rows = await self._query(
            f"{self._period_select()} WHERE fecha_inicio >= $1 ORDER BY fecha_inicio ASC LIMIT $2",
            [today, limit],
        )
        return [BillingPeriod(**row) for row in rows]

    def _period_select(self) -> str:
        return (
            f"SELECT id, numero_catorcena AS number, a_o AS year, "
            f"fecha_inicio AS start_date, fecha_fin AS end_date "
            f"FROM {self.periods_table}"
        )

    @staticmethod
    def _to_reservation(row: Dict[str, Any]) -> Optional[Reservation]:
        """Map a reservas row; rows with an unknown status tag are skipped"""
        try:
            status = ReservationStatus(row["estatus"])
        except ValueError:
            logger.warning(f"Skipping reservation {row['id']}: unknown status {row['estatus']!r}")
            return None

        return Reservation(
            id=row["id"],
            inventory_id=row["inventario_id"],
            status=status,
            client_id=row.get("cliente_id"),
            reserved_at=row["fecha_reserva"],
            calendar_id=row.get("calendario_id"),
            deleted_at=row.get("deleted_at"),
        )
