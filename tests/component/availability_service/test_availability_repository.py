"""
Component Tests for AvailabilityRepository

Runs the repository against a recording fake of PostgresClient: checks row
mapping, parameter binding and error translation, not SQL semantics.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest

from core.postgres_client import DatabaseUnavailableError
from microservices.availability_service.availability_repository import AvailabilityRepository
from microservices.availability_service.models import HOLD_STATUSES, ReservationStatus
from microservices.availability_service.protocols import InvalidFilterError, TransientStoreError

pytestmark = [pytest.mark.component]


class RecordingDb:
    """PostgresClient stand-in returning canned rows"""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None, affected: int = 0):
        self.rows = rows or []
        self.affected = affected
        self.statements: List[tuple] = []
        self.error: Optional[Exception] = None

    def _record(self, sql: str, params: Optional[Sequence[Any]]) -> None:
        self.statements.append((" ".join(sql.split()), list(params or [])))
        if self.error is not None:
            raise self.error

    async def query(self, sql, params=None):
        self._record(sql, params)
        return self.rows

    async def query_row(self, sql, params=None):
        self._record(sql, params)
        return self.rows[0] if self.rows else None

    async def execute(self, sql, params=None):
        self._record(sql, params)
        return self.affected


RESERVATION_ROW = {
    "id": 1,
    "inventario_id": 7,
    "estatus": "Vendido",
    "cliente_id": 3,
    "fecha_reserva": datetime(2024, 5, 1, tzinfo=timezone.utc),
    "calendario_id": 2,
    "deleted_at": None,
}


class TestListItems:
    """Tests for list_items"""

    @pytest.mark.asyncio
    async def test_filters_bound_as_parameters(self):
        db = RecordingDb(rows=[{"id": 1, "plaza": "Guadalajara", "state": "Jalisco"}])
        repo = AvailabilityRepository(db)

        items = await repo.list_items({"state": "Jalisco", "furniture_type": "Parabus"})

        sql, params = db.statements[0]
        assert "estado = $1" in sql
        assert "tipo_de_mueble = $2" in sql
        assert params == ["Jalisco", "Parabus"]
        assert items[0].plaza == "Guadalajara"

    @pytest.mark.asyncio
    async def test_unknown_attribute_rejected(self):
        repo = AvailabilityRepository(RecordingDb())

        with pytest.raises(InvalidFilterError):
            await repo.list_items({"latitude; DROP TABLE": "x"})

    @pytest.mark.asyncio
    async def test_distinct_values(self):
        db = RecordingDb(rows=[{"value": "AB"}, {"value": "C+"}])
        repo = AvailabilityRepository(db)

        assert await repo.list_distinct_values("socioeconomic_level") == ["AB", "C+"]
        assert "nivel_socioeconomico" in db.statements[0][0]


class TestReservations:
    """Tests for reservation reads and the bulk expiration"""

    @pytest.mark.asyncio
    async def test_rows_mapped_to_reservations(self):
        repo = AvailabilityRepository(RecordingDb(rows=[RESERVATION_ROW]))

        reservations = await repo.list_active_reservations([7], calendar_ids=[2])

        assert reservations[0].inventory_id == 7
        assert reservations[0].status == ReservationStatus.SOLD
        assert reservations[0].calendar_id == 2

    @pytest.mark.asyncio
    async def test_unknown_status_rows_skipped(self):
        rows = [RESERVATION_ROW, {**RESERVATION_ROW, "id": 2, "estatus": "Cancelado"}]
        repo = AvailabilityRepository(RecordingDb(rows=rows))

        reservations = await repo.list_active_reservations([7])

        assert [r.id for r in reservations] == [1]

    @pytest.mark.asyncio
    async def test_no_items_or_windows_skips_query(self):
        db = RecordingDb(rows=[RESERVATION_ROW])
        repo = AvailabilityRepository(db)

        assert await repo.list_active_reservations([]) == []
        assert await repo.list_active_reservations([7], calendar_ids=[]) == []
        assert db.statements == []

    @pytest.mark.asyncio
    async def test_expire_is_one_bulk_update(self):
        db = RecordingDb(affected=4)
        repo = AvailabilityRepository(db)
        now = datetime(2024, 6, 1, tzinfo=timezone.utc)
        cutoff = datetime(2024, 5, 12, tzinfo=timezone.utc)

        expired = await repo.expire_reservations(HOLD_STATUSES, reserved_before=cutoff, expired_at=now)

        assert expired == 4
        assert len(db.statements) == 1
        sql, params = db.statements[0]
        assert sql.startswith("UPDATE reservas SET deleted_at = $1")
        assert "deleted_at IS NULL" in sql
        assert params == [now, ["Reservado", "Bonificado"], cutoff]

    @pytest.mark.asyncio
    async def test_count_active_reservations(self):
        db = RecordingDb(rows=[{"total": 9}])
        repo = AvailabilityRepository(db)

        assert await repo.count_active_reservations(HOLD_STATUSES) == 9
        assert db.statements[0][1] == [["Reservado", "Bonificado"]]


class TestTopClients:
    """Tests for list_top_clients"""

    @pytest.mark.asyncio
    async def test_grouped_active_reservations(self):
        db = RecordingDb(rows=[
            {"client_id": 7, "name": "Cervecería del Norte", "total": 12},
            {"client_id": 3, "name": None, "total": 4},
        ])
        repo = AvailabilityRepository(db)

        clients = await repo.list_top_clients(limit=5)

        sql, params = db.statements[0]
        assert "GROUP BY r.cliente_id" in sql
        assert "r.deleted_at IS NULL" in sql
        assert "ORDER BY total DESC" in sql
        assert params == [5]
        assert [(c.client_id, c.name, c.total) for c in clients] == [
            (7, "Cervecería del Norte", 12),
            (3, None, 4),
        ]

    @pytest.mark.asyncio
    async def test_store_failure_translated(self):
        db = RecordingDb()
        db.error = ConnectionRefusedError("connection refused")
        repo = AvailabilityRepository(db)

        with pytest.raises(TransientStoreError):
            await repo.list_top_clients()


class TestBillingPeriods:
    """Tests for billing period reads"""

    @pytest.mark.asyncio
    async def test_period_mapping(self):
        row = {"id": 12, "number": 12, "year": 2024, "start_date": date(2024, 6, 3), "end_date": date(2024, 6, 16)}
        repo = AvailabilityRepository(RecordingDb(rows=[row]))

        period = await repo.get_billing_period(12)

        assert period.label == "Cat 12 - 2024"

    @pytest.mark.asyncio
    async def test_missing_period(self):
        repo = AvailabilityRepository(RecordingDb())

        assert await repo.get_billing_period(404) is None


class TestErrorTranslation:
    """Store failures surface as TransientStoreError"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [
        ConnectionRefusedError("connection refused"),
        DatabaseUnavailableError("database not connected"),
    ])
    async def test_connection_errors_translated(self, error):
        db = RecordingDb()
        db.error = error
        repo = AvailabilityRepository(db)

        with pytest.raises(TransientStoreError):
            await repo.list_items({})

        with pytest.raises(TransientStoreError):
            await repo.expire_reservations(HOLD_STATUSES, reserved_before=datetime.now(timezone.utc), expired_at=datetime.now(timezone.utc))
