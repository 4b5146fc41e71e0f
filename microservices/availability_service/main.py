"""
Availability Service - Main Application

Inventory availability microservice: per-item status reconciliation over
billing windows, cached dashboards and automatic release of stale holds.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Path, Query, Request
from fastapi.responses import JSONResponse

from core.config import get_settings
from core.logger import setup_service_logger
from core.postgres_client import PostgresClient, connect_with_retry

from .availability_service import AvailabilityService
from .expiration_sweeper import AVAILABILITY_CACHE_PREFIX
from .factory import create_availability_service
from .models import (
    AvailabilityDetailResponse,
    AvailabilityStatsResponse,
    BillingPeriodOption,
    CacheStatsResponse,
    ClientReservationCount,
    ErrorResponse,
    FilterOptionsResponse,
    HealthResponse,
    InvalidateResponse,
    SweeperStatusResponse,
    SweepResult,
)
from .protocols import (
    BillingPeriodNotFoundError,
    InvalidFilterError,
    SweepFailure,
    TransientStoreError,
)
from .routes_registry import SERVICE_METADATA, get_routes_summary

# Initialize config
config = get_settings()

# Setup logger
logger = setup_service_logger("availability_service", config.logging)

SERVICE_VERSION = SERVICE_METADATA["version"]

# Query parameters that are not filter fields
PAGINATION_PARAMS = ("page", "page_size")


class AvailabilityMicroservice:
    def __init__(self):
        self.db: Optional[PostgresClient] = None
        self.service: Optional[AvailabilityService] = None

    async def initialize(self):
        """
        Connect (bounded retry, fatal on exhaustion), run one sweep, then arm
        the periodic sweep and the cache cleanup.
        """
        self.db = PostgresClient("availability_service", config=config.infrastructure)
        await connect_with_retry(
            self.db,
            attempts=config.db_connect_attempts,
            delay_seconds=config.db_connect_delay_seconds,
        )

        self.service = create_availability_service(config=config, db=self.db)
        logger.info("Availability service initialized")

        sweeper = self.service.sweeper
        await sweeper.run_scheduled()
        sweeper.start()

        self.service.cache.start_cleanup(config.cache.cleanup_interval_seconds)

    async def shutdown(self):
        if self.service:
            await self.service.sweeper.stop()
            await self.service.cache.close()
        if self.db:
            await self.db.close()
        logger.info("Availability service shutting down")


# Global instance
microservice = AvailabilityMicroservice()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    try:
        await microservice.initialize()
    except Exception as e:
        logger.error(f"Failed to initialize availability service: {e}")
        await microservice.shutdown()
        raise

    logger.info(f"Availability service started on port {config.service_port}")

    try:
        yield
    finally:
        await microservice.shutdown()


# Create FastAPI application
app = FastAPI(
    title="Availability Service",
    description="Inventory availability by billing window, with automatic hold expiration",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ====================
# Dependency Injection
# ====================


async def get_availability_service() -> AvailabilityService:
    """Get availability service instance"""
    if not microservice.service:
        raise HTTPException(status_code=503, detail="Availability service not initialized")
    return microservice.service


def query_filter(request: Request) -> Dict[str, Any]:
    """Raw filter fields from the query string (validated by the service)"""
    return {
        key: value
        for key, value in request.query_params.items()
        if key not in PAGINATION_PARAMS
    }


# ====================
# Error Handlers
# ====================


def _error(status_code: int, message: str, detail: Any = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, detail=detail).model_dump(),
    )


@app.exception_handler(InvalidFilterError)
async def invalid_filter_handler(request: Request, exc: InvalidFilterError):
    return _error(400, str(exc), exc.errors or None)


@app.exception_handler(BillingPeriodNotFoundError)
async def not_found_handler(request: Request, exc: BillingPeriodNotFoundError):
    return _error(404, str(exc))


@app.exception_handler(TransientStoreError)
async def store_unavailable_handler(request: Request, exc: TransientStoreError):
    logger.error(f"Store unavailable in {request.url.path}: {exc}")
    return _error(503, "Backing store unavailable")


@app.exception_handler(SweepFailure)
async def sweep_failure_handler(request: Request, exc: SweepFailure):
    return _error(503, str(exc))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    logger.error(f"Unhandled exception in {request.url}: {exc}", exc_info=True)
    return _error(500, "Internal server error occurred")


# ====================
# Health Check
# ====================


@app.get("/api/v1/availability/health", response_model=HealthResponse)
@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check"""
    dependencies = {}

    if microservice.db and microservice.db.is_connected:
        result = await microservice.db.health_check()
        dependencies["database"] = "healthy" if result.get("healthy") else "unhealthy"
    else:
        dependencies["database"] = "unhealthy"

    if microservice.service and microservice.service.sweeper:
        dependencies["sweeper"] = "healthy" if microservice.service.sweeper.is_scheduled else "stopped"

    return HealthResponse(
        status="healthy" if all(v == "healthy" for v in dependencies.values()) else "degraded",
        service="availability_service",
        version=SERVICE_VERSION,
        dependencies=dependencies,
    )


@app.get("/api/v1/availability/info")
async def get_service_info():
    """Service metadata and route summary"""
    return {
        **SERVICE_METADATA,
        "routes": get_routes_summary(),
    }


# ====================
# Availability Queries
# ====================


@app.get("/api/v1/availability/stats", response_model=AvailabilityStatsResponse)
async def get_stats(
    filters: Dict[str, Any] = Depends(query_filter),
    service: AvailabilityService = Depends(get_availability_service),
):
    """KPIs and distributions for the filtered inventory"""
    return await service.get_stats(filters)


@app.get("/api/v1/availability/stats/{status}", response_model=AvailabilityStatsResponse)
async def get_stats_by_status(
    status: str = Path(..., description="Resolved status (Disponible, Reservado, Vendido, Bloqueado)"),
    filters: Dict[str, Any] = Depends(query_filter),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Distributions restricted to one resolved status"""
    return await service.get_stats({**filters, "status": status})


@app.get("/api/v1/availability/items", response_model=AvailabilityDetailResponse)
async def get_items(
    page: int = Query(1, description="Page number (1-indexed)"),
    page_size: Optional[int] = Query(None, description="Rows per page"),
    filters: Dict[str, Any] = Depends(query_filter),
    service: AvailabilityService = Depends(get_availability_service),
):
    """One page of items with resolved status, plus plaza summary and map points"""
    return await service.get_detail(filters, page=page, page_size=page_size)


@app.get("/api/v1/availability/filter-options", response_model=FilterOptionsResponse)
async def get_filter_options(
    service: AvailabilityService = Depends(get_availability_service),
):
    return await service.get_filter_options()


@app.get("/api/v1/availability/top-clients", response_model=List[ClientReservationCount])
async def get_top_clients(
    limit: int = Query(5, description="Number of clients"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Clients with the most active reservations"""
    return await service.get_top_clients(limit=limit)


# ====================
# Billing Periods
# ====================


@app.get("/api/v1/availability/periods/upcoming", response_model=List[BillingPeriodOption])
async def get_upcoming_periods(
    limit: int = Query(6, description="Number of periods"),
    service: AvailabilityService = Depends(get_availability_service),
):
    return await service.get_upcoming_periods(limit=limit)


@app.get("/api/v1/availability/periods/{period_id}", response_model=BillingPeriodOption)
async def get_billing_period(
    period_id: int = Path(..., ge=1, description="Billing period ID"),
    service: AvailabilityService = Depends(get_availability_service),
):
    return await service.get_billing_period(period_id)


# ====================
# Expiration Sweep
# ====================


@app.post("/api/v1/availability/sweep", response_model=SweepResult)
async def sweep_now(
    service: AvailabilityService = Depends(get_availability_service),
):
    """Release stale holds immediately"""
    return await service.sweep_now()


@app.get("/api/v1/availability/sweep/status", response_model=SweeperStatusResponse)
async def sweep_status(
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.sweeper_status()


# ====================
# Cache
# ====================


@app.get("/api/v1/availability/cache/stats", response_model=CacheStatsResponse)
async def cache_stats(
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.cache_stats()


@app.delete("/api/v1/availability/cache", response_model=InvalidateResponse)
async def invalidate_cache(
    prefix: str = Query(AVAILABILITY_CACHE_PREFIX, description="Key prefix to drop"),
    service: AvailabilityService = Depends(get_availability_service),
):
    removed = service.invalidate(prefix)
    return InvalidateResponse(prefix=prefix, removed=removed)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "microservices.availability_service.main:app",
        host=config.service_host,
        port=config.service_port,
        log_level=config.logging.log_level.lower(),
    )
