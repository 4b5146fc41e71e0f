"""
Availability Service Routes Registry
Defines all API routes exposed by the availability service
"""

from typing import Any, Dict

SERVICE_ROUTES = [
    {
        "path": "/health",
        "methods": ["GET"],
        "auth_required": False,
        "description": "Service health check"
    },
    {
        "path": "/api/v1/availability/health",
        "methods": ["GET"],
        "auth_required": False,
        "description": "Service health check (API v1)"
    },
    {
        "path": "/api/v1/availability/info",
        "methods": ["GET"],
        "auth_required": False,
        "description": "Service metadata"
    },
    # Availability queries
    {
        "path": "/api/v1/availability/stats",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Status KPIs and distributions"
    },
    {
        "path": "/api/v1/availability/stats/{status}",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Distributions restricted to one status"
    },
    {
        "path": "/api/v1/availability/items",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Paginated items with resolved status"
    },
    {
        "path": "/api/v1/availability/filter-options",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Filter values and billing periods"
    },
    {
        "path": "/api/v1/availability/top-clients",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Clients ranked by active reservations"
    },
    # Billing periods
    {
        "path": "/api/v1/availability/periods/upcoming",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Upcoming billing periods"
    },
    {
        "path": "/api/v1/availability/periods/{period_id}",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Billing period by ID"
    },
    # Expiration sweep
    {
        "path": "/api/v1/availability/sweep",
        "methods": ["POST"],
        "auth_required": True,
        "description": "Release stale holds now"
    },
    {
        "path": "/api/v1/availability/sweep/status",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Expiration sweeper status"
    },
    # Cache
    {
        "path": "/api/v1/availability/cache/stats",
        "methods": ["GET"],
        "auth_required": True,
        "description": "Cache size and keys"
    },
    {
        "path": "/api/v1/availability/cache",
        "methods": ["DELETE"],
        "auth_required": True,
        "description": "Invalidate cached results by prefix"
    },
]


def get_routes_summary() -> Dict[str, Any]:
    """
    Compact route metadata for service registries
    """
    health_routes = []
    query_routes = []
    period_routes = []
    admin_routes = []

    for route in SERVICE_ROUTES:
        path = route["path"]

        if "health" in path or path.endswith("/info"):
            health_routes.append("h")
        elif "/periods" in path:
            period_routes.append("p")
        elif "/sweep" in path or "/cache" in path:
            admin_routes.append("a")
        else:
            query_routes.append("q")

    methods = sorted({method for route in SERVICE_ROUTES for method in route["methods"]})

    return {
        "route_count": str(len(SERVICE_ROUTES)),
        "base_path": "/api/v1/availability",
        "health": str(len(health_routes)),
        "queries": str(len(query_routes)),
        "periods": str(len(period_routes)),
        "admin": str(len(admin_routes)),
        "methods": ",".join(methods),
        "public_count": str(sum(1 for r in SERVICE_ROUTES if not r["auth_required"])),
        "protected_count": str(sum(1 for r in SERVICE_ROUTES if r["auth_required"])),
    }


# Service metadata
SERVICE_METADATA = {
    "service_name": "availability_service",
    "version": "1.0.0",
    "tags": ["v1", "inventory-microservice", "availability"],
    "capabilities": [
        "status_reconciliation",
        "availability_dashboards",
        "filter_options",
        "billing_periods",
        "top_clients",
        "reservation_expiration",
        "result_caching"
    ]
}
