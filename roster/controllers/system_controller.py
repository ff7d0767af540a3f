# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Controller: System endpoints — health, readiness, metrics.
Pure HTTP layer — no business logic.
"""

from datetime import datetime, timezone

from fastapi import APIRouter
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import JSONResponse, Response

from roster.core.config import settings
from roster.core.dependencies import get_bus_repo, get_roster_store

router = APIRouter(tags=["System"])


@router.get("/health")
def health_check():
    """Liveness check for Docker and orchestration."""
    store = get_roster_store()
    return {
        "status": "ok",
        "service": settings.SERVICE_NAME,
        "version": settings.SERVICE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "roster_status": store.status.value,
        "buses_count": get_bus_repo().count(),
    }


@router.get("/health/ready")
def readiness_check():
    """Readiness check — ready once a snapshot has been ingested.
    A failed refresh keeps the previous snapshot, so it does not flip readiness."""
    status = get_roster_store().get_status()
    ready = status["last_ingested_at"] is not None
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "service": settings.SERVICE_NAME,
            "roster_status": status["status"],
            "participants": status["participants"],
        },
    )


@router.get("/metrics")
def prometheus_metrics():
    """Expose Prometheus metrics in OpenMetrics format."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
