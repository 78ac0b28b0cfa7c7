"""Health check endpoints."""

from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from api.dependencies import ServiceContainer, get_container


router = APIRouter()

VERSION = "1.0.0"


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str
    services: Dict[str, str]
    order_mappings: int


@router.get("/health", response_model=HealthResponse)
async def health_check(container: ServiceContainer = Depends(get_container)) -> HealthResponse:
    """Health check endpoint."""
    store = container.store
    if not store.loaded:
        storage = "not_loaded"
    elif store.dirty:
        storage = "dirty"
    else:
        storage = "up"

    poller = container.poller
    return HealthResponse(
        status="healthy" if storage == "up" else "degraded",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=VERSION,
        services={
            "api": "up",
            "storage": storage,
            "erp": container.connector.connection_status.value.lower(),
            "poller": "running" if poller is not None and poller.running else "off",
        },
        order_mappings=len(store),
    )


@router.get("/ready")
async def readiness_check(
    response: Response,
    container: ServiceContainer = Depends(get_container),
) -> Dict[str, str]:
    """Readiness probe: the mapping table must be loaded."""
    if not container.store.loaded:
        response.status_code = 503
        return {"status": "not_ready"}
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """Liveness probe."""
    return {"status": "alive"}
