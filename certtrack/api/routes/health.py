"""Health & Readiness Probes — liveness and readiness endpoints for container orchestration.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the collection store is unreachable (readiness)

Design Decisions:
    - Separate liveness/readiness: liveness restarts, readiness removes from load balancer
"""

import logging
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from certtrack.api.deps import get_registry
from certtrack.core.domain_types import CollectionName
from certtrack.core.errors import StorageIOError
from certtrack.services.registry import ServiceRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "certtrack-api",
        "version": "1.0.0",
    }


@router.get("/ready")
async def readiness_check(registry: ServiceRegistry = Depends(get_registry)):
    """Readiness probe — includes a read of the users collection."""
    try:
        await registry.store.load(CollectionName.USERS)
    except StorageIOError as e:
        logger.warning(f"Readiness check failed: {e.detail}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "storage_unavailable",
            },
        )
    return {"status": "ready", "checks": {"storage": "healthy"}}
