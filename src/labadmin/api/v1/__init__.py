"""API v1 routes."""

from fastapi import APIRouter

from labadmin.api.v1 import bulk_operations, health

router = APIRouter()

# Include all v1 routes
router.include_router(health.router, tags=["health"])
router.include_router(bulk_operations.router, prefix="/admin", tags=["bulk-operations"])

__all__ = ["router"]
