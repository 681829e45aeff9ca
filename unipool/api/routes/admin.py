"""
Admin / maintenance endpoints
=============================

GET  /api/v1/admin/health    -- simple health check
GET  /api/v1/admin/validate  -- integrity report over the stored document
POST /api/v1/admin/cleanup   -- drop rides departed more than 24 h ago
"""

from fastapi import APIRouter, Depends, Request

from unipool.api.dependencies import get_maintenance_service
from unipool.api.middleware import limiter
from unipool.api.schemas import (
    CleanupResponse,
    HealthResponse,
    ValidationReportResponse,
)
from unipool.services.maintenance import MaintenanceService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/validate",
    response_model=ValidationReportResponse,
    summary="Check stored data for integrity problems",
)
@limiter.limit("100/minute")
async def validate_data(
    request: Request,
    maintenance: MaintenanceService = Depends(get_maintenance_service),
):
    errors = await maintenance.validate_data()
    return ValidationReportResponse(valid=not errors, errors=errors)


@router.post(
    "/cleanup",
    response_model=CleanupResponse,
    summary="Remove stale rides now",
)
@limiter.limit("10/minute")
async def cleanup(
    request: Request,
    maintenance: MaintenanceService = Depends(get_maintenance_service),
):
    return CleanupResponse(removed=await maintenance.cleanup_old_rides())


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
