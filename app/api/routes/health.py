"""
Health and readiness check API endpoints
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from app.core.database import get_db
from app.services.health_service import HealthService

router = APIRouter()
health_service = HealthService()

@router.get("/healthz")
async def liveness_check():
    """
    Liveness check endpoint

    Returns:
        Basic health status indicating if the service is running
    """
    return health_service.liveness_check()

@router.get("/readyz")
def readiness_check(db: Session = Depends(get_db)):
    """
    Readiness check endpoint

    Returns:
        Readiness status with the database check; 503 when not ready
    """
    result = health_service.readiness_check(db)
    if result["status"] != "ready":
        return JSONResponse(status_code=503, content=result)
    return result
