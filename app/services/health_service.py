"""
Health and readiness check service
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any
from sqlalchemy import text
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

SERVICE_NAME = "session-management"
SERVICE_VERSION = "1.0.0"


class HealthService:
    """
    Service for health and readiness checks
    """

    def liveness_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "timestamp": self._get_timestamp(),
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION
        }

    def readiness_check(self, db: Session) -> Dict[str, Any]:
        """
        Readiness check - the service is ready when the database answers

        Args:
            db: Database session

        Returns:
            Dictionary with readiness status and component details
        """
        components = {"database": self._check_database(db)}
        ready = all(c["status"] == "healthy" for c in components.values())
        return {
            "status": "ready" if ready else "not_ready",
            "timestamp": self._get_timestamp(),
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "components": components
        }

    def _check_database(self, db: Session) -> Dict[str, Any]:
        try:
            db.execute(text("SELECT 1"))
            return {"status": "healthy", "type": db.get_bind().dialect.name}
        except Exception as e:
            logger.error(f"Database health check failed: {str(e)}")
            return {"status": "unhealthy", "error": str(e)}

    def _get_timestamp(self) -> str:
        return datetime.now(timezone.utc).isoformat()
