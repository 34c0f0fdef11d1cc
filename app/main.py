"""
Legal chat session management API
Sessions and messages for the contract, labor, consumer-defense and general agents
"""

from fastapi import FastAPI
from app.api.routes import health, sessions
from app.core.config import settings
from app.core.database import engine
from app.models import Base, agent_history_metadata
from app.services.agent_router import agent_router
from app.middleware.logging import StructuredLoggingMiddleware
from app.middleware.error_handling import ErrorHandlingMiddleware, register_exception_handlers
import logging

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def init_database():
    """Create the first-party tables, and the agent history tables when configured to"""
    Base.metadata.create_all(bind=engine)
    logger.info("Session tables created successfully")

    if settings.create_agent_history_tables:
        tables = [store.table for store in agent_router.stores()]
        agent_history_metadata.create_all(bind=engine, tables=tables)
        logger.info(f"Agent history tables ready: {', '.join(t.name for t in tables)}")


app = FastAPI(
    title="Legal Chat Session API",
    description="Session and message management for the legal chat agents",
    version="1.0.0",
)

@app.on_event("startup")
async def startup_event():
    """Create database tables on startup"""
    try:
        logger.info("Starting database initialization...")
        init_database()
        logger.info(f"Session backend: {settings.session_backend}")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise RuntimeError(f"Failed to initialize database: {str(e)}")

register_exception_handlers(app)

# Add middleware (order matters - last added is first executed)
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(StructuredLoggingMiddleware)

# Include routers
app.include_router(sessions.router, prefix="/api/sessions", tags=["sessions"])
app.include_router(health.router, tags=["health"])
