"""
Database configuration and session management
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from app.core.config import settings

def _connect_args(database_url: str) -> dict:
    if "postgresql" in database_url:
        return {
            "connect_timeout": 7,
            "application_name": "session-management",
            "options": "-c statement_timeout=10000"  # 10 second statement timeout
        }
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,  # Verify connections before use
    pool_recycle=1800,
    connect_args=_connect_args(settings.database_url),
    echo=False,
    future=True
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """Dependency to get database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
