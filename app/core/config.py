"""
Application configuration
"""

from typing import Dict
from pydantic_settings import BaseSettings


def _default_agent_history_tables() -> Dict[str, str]:
    return {
        "ia-contratos": "n8n_chat_histories",
        "ia-laboral": "n8n_chat_histories_laboral",
        "ia-defensa-consumidor": "n8n_chat_histories_defensa",
        "ia-general": "n8n_chat_histories_general",
    }


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./sessions.db"  # Will be overridden by env var
    debug: bool = False

    # Session storage
    session_backend: str = "agent_history"  # agent_history, relational
    agent_history_tables: Dict[str, str] = _default_agent_history_tables()
    default_agent_type: str = "ia-general"
    create_agent_history_tables: bool = True  # Set to false where the workflow tool already manages these tables
    session_page_size_max: int = 100

    # Authentication Configuration
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    jwt_verify_signature: bool = True

    # Logging Configuration
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False

settings = Settings()
