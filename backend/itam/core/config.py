"""
Application configuration settings
"""
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "IT Asset Registry"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database (no default: the service refuses to start without a store)
    DATABASE_URL: str
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT_SECONDS: float = 5.0
    DATABASE_POOL_RECYCLE_SECONDS: int = 30
    DATABASE_CONNECT_TIMEOUT_SECONDS: int = 2
    DATABASE_STATEMENT_TIMEOUT_MS: int = 30_000

    # CORS
    ALLOWED_HOSTS: List[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Bulk import
    IMPORT_MAX_FILE_BYTES: int = 5 * 1024 * 1024  # 5MB
    IMPORT_MAX_ROWS: int = 5000

    # Ticket numbering
    TICKET_NUMBER_MAX_ATTEMPTS: int = 5

    # Users and invitations
    FIRST_EMPLOYEE_ID: int = 1001
    EMPLOYEE_ID_MAX_ATTEMPTS: int = 3
    INVITATION_TTL_DAYS: int = 7

    # Audit
    AUDIT_CHAIN_MAX_ATTEMPTS: int = 3
    AUDIT_QUERY_MAX_PAGE_SIZE: int = 200

    # Dashboard
    EXPIRY_WINDOW_DAYS: int = 30
    RECENT_ACTIVITY_LIMIT: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True

    @field_validator("DATABASE_URL")
    @classmethod
    def _require_database_url(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("DATABASE_URL must be set")
        return value.strip()


# Create settings instance
settings = Settings()
