"""
Application configuration using pydantic-settings.

WHAT: Centralized config from environment variables
WHY: Type-safe, validated config with sensible defaults
HOW: Pydantic BaseSettings reads from .env and environment
"""

from pydantic_settings import BaseSettings
from pydantic import field_validator
from pathlib import Path


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App metadata
    APP_NAME: str = "Barter Inbox"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = False

    # Marketplace API
    MARKETPLACE_BASE_URL: str = "https://flex-api.sharetribe.com"
    MARKETPLACE_CLIENT_ID: str = ""
    MARKETPLACE_TIMEOUT: float = 20.0  # seconds, read timeout
    MARKETPLACE_CONNECT_TIMEOUT: float = 5.0

    # Only transactions whose last transition is in this list show up in the inbox
    INQUIRY_TRANSITIONS: str = "transition/inquire"

    @field_validator("INQUIRY_TRANSITIONS", mode="before")
    @classmethod
    def parse_inquiry_transitions(cls, v):
        """Accept a list or a comma-separated string."""
        if isinstance(v, list):
            return ",".join(v)
        return v

    def get_inquiry_transitions(self) -> list[str]:
        """Get inquiry transitions as a list."""
        return [t.strip() for t in self.INQUIRY_TRANSITIONS.split(",") if t.strip()]

    # CORS - accepts comma-separated string or list
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:3001"

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string or list."""
        if isinstance(v, list):
            return ",".join(v)
        return v

    def get_cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "./data/logs/inbox.log"

    # Inbox sessions (in-memory only)
    SESSION_CLEANUP_HOURS: int = 1  # interval of the cleanup timer
    SESSION_TTL_MINUTES: int = 120  # idle time before a session is dropped

    class Config:
        # Look for .env in project root first, then backend/.env
        env_file = [
            str(Path(__file__).parent.parent.parent.parent / ".env"),
            str(Path(__file__).parent.parent.parent / ".env"),
        ]
        env_file_encoding = "utf-8"
        case_sensitive = True


# Singleton instance
settings = Settings()
