"""
Configuration settings for the application.
"""
import os
import tempfile
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service identity (reported through getModuleDefinition)
    SERVICE_ID: str = "eark-validator"
    SERVICE_VERSION: str = "1.0.0"

    # API Key Authentication
    API_KEY: Optional[str] = None
    REQUIRE_API_KEY: bool = False  # The test bed usually calls without credentials

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"  # Options: "text", "json"
    LOG_INCLUDE_REQUEST_ID: bool = True  # Include X-Request-ID in logs

    # HTTP Client Configuration
    HTTP_CLIENT_TIMEOUT: float = 300.0  # Backend validation of large archives is slow (seconds)
    HTTP_MAX_KEEPALIVE_CONNECTIONS: int = 10
    HTTP_MAX_CONNECTIONS: int = 20

    # Performance Monitoring
    RESPONSE_TIME_WARNING_THRESHOLD_MS: int = 60000

    # Backend validator
    BACKEND_ENDPOINT: str = "http://localhost:8080/api/validate/"
    VALIDATOR_FORCE_HTTPS: bool = False  # Rewrite http:// report URLs to https://

    # Temporary archive storage
    TMP_FOLDER: str = os.path.join(tempfile.gettempdir(), "eark-validator")
    CLEAN_TMP_FOLDER_ON_STARTUP: bool = True

    # Input Guardrails
    MAX_ARCHIVE_MB: int = 512

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
