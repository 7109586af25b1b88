"""
Centralized configuration management for the JobVault tracker.
All environment variables, storage locations and auth settings are managed here.
"""
import os
import secrets
from typing import Optional, List
from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache


VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Application settings with validation and type hints."""

    # =============================================================================
    # APPLICATION SETTINGS
    # =============================================================================
    app_name: str = "JobVault Tracker"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False

    # =============================================================================
    # AUTH SETTINGS
    # =============================================================================
    secret_key: str = secrets.token_urlsafe(32)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    # =============================================================================
    # DATABASE SETTINGS
    # =============================================================================
    database_url: str = "sqlite:///./job_vault.db"
    database_echo: bool = False

    # =============================================================================
    # LOGGING SETTINGS
    # =============================================================================
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = (v or "").upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL: {v}")
        return level

    # =============================================================================
    # FILE STORAGE SETTINGS
    # =============================================================================
    storage_directory: str = "storage"
    storage_bucket: str = "resumes"
    storage_prefix: str = "applications"
    public_base_url: str = "http://localhost:8000"
    max_file_size: int = 10 * 1024 * 1024  # 10 MB
    allowed_file_extensions: List[str] = [".pdf", ".docx", ".doc", ".txt", ".md"]

    @property
    def bucket_directory(self) -> str:
        return os.path.join(self.storage_directory, self.storage_bucket)

    # =============================================================================
    # HTTP SETTINGS
    # =============================================================================
    cors_enabled: bool = True
    cors_origins: List[str] = ["http://localhost:5173", "http://localhost:3000"]

    # =============================================================================
    # CONFIGURATION LOADING
    # =============================================================================
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.testing or self.environment.lower() == "testing"

    def get_database_url(self) -> str:
        """Get database URL with appropriate settings for environment."""
        if self.is_testing():
            return "sqlite:///:memory:"
        return self.database_url

    def validate_required_settings(self) -> List[str]:
        """Validate that all required settings are properly configured."""
        missing = []

        if self.is_production():
            if not self.secret_key or len(self.secret_key) < 32:
                missing.append("SECRET_KEY must be at least 32 characters in production")

            if self.debug:
                missing.append("DEBUG must be False in production")

            if self.public_base_url.startswith("http://localhost"):
                missing.append("PUBLIC_BASE_URL must point at a public host in production")

        if self.max_file_size <= 0:
            missing.append("MAX_FILE_SIZE must be positive")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    This function is cached to avoid recreating the settings object multiple times.
    """
    return Settings()
