"""
Health check and configuration status endpoints.
"""
import os
import logging
from typing import Dict, Any
from fastapi import APIRouter, Depends

from ..config.settings import Settings, get_settings

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", summary="Health Check")
def health_check(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """
    Basic health check endpoint.
    """
    return {
        "status": "healthy",
        "message": f"Welcome to {settings.app_name} v{settings.app_version}",
        "environment": settings.environment,
    }


@router.get("/health/detailed", summary="Detailed Health Check")
def detailed_health_check(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """
    Detailed health check with configuration and storage status.
    """
    health_status = {
        "status": "healthy",
        "app_info": {
            "name": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
            "debug": settings.debug,
            "testing": settings.testing
        },
        "storage": {
            "bucket": settings.storage_bucket,
            "bucket_directory_exists": os.path.isdir(settings.bucket_directory),
            "max_file_size": settings.max_file_size,
            "allowed_file_extensions": settings.allowed_file_extensions
        },
        "configuration": {
            "log_level": settings.log_level,
            "database_type": "sqlite" if "sqlite" in settings.database_url else "other",
            "cors_enabled": settings.cors_enabled,
            "token_expiry_minutes": settings.access_token_expire_minutes
        }
    }

    config_issues = settings.validate_required_settings()
    if config_issues:
        health_status["status"] = "degraded"
        health_status["configuration_issues"] = config_issues
        logger.warning("Configuration issues found: %s", config_issues)

    return health_status
