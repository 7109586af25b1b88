from dotenv import load_dotenv

load_dotenv()

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .api import health, storage
from .utils.logging_config import setup_logging
from .config.settings import get_settings

# Initialize settings
settings = get_settings()

# Setup logging configuration
setup_logging(
    level=settings.log_level,
    log_file=settings.log_file
)
logger = logging.getLogger(__name__)

# Validate configuration on startup
missing_settings = settings.validate_required_settings()
if missing_settings:
    for setting in missing_settings:
        logger.error("Configuration error: %s", setting)
    if settings.is_production():
        raise RuntimeError("Invalid configuration for production environment")

app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
)

if settings.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

# Routers
app.include_router(health.router, prefix="/api", tags=["Health Check"])
app.include_router(storage.router, prefix="/storage", tags=["Public Storage"])

@app.on_event("startup")
def on_startup():
    """Make sure the resume bucket exists before serving from it."""
    logger.info("Starting %s...", settings.app_name)
    os.makedirs(settings.bucket_directory, exist_ok=True)
    logger.info("Serving public objects from %s", settings.bucket_directory)

@app.get("/")
def read_root():
    return {"message": f"Welcome to the {settings.app_name} storage API"}
