"""
Public read access to stored resume objects.

Serves the URLs handed out by the local gateway's ``resolve_public_url``.
"""
import logging
import os
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from ..config.settings import Settings, get_settings
from ..gateway.local import bucket_file_path

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/{bucket}/{object_path:path}", summary="Download Public Object")
def read_public_object(bucket: str, object_path: str, settings: Settings = Depends(get_settings)):
    if bucket != settings.storage_bucket:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Bucket not found")
    try:
        file_path = bucket_file_path(settings.bucket_directory, object_path)
    except ValueError:
        logger.warning("Rejected object path %r", object_path)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    if not os.path.isfile(file_path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    return FileResponse(file_path, filename=os.path.basename(file_path))
