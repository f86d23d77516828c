from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
import logging

from ..core.security import get_current_user
from ..models.user import User
from ..utils.media import IMAGE_POLICY, store_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["upload"])

# Upload kind -> directory under UPLOADS_DIR
UPLOAD_DIRECTORIES = {
    "event": "events",
    "professor": "professors",
    "resource": "resources",
    "course": "courses",
}


@router.post("")
async def upload_image(
    type: str = Query("event"),
    image: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
):
    """Store one image and return its public URL"""
    subdir = UPLOAD_DIRECTORIES.get(type)
    if subdir is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"type must be one of: {', '.join(UPLOAD_DIRECTORIES)}",
        )

    stored = await store_upload(image, subdir, IMAGE_POLICY)
    logger.info(f"User {current_user.id} uploaded {stored['url']}")
    return stored
