from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import os
import platform
import psutil
from datetime import datetime
import logging

from ..config.database import get_db
from ..config.settings import API_VERSION, ENV, UPLOADS_DIR

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/health", tags=["health"])


@router.get("")
async def health_check():
    """Simple health check for load balancers"""
    return {"status": "ok", "timestamp": datetime.now().isoformat()}


@router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """Database reachability plus disk and memory of the host"""
    try:
        db.execute(text("SELECT 1"))
        database = {"status": "connected"}
    except SQLAlchemyError as e:
        logger.error(f"Health check database error: {str(e)}")
        database = {"status": "error", "error": str(e)}

    disk = psutil.disk_usage(UPLOADS_DIR)
    memory = psutil.virtual_memory()

    return {
        "status": "ok" if database["status"] == "connected" else "degraded",
        "timestamp": datetime.now().isoformat(),
        "environment": ENV,
        "version": API_VERSION,
        "python_version": platform.python_version(),
        "database": database,
        "uploads": {
            "path": UPLOADS_DIR,
            "exists": os.path.exists(UPLOADS_DIR),
            "writable": os.access(UPLOADS_DIR, os.W_OK),
        },
        "disk": {
            "total": f"{disk.total / (1024**3):.2f} GB",
            "free": f"{disk.free / (1024**3):.2f} GB",
            "percent": f"{disk.percent}%",
        },
        "memory": {
            "available": f"{memory.available / (1024**3):.2f} GB",
            "percent": f"{memory.percent}%",
        },
    }
