"""Index, health and system information endpoints."""

import logging
import platform
import time
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from pwa_backend import __version__
from pwa_backend.config import PushConfig, get_push_config, get_settings
from pwa_backend.database import get_db, ping

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])

_started_at = time.monotonic()


@router.get("/")
async def index():
    """Describe the API and its endpoint groups."""
    return {
        "message": "PWA backend",
        "version": __version__,
        "endpoints": {
            "auth": "/api/auth",
            "images": "/api/images",
            "push": "/api/push",
            "notifications": "/api/notifications",
            "posts": "/api/posts",
            "users": "/api/users",
            "health": "/api/health",
            "system": "/api/system-info",
        },
    }


@router.get("/api/health")
def health_check(db: Annotated[Session, Depends(get_db)]):
    """Health check endpoint."""
    try:
        ping(db)
        database = "connected"
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        database = "disconnected"

    return {
        "success": True,
        "status": "healthy" if database == "connected" else "degraded",
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": get_settings().environment,
        "database": database,
        "uptime": round(time.monotonic() - _started_at, 3),
        "version": __version__,
    }


@router.get("/api/system-info")
async def system_info(config: Annotated[PushConfig, Depends(get_push_config)]):
    """Runtime and feature information."""
    return {
        "success": True,
        "system": {
            "pythonVersion": platform.python_version(),
            "platform": platform.system(),
            "arch": platform.machine(),
            "uptime": round(time.monotonic() - _started_at, 3),
        },
        "environment": get_settings().environment,
        "features": {
            "pushNotifications": config.is_configured,
            "userMessaging": True,
        },
    }
