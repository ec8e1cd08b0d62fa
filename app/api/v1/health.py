"""Health check endpoint."""

import platform
import sys

from fastapi import APIRouter

from app.config import settings

router = APIRouter()

# Set by main.py during lifespan
_scheduler = None


def set_scheduler(scheduler):
    global _scheduler
    _scheduler = scheduler


@router.get("/health")
async def health_check():
    """Service health, scheduler state and remote endpoints."""
    return {
        "status": "healthy",
        "scheduler_running": bool(_scheduler and _scheduler.running),
        "app_env": settings.app_env,
        "services": settings.service_url,
        "python_version": sys.version,
        "platform": platform.platform(),
    }
