"""Aggregate all v1 API routers."""

from fastapi import APIRouter
from app.api.v1.health import router as health_router
from app.api.v1.models_api import router as models_router
from app.api.v1.videos import router as videos_router
from app.api.v1.voices import router as voices_router

v1_router = APIRouter(prefix="/api/v1")
v1_router.include_router(health_router, tags=["health"])
v1_router.include_router(models_router, tags=["models"])
v1_router.include_router(videos_router, tags=["videos"])
v1_router.include_router(voices_router, tags=["voices"])
