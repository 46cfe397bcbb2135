"""
Router package for the Exercise Media API.

This package contains all API routers organized by domain:
- health: Health check endpoints
- exercise_media: Exercise media resolution, video lookup and cache management
"""

from api.routers.health import router as health_router
from api.routers.exercise_media import router as exercise_media_router

__all__ = [
    "health_router",
    "exercise_media_router",
]
