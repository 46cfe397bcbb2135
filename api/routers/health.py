"""
Health check router.

This router provides health check endpoints for monitoring and load balancers.
"""

import logging

from fastapi import APIRouter, Depends

from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Health"],
)


# =============================================================================
# Health Check Endpoints
# =============================================================================


@router.get("/health")
def health():
    """
    Simple liveness endpoint for the exercise media API.

    Returns:
        dict: Status indicator for health checks
    """
    return {"status": "ok"}


@router.get("/health/config")
def health_config(settings: Settings = Depends(get_settings)):
    """
    Which optional integrations are configured (never the secrets themselves).

    Returns:
        dict: Environment and integration flags
    """
    return {
        "environment": settings.environment,
        "media_lookup_configured": settings.media_lookup_configured,
        "persistent_cache_configured": bool(settings.supabase_url and settings.supabase_key),
    }
