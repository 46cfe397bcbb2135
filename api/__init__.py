"""
API package for the Exercise Media API.

This package contains:
- deps.py: FastAPI dependency providers for DI
- routers/: API route handlers
"""

# Re-export dependency providers for convenient access
from api.deps import (
    get_settings,
    get_supabase_client,
    get_media_cache_repo,
    get_media_lookup_client,
    get_media_resolver,
)

__all__ = [
    # Settings
    "get_settings",
    # Database
    "get_supabase_client",
    # Repositories and clients
    "get_media_cache_repo",
    "get_media_lookup_client",
    # Resolution engine
    "get_media_resolver",
]
