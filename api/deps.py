"""
FastAPI Dependency Providers for the Exercise Media API.

This module provides FastAPI dependency injection functions that return
interface types (Protocols) rather than concrete implementations. This
enables clean separation of concerns and easy testing with fake implementations.

Architecture:
- Settings and Supabase client are cached per-process (lru_cache)
- The MediaResolver is a per-process singleton: its memory cache, in-flight
  map and rate limiter must be shared by every request
- Missing MuscleWiki credentials stop the app at startup (backend.main)

Usage in routers:
    from api.deps import get_media_resolver
    from backend.core.media_resolver import MediaResolver

    @router.get("/exercise-media/resolve")
    async def resolve(name: str, resolver: MediaResolver = Depends(get_media_resolver)):
        return await resolver.resolve(name)

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_media_resolver] = lambda: MediaResolver(FakeMediaLookupClient())
"""

import logging
from functools import lru_cache
from typing import Optional

from supabase import Client, create_client

# Protocol types (interfaces)
from application.ports import ExerciseMediaCacheRepository, MediaLookupClient

# Concrete implementations
from infrastructure import MuscleWikiClient, SupabaseExerciseMediaCacheRepository

from backend.core.media_resolver import MediaResolver
from backend.core.rate_limiter import RateLimiter
from backend.settings import Settings, get_settings as _get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Settings Provider
# =============================================================================


def get_settings() -> Settings:
    """
    Get application settings.

    Returns cached Settings instance from backend.settings.
    Use this as a FastAPI dependency for settings access.

    Returns:
        Settings: Application settings instance
    """
    return _get_settings()


# =============================================================================
# Supabase Client Provider
# =============================================================================


@lru_cache
def get_supabase_client() -> Optional[Client]:
    """
    Get Supabase client instance (cached).

    Creates a Supabase client using credentials from settings.
    Returns None if credentials are not configured, in which case the
    persistent media cache is disabled and only the memory cache is used.

    Returns:
        Client: Supabase client instance, or None if not configured
    """
    settings = _get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        return None

    return create_client(settings.supabase_url, settings.supabase_key)


# =============================================================================
# Repository and Client Providers
# =============================================================================


def get_media_cache_repo() -> Optional[ExerciseMediaCacheRepository]:
    """
    Get ExerciseMediaCacheRepository implementation.

    Returns:
        SupabaseExerciseMediaCacheRepository, or None if Supabase is not configured
    """
    client = get_supabase_client()
    if client is None:
        return None
    settings = _get_settings()
    return SupabaseExerciseMediaCacheRepository(
        client,
        table=settings.media_cache_table,
        ttl_days=settings.media_cache_ttl_days,
    )


def get_media_lookup_client() -> MediaLookupClient:
    """
    Get MediaLookupClient implementation.

    Raises:
        ConfigurationError: If the MuscleWiki API key is not configured
    """
    settings = _get_settings()
    return MuscleWikiClient(
        api_key=settings.musclewiki_api_key,
        api_host=settings.musclewiki_api_host,
        base_url=settings.musclewiki_base_url,
        timeout=settings.musclewiki_timeout_seconds,
    )


def build_media_resolver(
    settings: Settings,
    client: MediaLookupClient,
    cache_repo: Optional[ExerciseMediaCacheRepository] = None,
) -> MediaResolver:
    """Assemble a MediaResolver from settings and its collaborators."""
    return MediaResolver(
        client,
        cache_repo,
        rate_limiter=RateLimiter(settings.musclewiki_min_interval_seconds),
        search_limit=settings.musclewiki_search_limit,
        muscle_search_limit=settings.musclewiki_muscle_search_limit,
        batch_size=settings.media_batch_size,
        write_attempts=settings.media_cache_write_attempts,
    )


@lru_cache
def _media_resolver_singleton() -> MediaResolver:
    settings = _get_settings()
    resolver = build_media_resolver(
        settings, get_media_lookup_client(), get_media_cache_repo()
    )
    logger.info("Exercise media resolver initialized")
    return resolver


def get_media_resolver() -> MediaResolver:
    """
    Get the process-wide MediaResolver.

    Returns:
        MediaResolver: Shared resolver instance

    """
    return _media_resolver_singleton()


# =============================================================================
# Exports
# =============================================================================

__all__ = [
    # Settings
    "get_settings",
    # Database
    "get_supabase_client",
    # Repositories and clients
    "get_media_cache_repo",
    "get_media_lookup_client",
    # Resolution engine
    "build_media_resolver",
    "get_media_resolver",
]
