"""
Infrastructure Database Layer.

This package provides Supabase-backed implementations of the repository
interfaces defined in application.ports. These implementations can be injected
into services and routers for clean separation of concerns and testability.

Usage:
    from supabase import create_client
    from infrastructure.db import SupabaseExerciseMediaCacheRepository

    # Create Supabase client
    client = create_client(SUPABASE_URL, SUPABASE_KEY)

    # Instantiate repository with injected client
    cache_repo = SupabaseExerciseMediaCacheRepository(client, ttl_days=30)
"""

from infrastructure.db.exercise_media_cache_repository import (
    SupabaseExerciseMediaCacheRepository,
)

__all__ = [
    # Persistent exercise media cache
    "SupabaseExerciseMediaCacheRepository",
]
