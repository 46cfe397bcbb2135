"""
Infrastructure Layer for the Exercise Media API.

This package contains concrete implementations of the application ports:
- db/: Supabase database implementations
- musclewiki_client: HTTP client for the MuscleWiki media index
"""

# Re-export adapters for convenient access
from infrastructure.db import SupabaseExerciseMediaCacheRepository
from infrastructure.musclewiki_client import MuscleWikiClient

__all__ = [
    "SupabaseExerciseMediaCacheRepository",
    "MuscleWikiClient",
]
