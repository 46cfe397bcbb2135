"""
Repository and Client Interfaces (Ports) for the Exercise Media API.

This package defines abstract interfaces that decouple the resolution engine
from infrastructure (database, external services). Implementations are
provided in the infrastructure layer.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the engine needs)
- Adapters: Concrete implementations in infrastructure/ (how it's provided)

Usage:
    from application.ports import ExerciseMediaCacheRepository, MediaLookupClient

    class MediaResolver:
        def __init__(self, client: MediaLookupClient, cache_repo: ExerciseMediaCacheRepository):
            ...
"""

# Persistent media cache
from application.ports.exercise_media_cache import ExerciseMediaCacheRepository

# External media index
from application.ports.media_lookup_client import MediaLookupClient

__all__ = [
    "ExerciseMediaCacheRepository",
    "MediaLookupClient",
]
