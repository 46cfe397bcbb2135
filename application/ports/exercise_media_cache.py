"""
Exercise Media Cache Repository Interface (Port).

This module defines the abstract interface for the persistent cache of
resolved exercise records. Implementations may use Supabase or other backends.
Calls are synchronous; the resolver offloads them to a worker thread.
"""
from typing import Any, Dict, Iterable, Optional, Protocol

from domain.models.exercise_media import ExerciseRecord, FullRecord


class ExerciseMediaCacheRepository(Protocol):
    """
    Abstract interface for the persistent exercise media cache.

    Rows are keyed by normalized exercise name and always come back as
    FullRecord. Failures are logged by the implementation: reads return
    None or an empty result, writes return False.
    """

    def get(self, name: str) -> Optional[FullRecord]:
        """
        Get a cached record by exercise name.

        Args:
            name: Raw or normalized exercise name

        Returns:
            The cached record, or None on a miss (or a stale row)
        """
        ...

    def get_many(self, names: Iterable[str]) -> Dict[str, FullRecord]:
        """
        Get cached records for several names in one round trip.

        Args:
            names: Raw or normalized exercise names

        Returns:
            Mapping of normalized name -> record, for the names that hit
        """
        ...

    def save(self, record: ExerciseRecord, key: Optional[str] = None) -> bool:
        """
        Upsert a record.

        Args:
            record: The record to persist
            key: Name to store it under (defaults to the record's own name)

        Returns:
            True if the row was written
        """
        ...

    def save_many(self, records: Iterable[ExerciseRecord]) -> int:
        """
        Upsert several records under their own names.

        Returns:
            Number of rows written
        """
        ...

    def increment_access_count(self, name: str) -> None:
        """Bump the hit counter for a cached name."""
        ...

    def get_stats(self) -> Dict[str, Any]:
        """
        Cache statistics.

        Returns:
            Dict with "total_cached" and "most_accessed" (up to ten
            {"name", "access_count"} entries)
        """
        ...
