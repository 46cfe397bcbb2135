"""
Media Lookup Client Interface (Port).

Abstract interface for the external exercise media index. The production
adapter talks to the MuscleWiki API over HTTP; tests use an in-memory fake.
"""
from typing import List, Optional, Protocol, Sequence, Union

from domain.models.exercise_media import ExerciseRecord, FullRecord


class MediaLookupClient(Protocol):
    """
    Async client for the external exercise media index.

    Every method raises LookupTransportError on network failure, timeout,
    an unexpected status code or a malformed payload. Search results are
    tagged PartialRecord or FullRecord depending on whether the payload
    carried media.
    """

    async def search_by_text(self, query: str, limit: int = 5) -> List[ExerciseRecord]:
        """
        Free-text search.

        Args:
            query: Search term
            limit: Maximum results to return

        Returns:
            Matching records in the index's relevance order
        """
        ...

    async def search_by_muscle(
        self, muscle_name: str, limit: int = 20
    ) -> List[ExerciseRecord]:
        """
        Exercises whose primary muscles include the given muscle.

        Args:
            muscle_name: Muscle name as the index spells it (e.g. "Quads")
            limit: Maximum results to return

        Returns:
            Records for the muscle, in no name-related order
        """
        ...

    async def fetch_by_id(self, exercise_id: Union[int, str]) -> Optional[FullRecord]:
        """
        Fetch one exercise with its complete media set.

        Returns:
            The record, or None if the index has no such id
        """
        ...

    async def list_muscle_names(self) -> List[str]:
        """Muscle names known to the index."""
        ...

    async def list_category_names(self) -> List[str]:
        """Category names known to the index."""
        ...

    async def search(
        self,
        query: str,
        limit: int = 20,
        muscles: Optional[Sequence[str]] = None,
        categories: Optional[Sequence[str]] = None,
        difficulty: Optional[str] = None,
        force: Optional[str] = None,
    ) -> List[ExerciseRecord]:
        """
        Filtered search for browsing.

        Args:
            query: Search term
            limit: Maximum results to return
            muscles: Restrict to these muscle names
            categories: Restrict to these categories
            difficulty: Restrict to a difficulty level
            force: Restrict to a force type

        Returns:
            Matching records
        """
        ...
