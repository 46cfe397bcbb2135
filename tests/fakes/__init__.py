"""
Fake Implementations for Testing.

This package provides in-memory fake implementations of the application ports
for fast, isolated testing. No database, network or API key required.

Features:
- All fakes implement the same Protocol interfaces as real implementations
- Supports seeding with test data
- Supports reset() for test isolation
- Factory functions for common test records

Usage:
    from tests.fakes import FakeMediaLookupClient, make_record

    client = FakeMediaLookupClient()
    client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])
"""
from typing import List, Optional, Union

from domain.models.exercise_media import FullRecord, PartialRecord

# Import all fake implementations
from tests.fakes.clock import ManualClock
from tests.fakes.media_lookup_client import FakeMediaLookupClient
from tests.fakes.exercise_media_cache_repository import FakeExerciseMediaCacheRepository


# =============================================================================
# Factory Functions
# =============================================================================


def make_videos(slug: str, angles=("front", "side"), genders=("male", "female")) -> List[dict]:
    """MuscleWiki-style video payloads for every angle/gender combination."""
    return [
        {
            "url": f"https://media.example.com/{slug}-{gender}-{angle}.mp4",
            "angle": angle,
            "gender": gender,
            "og_image": f"https://media.example.com/{slug}-{gender}-{angle}.jpg",
        }
        for gender in genders
        for angle in angles
    ]


def make_record(
    name: str,
    *,
    id: Optional[Union[int, str]] = None,
    partial: bool = False,
    primary_muscles: Optional[List[str]] = None,
    difficulty: Optional[str] = "Intermediate",
) -> Union[FullRecord, PartialRecord]:
    """
    Build a test record.

    Args:
        name: Exercise name
        id: Media index id
        partial: Build a PartialRecord without media instead of a FullRecord
        primary_muscles: Muscles worked
        difficulty: Difficulty as the API spells it

    Returns:
        A FullRecord with front/side videos for both genders, or a PartialRecord
    """
    slug = name.lower().replace(" ", "-")
    fields = dict(
        id=id,
        name=name,
        category="Barbell",
        difficulty=difficulty,
        mechanic="Compound",
        force="Pull",
        primary_muscles=primary_muscles or ["Back"],
        steps=[f"Perform the {name.lower()}."],
    )
    if partial:
        return PartialRecord(**fields)
    return FullRecord(media=make_videos(slug), **fields)


__all__ = [
    # Fakes
    "FakeMediaLookupClient",
    "FakeExerciseMediaCacheRepository",
    "ManualClock",
    # Factories
    "make_record",
    "make_videos",
]
