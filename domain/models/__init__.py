"""
Domain models for the Exercise Media API.

This package contains pure domain models that are independent of
infrastructure concerns (database, API, external services).

These models represent the core business concepts:
- ExerciseRecord: A canonical exercise with its instructional media
- PartialRecord / FullRecord: Whether a record's media set is complete
- MediaVariant: One video for a camera angle and demonstrator gender

Usage:
    >>> from domain.models import FullRecord, MediaVariant

    >>> record = FullRecord(
    ...     id=7,
    ...     name="Goblet Squat",
    ...     media=[MediaVariant(url="https://cdn/goblet.mp4", angle="front", gender="female")],
    ... )

    >>> # Serialize to JSON
    >>> json_str = record.model_dump_json(indent=2)

    >>> # Deserialize from JSON
    >>> record = FullRecord.model_validate_json(json_str)
"""

from domain.models.exercise_media import (
    ExerciseRecord,
    FullRecord,
    MediaVariant,
    PartialRecord,
    VideoAngle,
    VideoGender,
)

__all__ = [
    # Main entities
    "ExerciseRecord",
    "PartialRecord",
    "FullRecord",
    "MediaVariant",
    # Literals
    "VideoAngle",
    "VideoGender",
]
