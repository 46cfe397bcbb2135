"""
Domain layer for the Exercise Media API.

This package contains pure domain models that are independent of
infrastructure concerns (database, API, external services).
"""

from domain.models import (
    ExerciseRecord,
    FullRecord,
    MediaVariant,
    PartialRecord,
)

__all__ = [
    "ExerciseRecord",
    "FullRecord",
    "MediaVariant",
    "PartialRecord",
]
