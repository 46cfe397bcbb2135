"""
Exercise media value objects.

A resolved exercise is an immutable ExerciseRecord carrying its instructional
media (one MediaVariant per camera angle and gender). Records come in two
flavours:

- PartialRecord: a search hit whose media may be incomplete
- FullRecord: a record fetched by id (or a search hit that already carried
  its media)

The lookup client tags every payload it parses; only the resolver's
enrichment step turns a PartialRecord into a FullRecord.

Examples:
    >>> record = FullRecord(
    ...     id=42,
    ...     name="Barbell Row",
    ...     difficulty="Intermediate",
    ...     media=[
    ...         {"url": "https://cdn/row-front.mp4", "angle": "front", "gender": "male"},
    ...         {"url": "https://cdn/row-dup.mp4", "angle": "front", "gender": "male"},
    ...     ],
    ... )
    >>> record.difficulty
    'intermediate'
    >>> len(record.media)
    1
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator


VideoAngle = Literal["front", "back", "side"]
VideoGender = Literal["male", "female"]

VIDEO_ANGLES = ("front", "back", "side")
VIDEO_GENDERS = ("male", "female")

DIFFICULTIES = ("novice", "intermediate", "advanced")
MECHANICS = ("isolation", "compound")
FORCES = ("push", "pull", "static")


def _lower_choice(value: Any, choices: tuple) -> Optional[str]:
    """Lower-case an enum-like string, returning None for unknown values."""
    if not isinstance(value, str):
        return None
    lowered = value.strip().lower()
    return lowered if lowered in choices else None


class MediaVariant(BaseModel):
    """One playable video for an exercise."""

    url: str = Field(..., min_length=1, description="Video URL")
    angle: VideoAngle = Field(..., description="Camera angle")
    gender: VideoGender = Field(..., description="Demonstrator gender")
    og_image: Optional[str] = Field(default=None, description="Preview image URL")

    @field_validator("angle", "gender", mode="before")
    @classmethod
    def lower_case(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def slot(self) -> tuple:
        """The (angle, gender) pair this variant occupies."""
        return (self.angle, self.gender)

    model_config = {"frozen": True}


class ExerciseRecord(BaseModel):
    """
    Canonical exercise entity resolved from the external media index.

    Records are value objects: they are never patched after creation. A
    re-resolution replaces a cache entry wholesale.
    """

    id: Optional[Union[int, str]] = Field(
        default=None, description="External index identifier"
    )
    name: str = Field(..., min_length=1, description="Canonical display name")
    category: Optional[str] = Field(
        default=None, description="Equipment or body-region grouping"
    )
    difficulty: Optional[Literal["novice", "intermediate", "advanced"]] = None
    mechanic: Optional[Literal["isolation", "compound"]] = None
    force: Optional[Literal["push", "pull", "static"]] = None
    primary_muscles: List[str] = Field(
        default_factory=list, description="Muscles worked, most salient first"
    )
    grips: List[str] = Field(default_factory=list)
    media: List[MediaVariant] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list, description="Instruction steps")

    @field_validator("category", mode="before")
    @classmethod
    def blank_category_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, v: Any) -> Optional[str]:
        return _lower_choice(v, DIFFICULTIES)

    @field_validator("mechanic", mode="before")
    @classmethod
    def normalize_mechanic(cls, v: Any) -> Optional[str]:
        return _lower_choice(v, MECHANICS)

    @field_validator("force", mode="before")
    @classmethod
    def normalize_force(cls, v: Any) -> Optional[str]:
        return _lower_choice(v, FORCES)

    @field_validator("primary_muscles", "grips", "steps", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("media", mode="before")
    @classmethod
    def drop_unplayable_media(cls, v: Any) -> Any:
        """Skip variants without a URL or with an unknown angle/gender."""
        if v is None:
            return []
        kept = []
        for item in v:
            if isinstance(item, MediaVariant):
                kept.append(item)
                continue
            if not isinstance(item, dict):
                continue
            url = item.get("url")
            angle = _lower_choice(item.get("angle"), VIDEO_ANGLES)
            gender = _lower_choice(item.get("gender"), VIDEO_GENDERS)
            if not url or angle is None or gender is None:
                continue
            kept.append({**item, "angle": angle, "gender": gender})
        return kept

    @field_validator("media")
    @classmethod
    def first_variant_per_slot(cls, v: List[MediaVariant]) -> List[MediaVariant]:
        """Keep only the first variant for each (angle, gender) pair."""
        seen = set()
        unique = []
        for variant in v:
            if variant.slot in seen:
                continue
            seen.add(variant.slot)
            unique.append(variant)
        return unique

    @property
    def has_media(self) -> bool:
        return bool(self.media)

    def video_for(
        self, angle: str = "front", gender: str = "male"
    ) -> Optional[MediaVariant]:
        """
        Pick the best video for an angle and gender.

        Falls back to any video with the same angle, then to the first video.

        Args:
            angle: Preferred camera angle
            gender: Preferred demonstrator gender

        Returns:
            The chosen MediaVariant, or None if the record has no media.
        """
        for variant in self.media:
            if variant.angle == angle and variant.gender == gender:
                return variant
        for variant in self.media:
            if variant.angle == angle:
                return variant
        return self.media[0] if self.media else None

    def videos_by_angle(self) -> Dict[str, Dict[str, Optional[str]]]:
        """Video URLs laid out as {gender: {angle: url}}; empty slots are None."""
        layout: Dict[str, Dict[str, Optional[str]]] = {
            gender: {angle: None for angle in VIDEO_ANGLES} for gender in VIDEO_GENDERS
        }
        for variant in self.media:
            layout[variant.gender][variant.angle] = variant.url
        return layout

    model_config = {"frozen": True}


class PartialRecord(ExerciseRecord):
    """Search hit whose media may be incomplete; needs a fetch by id."""

    detail: Literal["partial"] = "partial"


class FullRecord(ExerciseRecord):
    """Record with its complete media set."""

    detail: Literal["full"] = "full"
