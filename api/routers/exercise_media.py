"""
Exercise media router.

This router provides endpoints for:
- Resolving free-text exercise names to records with instructional videos
- Batch resolution for a whole workout
- Video lookup by camera angle and gender
- Browsing the media index (search, filter options, lookup by id)
- Inspecting and clearing the resolution caches
"""
import logging
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query, Path
from pydantic import BaseModel, Field

from api.deps import get_media_resolver, get_settings
from backend.core.errors import LookupTransportError, LookupUnavailableError
from backend.core.media_resolver import MediaResolver
from backend.core.normalize import normalize_name
from backend.settings import Settings
from domain.models.exercise_media import ExerciseRecord, VideoAngle, VideoGender

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/exercise-media",
    tags=["Exercise Media"],
)


# =============================================================================
# Request/Response Models
# =============================================================================


class BatchResolveRequest(BaseModel):
    """Request model for resolving multiple exercise names."""
    names: List[str] = Field(
        ...,
        description="Exercise names to resolve",
        min_length=1,
        max_length=100,
    )


class VideoResponse(BaseModel):
    """One instructional video."""
    url: str
    angle: str
    gender: str
    og_image: Optional[str] = None


class ExerciseMediaResponse(BaseModel):
    """Response model for a resolved exercise."""
    id: Optional[Union[int, str]] = None
    name: str
    category: Optional[str] = None
    difficulty: Optional[str] = None
    mechanic: Optional[str] = None
    force: Optional[str] = None
    primary_muscles: List[str] = Field(default_factory=list)
    grips: List[str] = Field(default_factory=list)
    steps: List[str] = Field(default_factory=list)
    videos: List[VideoResponse] = Field(default_factory=list)
    detail: str = Field(..., description="'full' if the video set is complete, else 'partial'")

    @classmethod
    def from_record(cls, record: ExerciseRecord) -> "ExerciseMediaResponse":
        """Convert an ExerciseRecord to response model."""
        return cls(
            id=record.id,
            name=record.name,
            category=record.category,
            difficulty=record.difficulty,
            mechanic=record.mechanic,
            force=record.force,
            primary_muscles=list(record.primary_muscles),
            grips=list(record.grips),
            steps=list(record.steps),
            videos=[VideoResponse(**variant.model_dump()) for variant in record.media],
            detail=getattr(record, "detail", "partial"),
        )


class BatchResolveResponse(BaseModel):
    """Response model for batch resolution, keyed by normalized name."""
    exercises: Dict[str, ExerciseMediaResponse]
    count: int


class VideoUrlResponse(BaseModel):
    name: str
    url: str


class VideosByAngleResponse(BaseModel):
    name: str
    videos: Dict[str, Dict[str, Optional[str]]] = Field(
        ..., description="{gender: {angle: url}}; missing slots are null"
    )


class SearchResponse(BaseModel):
    exercises: List[ExerciseMediaResponse]
    count: int


class FilterOptionsResponse(BaseModel):
    muscles: List[str]
    categories: List[str]


class CacheContainsResponse(BaseModel):
    name: str
    key: str
    cached: bool


def _split_csv(value: Optional[str]) -> Optional[List[str]]:
    if not value:
        return None
    items = [item.strip() for item in value.split(",") if item.strip()]
    return items or None


def _unavailable(e: Exception) -> HTTPException:
    logger.error(f"Exercise media lookup unavailable: {e}")
    return HTTPException(
        status_code=503,
        detail="Exercise media service is temporarily unavailable. Please try again.",
    )


# =============================================================================
# Resolution Endpoints
# =============================================================================


@router.get("/resolve", response_model=ExerciseMediaResponse)
async def resolve_exercise(
    name: str = Query(..., min_length=1, description="Exercise name to resolve"),
    resolver: MediaResolver = Depends(get_media_resolver),
) -> ExerciseMediaResponse:
    """
    Resolve a free-text exercise name to its record and videos.

    Returns 404 when the media index has no matching exercise, and 503 when
    the index could not be reached at all.
    """
    try:
        record = await resolver.resolve(name)
    except LookupUnavailableError as e:
        raise _unavailable(e)

    if not record:
        raise HTTPException(status_code=404, detail=f"No exercise media found for '{name}'")
    return ExerciseMediaResponse.from_record(record)


@router.post("/resolve/batch", response_model=BatchResolveResponse)
async def resolve_exercises_batch(
    request: BatchResolveRequest,
    resolver: MediaResolver = Depends(get_media_resolver),
) -> BatchResolveResponse:
    """
    Resolve several exercise names at once (e.g. every exercise in a workout).

    Names that cannot be resolved are omitted from the result.
    """
    records = await resolver.resolve_many(request.names)
    return BatchResolveResponse(
        exercises={
            key: ExerciseMediaResponse.from_record(record)
            for key, record in records.items()
        },
        count=len(records),
    )


# =============================================================================
# Video Endpoints
# =============================================================================


@router.get("/videos", response_model=VideoUrlResponse)
async def get_video_url(
    name: str = Query(..., min_length=1),
    angle: VideoAngle = Query("front"),
    gender: VideoGender = Query("male"),
    resolver: MediaResolver = Depends(get_media_resolver),
) -> VideoUrlResponse:
    """
    Best video for an exercise, angle and gender.

    Falls back to the same angle with the other gender, then to the first video.
    """
    try:
        url = await resolver.get_video_url(name, angle=angle, gender=gender)
    except LookupUnavailableError as e:
        raise _unavailable(e)

    if url is None:
        raise HTTPException(status_code=404, detail=f"No video found for '{name}'")
    return VideoUrlResponse(name=name, url=url)


@router.get("/videos/by-angle", response_model=VideosByAngleResponse)
async def get_videos_by_angle(
    name: str = Query(..., min_length=1),
    resolver: MediaResolver = Depends(get_media_resolver),
) -> VideosByAngleResponse:
    """Every video for an exercise laid out by gender and angle."""
    try:
        layout = await resolver.get_videos_by_angle(name)
    except LookupUnavailableError as e:
        raise _unavailable(e)

    if layout is None:
        raise HTTPException(status_code=404, detail=f"No exercise media found for '{name}'")
    return VideosByAngleResponse(name=name, videos=layout)


# =============================================================================
# Browse Endpoints
# =============================================================================


@router.get("/search", response_model=SearchResponse)
async def search_exercises(
    q: str = Query(..., description="Search text (at least 2 characters to search)"),
    limit: int = Query(20, ge=1, le=100),
    muscles: Optional[str] = Query(None, description="Comma-separated muscle names"),
    categories: Optional[str] = Query(None, description="Comma-separated categories"),
    difficulty: Optional[str] = Query(None),
    force: Optional[str] = Query(None),
    resolver: MediaResolver = Depends(get_media_resolver),
) -> SearchResponse:
    """Search the media index with optional filters."""
    records = await resolver.search_exercises(
        q,
        limit=limit,
        muscles=_split_csv(muscles),
        categories=_split_csv(categories),
        difficulty=difficulty,
        force=force,
    )
    return SearchResponse(
        exercises=[ExerciseMediaResponse.from_record(r) for r in records],
        count=len(records),
    )


@router.get("/filters", response_model=FilterOptionsResponse)
async def get_filter_options(
    resolver: MediaResolver = Depends(get_media_resolver),
) -> FilterOptionsResponse:
    """Muscle and category names usable as search filters."""
    options = await resolver.get_filter_options()
    return FilterOptionsResponse(**options)


# =============================================================================
# Cache Endpoints
# =============================================================================


@router.get("/cache/stats")
async def get_cache_stats(
    resolver: MediaResolver = Depends(get_media_resolver),
):
    """Memory cache size, in-flight resolutions and persistent cache stats."""
    return {
        "memory": resolver.cache_stats(),
        "pending": resolver.pending_count,
        "persistent": await resolver.persistent_cache_stats(),
    }


@router.get("/cache/contains", response_model=CacheContainsResponse)
async def cache_contains(
    name: str = Query(..., min_length=1),
    resolver: MediaResolver = Depends(get_media_resolver),
) -> CacheContainsResponse:
    """Whether an exercise name is already in the memory cache."""
    return CacheContainsResponse(
        name=name,
        key=normalize_name(name),
        cached=resolver.is_cached(name),
    )


@router.delete("/cache/memory")
async def clear_memory_cache(
    resolver: MediaResolver = Depends(get_media_resolver),
    settings: Settings = Depends(get_settings),
):
    """
    Drop the in-process cache. The persistent cache is not touched.

    Not available in production.
    """
    if settings.is_production:
        raise HTTPException(
            status_code=403,
            detail="Clearing the media cache is not available in production",
        )
    cleared = resolver.cache_stats()["count"]
    resolver.clear_memory_cache()
    return {"cleared": cleared}


# =============================================================================
# Lookup by ID (declared last so it does not shadow the static paths)
# =============================================================================


@router.get("/{exercise_id}", response_model=ExerciseMediaResponse)
async def get_exercise_by_id(
    exercise_id: str = Path(..., description="Media index exercise id"),
    resolver: MediaResolver = Depends(get_media_resolver),
) -> ExerciseMediaResponse:
    """Fetch one exercise by its media index id."""
    lookup_id: Union[int, str] = int(exercise_id) if exercise_id.isdigit() else exercise_id
    try:
        record = await resolver.get_exercise_by_id(lookup_id)
    except LookupTransportError as e:
        raise _unavailable(e)

    if record is None:
        raise HTTPException(status_code=404, detail=f"Exercise {exercise_id} not found")
    return ExerciseMediaResponse.from_record(record)
