"""
Exercise media resolution facade.

MediaResolver turns a free-text exercise name into an ExerciseRecord with
instructional media while keeping calls to the rate-limited, metered media
index to a minimum:

    memory cache -> persistent cache -> coalesced lookup

A lookup tries each search term from the AliasExpander (ranked with the strict
matcher), then falls back to a muscle-filtered search (ranked with the lenient
matcher). A matched PartialRecord is enriched with one fetch by id. Results
are written to the memory cache immediately and to the persistent cache in a
background task whose failure never reaches the caller.

One instance is built per process (see api.deps.get_media_resolver); its
caches, pending map and rate limiter are shared by every request.
"""
import asyncio
import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Sequence,
    Union,
)

from starlette.concurrency import run_in_threadpool

from application.ports import ExerciseMediaCacheRepository, MediaLookupClient
from backend.core.aliases import AliasExpander
from backend.core.coalescer import RequestCoalescer
from backend.core.errors import NOT_FOUND, LookupTransportError, LookupUnavailableError
from backend.core.media_matcher import match_lenient, match_strict
from backend.core.memory_cache import MemoryCache
from backend.core.muscle_mapper import MuscleGroupMapper
from backend.core.normalize import normalize_name
from backend.core.rate_limiter import RateLimiter
from backend.core.retry import create_write_retry
from domain.models.exercise_media import ExerciseRecord, FullRecord, MediaVariant

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_LIMIT = 5
DEFAULT_MUSCLE_SEARCH_LIMIT = 20
DEFAULT_BATCH_SIZE = 5
MIN_SEARCH_QUERY_LENGTH = 2

DEFAULT_FILTER_MUSCLES = [
    "chest", "back", "shoulders", "biceps", "triceps", "forearms",
    "abs", "quads", "hamstrings", "glutes", "calves",
]
DEFAULT_FILTER_CATEGORIES = [
    "barbell", "dumbbell", "cable", "machine", "bodyweight", "kettlebell", "band",
]


class AttemptLog:
    """Outcome counts for the lookup calls made while resolving one name."""

    def __init__(self):
        self.succeeded = 0
        self.failed = 0

    @property
    def total(self) -> int:
        return self.succeeded + self.failed

    @property
    def all_failed(self) -> bool:
        return self.total > 0 and self.succeeded == 0


Strategy = Callable[[str, AttemptLog], Awaitable[Optional[ExerciseRecord]]]


class MediaResolver:
    """Resolves exercise names to records with media, with caching and coalescing."""

    def __init__(
        self,
        client: MediaLookupClient,
        cache_repo: Optional[ExerciseMediaCacheRepository] = None,
        alias_expander: Optional[AliasExpander] = None,
        muscle_mapper: Optional[MuscleGroupMapper] = None,
        rate_limiter: Optional[RateLimiter] = None,
        search_limit: int = DEFAULT_SEARCH_LIMIT,
        muscle_search_limit: int = DEFAULT_MUSCLE_SEARCH_LIMIT,
        batch_size: int = DEFAULT_BATCH_SIZE,
        write_attempts: int = 3,
        write_min_wait_seconds: float = 0.5,
        write_max_wait_seconds: float = 5.0,
    ):
        """
        Args:
            client: External media index client
            cache_repo: Persistent cache (None disables persistence)
            alias_expander: Search-term expander (bundled aliases by default)
            muscle_mapper: Muscle inference for the fallback search
            rate_limiter: Shared outbound limiter (0.2s spacing by default)
            search_limit: Results requested per text search
            muscle_search_limit: Results requested per muscle search
            batch_size: Names resolved concurrently by resolve_many
            write_attempts: Attempts per persistent cache write
            write_min_wait_seconds: First backoff between write attempts
            write_max_wait_seconds: Backoff ceiling between write attempts
        """
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        self._client = client
        self._cache_repo = cache_repo
        self._aliases = alias_expander or AliasExpander()
        self._mapper = muscle_mapper or MuscleGroupMapper()
        self._rate_limiter = rate_limiter or RateLimiter()
        self._search_limit = search_limit
        self._muscle_search_limit = muscle_search_limit
        self._batch_size = batch_size

        self._memory = MemoryCache()
        self._coalescer: RequestCoalescer = RequestCoalescer()
        self._background: set = set()
        self._filter_options: Optional[Dict[str, List[str]]] = None

        self._strategies: List[Strategy] = [
            self._search_aliases,
            self._search_by_muscle,
        ]
        self._save_with_retry = create_write_retry(
            max_attempts=write_attempts,
            min_wait_seconds=write_min_wait_seconds,
            max_wait_seconds=write_max_wait_seconds,
        )(self._save_once)

    # =========================================================================
    # Resolution
    # =========================================================================

    async def resolve(self, raw_name: str) -> Union[ExerciseRecord, Any]:
        """
        Resolve an exercise name to its record.

        Args:
            raw_name: Exercise name as written by the user or a generator

        Returns:
            The ExerciseRecord, or NOT_FOUND if nothing matched

        Raises:
            LookupUnavailableError: If every lookup attempt failed in transport
        """
        key = normalize_name(raw_name)
        if not key:
            return NOT_FOUND

        cached = self._memory.get(key)
        if cached is not None:
            logger.debug(f"Memory cache hit for '{key}'")
            return cached

        persisted = await self._read_persistent(key)
        if persisted is not None:
            logger.debug(f"Persistent cache hit for '{key}'")
            self._memory.put_under_names(persisted, key)
            self._spawn(self._touch(key))
            return persisted

        return await self._resolve_coalesced(raw_name, key)

    async def _resolve_coalesced(self, raw_name: str, key: str):
        return await self._coalescer.run_exclusive(
            key, lambda: self._resolve_uncached(raw_name, key)
        )

    async def _resolve_uncached(self, raw_name: str, key: str):
        # A run that finished just before this one started may have filled it.
        cached = self._memory.get(key)
        if cached is not None:
            return cached

        attempts = AttemptLog()
        for strategy in self._strategies:
            match = await strategy(raw_name, attempts)
            if match is None:
                continue
            record = await self._enrich(match)
            self._remember(key, record)
            logger.info(f"Resolved '{raw_name}' to '{record.name}'")
            return record

        if attempts.all_failed:
            logger.error(
                f"Media lookup unavailable for '{raw_name}': "
                f"{attempts.failed} attempts failed"
            )
            raise LookupUnavailableError(raw_name, attempts.failed)

        logger.info(f"No exercise media found for '{raw_name}'")
        return NOT_FOUND

    async def _lookup(
        self,
        attempts: AttemptLog,
        call: Callable[..., Awaitable[List[ExerciseRecord]]],
        *args: Any,
    ) -> List[ExerciseRecord]:
        """One rate-limited lookup call; a transport error counts as no results."""
        await self._rate_limiter.wait()
        try:
            results = await call(*args)
        except LookupTransportError as e:
            attempts.failed += 1
            logger.warning(f"Lookup {getattr(call, '__name__', 'call')}{args!r} failed: {e}")
            return []
        attempts.succeeded += 1
        return results

    async def _search_aliases(
        self, raw_name: str, attempts: AttemptLog
    ) -> Optional[ExerciseRecord]:
        for term in self._aliases.expand(raw_name):
            logger.debug(f"Searching media index for '{term}'")
            candidates = await self._lookup(
                attempts, self._client.search_by_text, term, self._search_limit
            )
            match = match_strict(term, candidates)
            if match is not None:
                return match
        return None

    async def _search_by_muscle(
        self, raw_name: str, attempts: AttemptLog
    ) -> Optional[ExerciseRecord]:
        muscle = self._mapper.infer_primary_muscle(raw_name)
        if muscle is None:
            logger.debug(f"No muscle group inferred for '{raw_name}'")
            return None

        for muscle_name in self._mapper.external_muscle_names(muscle):
            logger.debug(f"Muscle fallback for '{raw_name}': searching '{muscle_name}'")
            candidates = await self._lookup(
                attempts,
                self._client.search_by_muscle,
                muscle_name,
                self._muscle_search_limit,
            )
            if candidates:
                return match_lenient(raw_name, candidates)
        return None

    async def _enrich(self, record: ExerciseRecord) -> ExerciseRecord:
        """Upgrade a PartialRecord with one fetch by id; keep it if that fails."""
        if isinstance(record, FullRecord) or record.id is None:
            return record

        await self._rate_limiter.wait()
        try:
            full = await self._client.fetch_by_id(record.id)
        except LookupTransportError as e:
            logger.warning(f"Could not enrich '{record.name}' (id={record.id}): {e}")
            return record
        return full if full is not None else record

    # =========================================================================
    # Batch resolution
    # =========================================================================

    async def resolve_many(self, names: Iterable[str]) -> Dict[str, ExerciseRecord]:
        """
        Resolve several names, keyed by normalized name.

        Memory is checked first, then the persistent cache in one query; the
        rest are resolved in batches of ``batch_size``, concurrently within a
        batch. Names that are not found or whose lookup failed are omitted.

        Args:
            names: Exercise names; duplicates (by normalized name) resolve once

        Returns:
            Mapping of normalized name -> record, in first-seen order
        """
        raw_by_key: Dict[str, str] = {}
        for name in names:
            key = normalize_name(name)
            if key and key not in raw_by_key:
                raw_by_key[key] = name

        found: Dict[str, ExerciseRecord] = {}
        missing: List[str] = []
        for key in raw_by_key:
            cached = self._memory.get(key)
            if cached is not None:
                found[key] = cached
            else:
                missing.append(key)

        if missing and self._cache_repo is not None:
            persisted = await self._read_persistent_many(missing)
            for key in missing:
                record = persisted.get(key)
                if record is not None:
                    self._memory.put(key, record)
                    found[key] = record

        uncached = [key for key in missing if key not in found]
        if uncached:
            logger.info(
                f"Resolving {len(uncached)} uncached exercises "
                f"in batches of {self._batch_size}"
            )
        for start in range(0, len(uncached), self._batch_size):
            batch = uncached[start:start + self._batch_size]
            outcomes = await asyncio.gather(
                *(self._resolve_coalesced(raw_by_key[key], key) for key in batch),
                return_exceptions=True,
            )
            for key, outcome in zip(batch, outcomes):
                if isinstance(outcome, Exception):
                    logger.warning(f"Batch resolution of '{key}' failed: {outcome}")
                    continue
                if isinstance(outcome, BaseException):
                    raise outcome
                if outcome is NOT_FOUND:
                    continue
                found[key] = outcome

        return {key: found[key] for key in raw_by_key if key in found}

    # =========================================================================
    # Media helpers
    # =========================================================================

    async def get_videos(self, raw_name: str) -> Optional[List[MediaVariant]]:
        record = await self.resolve(raw_name)
        return list(record.media) if record else None

    async def get_video_url(
        self, raw_name: str, angle: str = "front", gender: str = "male"
    ) -> Optional[str]:
        """
        Best video URL for an exercise.

        Prefers the exact angle and gender, then the same angle, then the
        first video.
        """
        record = await self.resolve(raw_name)
        if not record:
            return None
        variant = record.video_for(angle, gender)
        return variant.url if variant else None

    async def get_videos_by_angle(
        self, raw_name: str
    ) -> Optional[Dict[str, Dict[str, Optional[str]]]]:
        record = await self.resolve(raw_name)
        return record.videos_by_angle() if record else None

    async def search_exercises(
        self,
        query: str,
        limit: int = 20,
        muscles: Optional[Sequence[str]] = None,
        categories: Optional[Sequence[str]] = None,
        difficulty: Optional[str] = None,
        force: Optional[str] = None,
    ) -> List[ExerciseRecord]:
        """
        Filtered search for browsing the media index.

        Results carrying media are cached under their own names (memory now,
        persistent in the background) so picking one later is a cache hit.

        Returns:
            Matching records; empty for queries under two characters or when
            the index is unreachable
        """
        query = (query or "").strip()
        if len(query) < MIN_SEARCH_QUERY_LENGTH:
            return []

        await self._rate_limiter.wait()
        try:
            results = await self._client.search(
                query,
                limit=limit,
                muscles=muscles,
                categories=categories,
                difficulty=difficulty,
                force=force,
            )
        except LookupTransportError as e:
            logger.warning(f"Exercise search '{query}' failed: {e}")
            return []

        full = [r for r in results if isinstance(r, FullRecord)]
        for record in full:
            self._memory.put(record.name, record)
        if full and self._cache_repo is not None:
            self._spawn(self._persist_many(full))
        return results

    async def get_exercise_by_id(
        self, exercise_id: Union[int, str]
    ) -> Optional[FullRecord]:
        """
        Fetch one exercise by its index id and cache it under its own name.

        Raises:
            LookupTransportError: If the index is unreachable
        """
        await self._rate_limiter.wait()
        record = await self._client.fetch_by_id(exercise_id)
        if record is not None:
            self._remember(normalize_name(record.name), record)
        return record

    async def get_filter_options(self) -> Dict[str, List[str]]:
        """
        Muscle and category names for search filters.

        Falls back to fixed default lists when the index returns nothing or
        is unreachable. Lists fetched from the index are kept for the process
        lifetime.
        """
        if self._filter_options is not None:
            return self._filter_options

        muscles = await self._fetch_names(self._client.list_muscle_names)
        categories = await self._fetch_names(self._client.list_category_names)
        options = {
            "muscles": muscles or list(DEFAULT_FILTER_MUSCLES),
            "categories": categories or list(DEFAULT_FILTER_CATEGORIES),
        }
        if muscles and categories:
            self._filter_options = options
        return options

    async def _fetch_names(
        self, call: Callable[[], Awaitable[List[str]]]
    ) -> List[str]:
        await self._rate_limiter.wait()
        try:
            return await call()
        except LookupTransportError as e:
            logger.warning(f"Could not load filter options ({getattr(call, '__name__', 'call')}): {e}")
            return []

    # =========================================================================
    # Cache management
    # =========================================================================

    def is_cached(self, raw_name: str) -> bool:
        """True if the name is in the memory cache."""
        return self._memory.contains(raw_name)

    def cache_stats(self) -> Dict[str, int]:
        return {"count": len(self._memory)}

    def clear_memory_cache(self) -> None:
        """Drop every memory cache entry; the persistent cache is untouched."""
        count = len(self._memory)
        self._memory.clear()
        logger.info(f"Cleared {count} entries from the exercise media memory cache")

    @property
    def pending_count(self) -> int:
        """Resolutions currently in flight."""
        return self._coalescer.pending_count

    async def persistent_cache_stats(self) -> Optional[Dict[str, Any]]:
        if self._cache_repo is None:
            return None
        return await run_in_threadpool(self._cache_repo.get_stats)

    async def flush_pending_writes(self) -> None:
        """Wait for every background cache task started so far."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # =========================================================================
    # Persistent cache plumbing
    # =========================================================================

    def _remember(self, key: str, record: ExerciseRecord) -> None:
        self._memory.put_under_names(record, key)
        if self._cache_repo is None or not isinstance(record, FullRecord):
            return
        keys = [key]
        own_key = normalize_name(record.name)
        if own_key and own_key != key:
            keys.append(own_key)
        self._spawn(self._persist(record, keys))

    def _spawn(self, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _read_persistent(self, key: str) -> Optional[FullRecord]:
        if self._cache_repo is None:
            return None
        try:
            return await run_in_threadpool(self._cache_repo.get, key)
        except Exception as e:
            logger.warning(f"Persistent cache read failed for '{key}': {e}")
            return None

    async def _read_persistent_many(self, keys: List[str]) -> Dict[str, FullRecord]:
        try:
            return await run_in_threadpool(self._cache_repo.get_many, keys)
        except Exception as e:
            logger.warning(f"Persistent cache batch read failed: {e}")
            return {}

    def _save_once(self, record: ExerciseRecord, key: str) -> bool:
        return self._cache_repo.save(record, key)

    async def _persist(self, record: ExerciseRecord, keys: List[str]) -> None:
        for key in keys:
            try:
                saved = await run_in_threadpool(self._save_with_retry, record, key)
            except Exception as e:
                saved = False
                logger.warning(f"Persistent cache write failed for '{key}': {e}")
            if not saved:
                logger.warning(f"'{record.name}' was not saved to the persistent cache as '{key}'")

    async def _persist_many(self, records: List[FullRecord]) -> None:
        try:
            await run_in_threadpool(self._cache_repo.save_many, records)
        except Exception as e:
            logger.warning(f"Persistent cache batch write failed: {e}")

    async def _touch(self, key: str) -> None:
        try:
            await run_in_threadpool(self._cache_repo.increment_access_count, key)
        except Exception as e:
            logger.debug(f"Access count update failed for '{key}': {e}")
