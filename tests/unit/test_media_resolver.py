"""
Unit tests for MediaResolver.

Covers the cache tiers, alias and muscle fallbacks, enrichment, request
coalescing, rate limiting, failure handling and batch resolution, using the
in-memory fakes from tests.fakes.
"""
import asyncio

import pytest

from backend.core.errors import NOT_FOUND, LookupUnavailableError
from backend.core.media_resolver import (
    DEFAULT_FILTER_CATEGORIES,
    DEFAULT_FILTER_MUSCLES,
    MediaResolver,
)
from backend.core.rate_limiter import RateLimiter
from domain.models.exercise_media import FullRecord, PartialRecord
from tests.fakes import (
    FakeExerciseMediaCacheRepository,
    FakeMediaLookupClient,
    ManualClock,
    make_record,
)


# =============================================================================
# Basic resolution and cache tiers
# =============================================================================


@pytest.mark.unit
class TestResolve:
    """Tests for MediaResolver.resolve."""

    @pytest.mark.asyncio
    async def test_resolves_text_search_hit(self, resolver, fake_client):
        fake_client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])

        record = await resolver.resolve("Goblet Squat")

        assert isinstance(record, FullRecord)
        assert record.name == "Goblet Squat"
        assert fake_client.calls == [("text", "Goblet Squat")]

    @pytest.mark.asyncio
    async def test_blank_name_is_not_found_without_calls(self, resolver, fake_client):
        assert await resolver.resolve("   ") is NOT_FOUND
        assert await resolver.resolve("?!") is NOT_FOUND
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_idempotent_second_call_hits_memory(self, resolver, fake_client, fake_cache_repo):
        fake_client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])

        first = await resolver.resolve("Goblet Squat")
        calls_after_first = list(fake_client.calls)
        reads_after_first = list(fake_cache_repo.get_calls)
        second = await resolver.resolve("Goblet Squat")

        assert second == first
        assert fake_client.calls == calls_after_first
        assert fake_cache_repo.get_calls == reads_after_first

    @pytest.mark.asyncio
    async def test_normalization_equivalence(self, resolver, fake_client):
        fake_client.seed_text("EZ-Bar Curl", [make_record("EZ Bar Curl", id=5)])

        first = await resolver.resolve("EZ-Bar Curl")
        second = await resolver.resolve("ez bar curl")
        third = await resolver.resolve("  Ez-Bar   Curl ")

        assert first == second == third
        assert len(fake_client.calls) == 1

    @pytest.mark.asyncio
    async def test_persistent_hit_skips_lookup(self, resolver, fake_client, fake_cache_repo):
        fake_cache_repo.seed("Barbell Row", make_record("Barbell Row", id=2))

        record = await resolver.resolve("barbell row")
        await resolver.flush_pending_writes()

        assert record.name == "Barbell Row"
        assert isinstance(record, FullRecord)
        assert fake_client.calls == []
        assert resolver.is_cached("Barbell Row")
        assert fake_cache_repo.access_count("barbell row") == 2

    @pytest.mark.asyncio
    async def test_persistent_read_failure_falls_through_to_lookup(self, make_resolver, fake_client):
        repo = FakeExerciseMediaCacheRepository(fail_reads=True)
        resolver = make_resolver(cache_repo=repo)
        fake_client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])

        record = await resolver.resolve("Goblet Squat")

        assert record.name == "Goblet Squat"

    @pytest.mark.asyncio
    async def test_works_without_persistent_cache(self, make_resolver, fake_client):
        resolver = make_resolver(cache_repo=None)
        fake_client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])

        assert (await resolver.resolve("Goblet Squat")).name == "Goblet Squat"
        assert resolver.is_cached("goblet squat")


# =============================================================================
# Fallback chain
# =============================================================================


@pytest.mark.unit
class TestFallbacks:
    """Tests for alias and muscle fallbacks."""

    @pytest.mark.asyncio
    async def test_alias_fallback_order(self, resolver, fake_client):
        """Scenario A: the alias term finds the record; no muscle search happens."""
        fake_client.seed_text("T Bar Row", [make_record("T Bar Row", id=11)])

        record = await resolver.resolve("Chest-Supported T-Bar Row")

        assert record.name == "T Bar Row"
        assert fake_client.calls_of("text") == ["Chest-Supported T-Bar Row", "T Bar Row"]
        assert fake_client.calls_of("muscle") == []

    @pytest.mark.asyncio
    async def test_alias_result_cached_under_query_and_own_name(self, resolver, fake_client, fake_cache_repo):
        fake_client.seed_text("T Bar Row", [make_record("T Bar Row", id=11)])

        await resolver.resolve("Chest-Supported T-Bar Row")
        await resolver.flush_pending_writes()

        assert resolver.is_cached("Chest-Supported T-Bar Row")
        assert resolver.is_cached("T Bar Row")
        assert fake_cache_repo.keys() == ["chest supported t bar row", "t bar row"]

    @pytest.mark.asyncio
    async def test_unrelated_muscle_results_are_not_found(self, resolver, fake_client):
        """Scenario B: no core-word overlap means NOT_FOUND, not an arbitrary squat."""
        fake_client.seed_muscle(
            "Quads",
            [
                make_record("Goblet Squat", id=1),
                make_record("Hack Squat", id=2),
                make_record("Front Squat", id=3),
            ],
        )

        result = await resolver.resolve("Zercher Squat")

        assert result is NOT_FOUND
        assert not result
        assert fake_client.calls_of("text") == ["Zercher Squat"]
        assert fake_client.calls_of("muscle") == ["Quads"]

    @pytest.mark.asyncio
    async def test_muscle_fallback_finds_related_name(self, resolver, fake_client):
        fake_client.seed_muscle(
            "Quads",
            [make_record("Hack Squat", id=2), make_record("Zercher Squat Hold", id=7)],
        )

        record = await resolver.resolve("Zercher Squat")

        assert record.name == "Zercher Squat Hold"

    @pytest.mark.asyncio
    async def test_muscle_names_tried_until_one_has_results(self, resolver, fake_client):
        fake_client.seed_muscle("Mid back", [make_record("Seal Row", id=4)])

        record = await resolver.resolve("Seal Row Variation")

        assert record.name == "Seal Row"
        assert fake_client.calls_of("muscle") == ["Lats", "Mid back"]

    @pytest.mark.asyncio
    async def test_no_muscle_inferred_is_not_found(self, resolver, fake_client):
        assert await resolver.resolve("Turkish Get Up") is NOT_FOUND
        assert fake_client.calls_of("muscle") == []

    @pytest.mark.asyncio
    async def test_not_found_is_not_cached(self, resolver, fake_client):
        await resolver.resolve("Turkish Get Up")
        await resolver.resolve("Turkish Get Up")

        assert not resolver.is_cached("Turkish Get Up")
        assert fake_client.calls_of("text") == ["Turkish Get Up", "Turkish Get Up"]


# =============================================================================
# Enrichment
# =============================================================================


@pytest.mark.unit
class TestEnrichment:
    """Tests for upgrading PartialRecord hits."""

    @pytest.mark.asyncio
    async def test_partial_hit_enriched_by_id(self, resolver, fake_client, fake_cache_repo):
        fake_client.seed_text("Pendlay Row", [make_record("Pendlay Row", id=21, partial=True)])
        fake_client.seed_id(make_record("Pendlay Row", id=21))

        record = await resolver.resolve("Pendlay Row")
        await resolver.flush_pending_writes()

        assert isinstance(record, FullRecord)
        assert record.has_media
        assert fake_client.calls_of("id") == [21]
        assert fake_cache_repo.keys() == ["pendlay row"]

    @pytest.mark.asyncio
    async def test_full_hit_not_refetched(self, resolver, fake_client):
        fake_client.seed_text("Pendlay Row", [make_record("Pendlay Row", id=21)])

        await resolver.resolve("Pendlay Row")

        assert fake_client.calls_of("id") == []

    @pytest.mark.asyncio
    async def test_failed_enrichment_keeps_partial_in_memory_only(self, resolver, fake_client, fake_cache_repo):
        fake_client.seed_text("Pendlay Row", [make_record("Pendlay Row", id=21, partial=True)])
        fake_client.fail_on("21")

        record = await resolver.resolve("Pendlay Row")
        await resolver.flush_pending_writes()

        assert isinstance(record, PartialRecord)
        assert resolver.is_cached("Pendlay Row")
        assert fake_cache_repo.save_calls == []


# =============================================================================
# Concurrency
# =============================================================================


@pytest.mark.unit
class TestConcurrency:
    """Tests for coalescing and rate limiting."""

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_lookup(self, make_resolver):
        client = FakeMediaLookupClient(delay=0.05)
        client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])
        resolver = make_resolver(client=client)

        results = await asyncio.gather(*(resolver.resolve("Goblet Squat") for _ in range(10)))

        assert len({r.name for r in results}) == 1
        assert client.calls == [("text", "Goblet Squat")]
        assert resolver.pending_count == 0

    @pytest.mark.asyncio
    async def test_concurrent_spellings_coalesce(self, make_resolver):
        client = FakeMediaLookupClient(delay=0.05)
        client.seed_text("EZ-Bar Curl", [make_record("EZ Bar Curl", id=5)])
        resolver = make_resolver(client=client)

        await asyncio.gather(
            resolver.resolve("EZ-Bar Curl"),
            resolver.resolve("ez bar curl"),
            resolver.resolve("EZ BAR CURL"),
        )

        assert len(client.calls) == 1

    @pytest.mark.asyncio
    async def test_outbound_calls_are_rate_limited(self, make_resolver, fake_client):
        interval = 0.25
        clock = ManualClock()
        fake_client.clock = clock
        names = [f"Test Exercise {i}" for i in range(20)]
        for i, name in enumerate(names):
            fake_client.seed_text(name, [make_record(name, id=i)])
        resolver = make_resolver(
            rate_limiter=RateLimiter(interval, clock=clock, sleep=clock.sleep)
        )

        await asyncio.gather(*(resolver.resolve(name) for name in names))

        stamps = sorted(fake_client.call_times)
        gaps = [b - a for a, b in zip(stamps, stamps[1:])]
        assert len(stamps) == 20
        assert all(gap >= interval for gap in gaps)
        assert stamps[-1] - stamps[0] == interval * 19


# =============================================================================
# Failures
# =============================================================================


@pytest.mark.unit
class TestFailures:
    """Tests for transport and cache failures."""

    @pytest.mark.asyncio
    async def test_all_attempts_failing_raises_unavailable(self, resolver, fake_client):
        fake_client.fail_everything()

        with pytest.raises(LookupUnavailableError) as exc_info:
            await resolver.resolve("Zercher Squat")

        # One text search plus one muscle search
        assert exc_info.value.failed_attempts == 2
        assert resolver.pending_count == 0

    @pytest.mark.asyncio
    async def test_single_failed_attempt_continues_chain(self, resolver, fake_client):
        fake_client.fail_on("Chest-Supported T-Bar Row")
        fake_client.seed_text("T Bar Row", [make_record("T Bar Row", id=11)])

        record = await resolver.resolve("Chest-Supported T-Bar Row")

        assert record.name == "T Bar Row"

    @pytest.mark.asyncio
    async def test_partial_failures_with_no_match_are_not_found(self, resolver, fake_client):
        fake_client.fail_on("Zercher Squat")

        assert await resolver.resolve("Zercher Squat") is NOT_FOUND

    @pytest.mark.asyncio
    async def test_cache_write_failure_is_swallowed(self, make_resolver, fake_client):
        repo = FakeExerciseMediaCacheRepository(fail_writes=True)
        resolver = make_resolver(cache_repo=repo)
        fake_client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])

        record = await resolver.resolve("Goblet Squat")
        await resolver.flush_pending_writes()

        assert record.name == "Goblet Squat"
        assert resolver.is_cached("Goblet Squat")
        # Two attempts per write
        assert repo.save_calls == ["goblet squat", "goblet squat"]

    @pytest.mark.asyncio
    async def test_unavailable_error_shared_by_coalesced_callers(self, make_resolver):
        client = FakeMediaLookupClient(delay=0.02)
        client.fail_everything()
        resolver = make_resolver(client=client)

        results = await asyncio.gather(
            *(resolver.resolve("Goblet Squat") for _ in range(3)),
            return_exceptions=True,
        )

        assert all(isinstance(r, LookupUnavailableError) for r in results)
        assert client.calls_of("text") == ["Goblet Squat"]


# =============================================================================
# Batch resolution
# =============================================================================


@pytest.mark.unit
class TestResolveMany:
    """Tests for MediaResolver.resolve_many."""

    @pytest.mark.asyncio
    async def test_mixed_tiers(self, resolver, fake_client, fake_cache_repo):
        fake_client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])
        fake_client.seed_text("Pendlay Row", [make_record("Pendlay Row", id=2)])
        fake_cache_repo.seed("Barbell Row", make_record("Barbell Row", id=3))
        await resolver.resolve("Goblet Squat")
        fake_client.reset()

        results = await resolver.resolve_many(
            ["Goblet Squat", "Barbell Row", "Pendlay Row", "Turkish Get Up"]
        )

        assert list(results) == ["goblet squat", "barbell row", "pendlay row"]
        assert fake_client.calls_of("text") == ["Pendlay Row", "Turkish Get Up"]
        assert len(fake_cache_repo.get_many_calls) == 1
        assert fake_cache_repo.get_many_calls[0] == ["barbell row", "pendlay row", "turkish get up"]

    @pytest.mark.asyncio
    async def test_duplicates_resolved_once(self, resolver, fake_client):
        fake_client.seed_text("EZ-Bar Curl", [make_record("EZ Bar Curl", id=5)])

        results = await resolver.resolve_many(["EZ-Bar Curl", "ez bar curl", "EZ BAR CURL", ""])

        assert list(results) == ["ez bar curl"]
        assert len(fake_client.calls) == 1

    @pytest.mark.asyncio
    async def test_failed_names_omitted(self, resolver, fake_client):
        fake_client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])
        fake_client.fail_on("Zercher Squat", "Quads")

        results = await resolver.resolve_many(["Zercher Squat", "Goblet Squat"])

        assert list(results) == ["goblet squat"]

    @pytest.mark.asyncio
    async def test_batches_are_sequential(self, make_resolver):
        client = FakeMediaLookupClient(delay=0.01)
        names = [f"Test Exercise {i}" for i in range(7)]
        for i, name in enumerate(names):
            client.seed_text(name, [make_record(name, id=i)])
        resolver = make_resolver(client=client, batch_size=3)
        in_flight = []
        original = resolver._resolve_coalesced

        async def tracking(raw_name, key):
            in_flight.append(resolver.pending_count)
            return await original(raw_name, key)

        resolver._resolve_coalesced = tracking

        results = await resolver.resolve_many(names)

        assert len(results) == 7
        assert max(in_flight) <= 3

    @pytest.mark.asyncio
    async def test_empty_input(self, resolver, fake_client):
        assert await resolver.resolve_many([]) == {}
        assert fake_client.calls == []

    def test_invalid_batch_size(self, fake_client):
        with pytest.raises(ValueError):
            MediaResolver(fake_client, batch_size=0)


# =============================================================================
# Media helpers and cache management
# =============================================================================


@pytest.mark.unit
class TestMediaHelpers:
    @pytest.mark.asyncio
    async def test_get_video_url_prefers_exact_slot(self, resolver, fake_client):
        fake_client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])

        url = await resolver.get_video_url("Goblet Squat", angle="side", gender="female")

        assert url == "https://media.example.com/goblet-squat-female-side.mp4"

    @pytest.mark.asyncio
    async def test_get_video_url_angle_fallback(self, resolver, fake_client):
        fake_client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])

        url = await resolver.get_video_url("Goblet Squat", angle="back", gender="male")

        assert url == "https://media.example.com/goblet-squat-male-front.mp4"

    @pytest.mark.asyncio
    async def test_helpers_return_none_when_not_found(self, resolver):
        assert await resolver.get_video_url("Turkish Get Up") is None
        assert await resolver.get_videos("Turkish Get Up") is None
        assert await resolver.get_videos_by_angle("Turkish Get Up") is None

    @pytest.mark.asyncio
    async def test_get_videos_by_angle(self, resolver, fake_client):
        fake_client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])

        layout = await resolver.get_videos_by_angle("Goblet Squat")

        assert layout["male"]["front"].endswith("goblet-squat-male-front.mp4")
        assert layout["female"]["back"] is None

    @pytest.mark.asyncio
    async def test_get_videos(self, resolver, fake_client):
        fake_client.seed_text("Goblet Squat", [make_record("Goblet Squat", id=1)])

        videos = await resolver.get_videos("Goblet Squat")

        assert len(videos) == 4


@pytest.mark.unit
class TestBrowse:
    @pytest.mark.asyncio
    async def test_short_query_returns_empty_without_call(self, resolver, fake_client):
        assert await resolver.search_exercises("s") == []
        assert await resolver.search_exercises("  ") == []
        assert fake_client.calls == []

    @pytest.mark.asyncio
    async def test_search_caches_full_results(self, resolver, fake_client, fake_cache_repo):
        fake_client.seed_text(
            "row",
            [make_record("Pendlay Row", id=1), make_record("Seal Row", id=2, partial=True)],
        )

        results = await resolver.search_exercises("row")
        await resolver.flush_pending_writes()

        assert [r.name for r in results] == ["Pendlay Row", "Seal Row"]
        assert resolver.is_cached("Pendlay Row")
        assert not resolver.is_cached("Seal Row")
        assert fake_cache_repo.keys() == ["pendlay row"]

    @pytest.mark.asyncio
    async def test_search_transport_error_returns_empty(self, resolver, fake_client):
        fake_client.fail_everything()
        assert await resolver.search_exercises("row") == []

    @pytest.mark.asyncio
    async def test_get_exercise_by_id_caches_under_name(self, resolver, fake_client):
        fake_client.seed_id(make_record("Seal Row", id=2))

        record = await resolver.get_exercise_by_id(2)

        assert record.name == "Seal Row"
        assert resolver.is_cached("seal row")
        assert await resolver.get_exercise_by_id(99) is None

    @pytest.mark.asyncio
    async def test_filter_options_from_index(self, resolver, fake_client):
        fake_client.seed_filters(["Biceps", "Quads"], ["Barbell", "Dumbbell"])

        options = await resolver.get_filter_options()
        await resolver.get_filter_options()

        assert options == {"muscles": ["Biceps", "Quads"], "categories": ["Barbell", "Dumbbell"]}
        assert len(fake_client.calls) == 2

    @pytest.mark.asyncio
    async def test_filter_options_default_when_unavailable(self, resolver, fake_client):
        fake_client.fail_everything()

        options = await resolver.get_filter_options()

        assert options["muscles"] == DEFAULT_FILTER_MUSCLES
        assert options["categories"] == DEFAULT_FILTER_CATEGORIES


@pytest.mark.unit
class TestCacheManagement:
    @pytest.mark.asyncio
    async def test_stats_and_clear(self, resolver, fake_client):
        fake_client.seed_text("T Bar Row", [make_record("T Bar Row", id=11)])
        await resolver.resolve("Chest-Supported T-Bar Row")

        assert resolver.cache_stats() == {"count": 2}

        resolver.clear_memory_cache()

        assert resolver.cache_stats() == {"count": 0}
        assert not resolver.is_cached("T Bar Row")

    @pytest.mark.asyncio
    async def test_persistent_cache_stats(self, resolver, fake_cache_repo):
        fake_cache_repo.seed("Barbell Row", make_record("Barbell Row", id=3))

        stats = await resolver.persistent_cache_stats()

        assert stats["total_cached"] == 1

    @pytest.mark.asyncio
    async def test_persistent_cache_stats_without_repo(self, make_resolver):
        assert await make_resolver(cache_repo=None).persistent_cache_stats() is None
