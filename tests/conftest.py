"""
Shared pytest fixtures for the exercise media tests.

Fixtures build a MediaResolver wired to in-memory fakes with a short rate
limit interval and instant cache-write backoff, so tests run fast and never
touch the network or a database.
"""
import os

import pytest

from backend.core.aliases import AliasExpander
from backend.core.media_resolver import MediaResolver
from backend.core.rate_limiter import RateLimiter
from tests.fakes import FakeExerciseMediaCacheRepository, FakeMediaLookupClient

# backend.main builds its app at import time and refuses to start without a key.
os.environ.setdefault("MUSCLEWIKI_API_KEY", "test-musclewiki-key")

TEST_MIN_INTERVAL = 0.01


@pytest.fixture
def fake_client() -> FakeMediaLookupClient:
    return FakeMediaLookupClient()


@pytest.fixture
def fake_cache_repo() -> FakeExerciseMediaCacheRepository:
    return FakeExerciseMediaCacheRepository()


@pytest.fixture
def alias_expander() -> AliasExpander:
    """The bundled alias dictionary."""
    return AliasExpander()


@pytest.fixture
def make_resolver(fake_client, fake_cache_repo, alias_expander):
    """
    Factory for a MediaResolver over the fakes.

    Keyword arguments override MediaResolver constructor arguments.
    """

    def _make(**kwargs) -> MediaResolver:
        options = dict(
            client=fake_client,
            cache_repo=fake_cache_repo,
            alias_expander=alias_expander,
            rate_limiter=RateLimiter(TEST_MIN_INTERVAL),
            write_attempts=2,
            write_min_wait_seconds=0.001,
            write_max_wait_seconds=0.001,
        )
        options.update(kwargs)
        return MediaResolver(**options)

    return _make


@pytest.fixture
def resolver(make_resolver) -> MediaResolver:
    return make_resolver()
