"""
Request coalescing keyed by normalized exercise name.

While a resolution for a key is in flight, later callers for the same key
await the same task instead of starting their own, so N concurrent requests
for one exercise cost one lookup sequence.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Dict, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestCoalescer(Generic[T]):
    """At most one running factory per key; concurrent callers share its outcome."""

    def __init__(self):
        self._pending: Dict[str, "asyncio.Task[T]"] = {}

    async def run_exclusive(
        self, key: str, factory: Callable[[], Awaitable[T]]
    ) -> T:
        """
        Run ``factory`` for ``key`` unless a run is already in flight.

        Every caller receives the same result, or the same exception. The
        pending entry is removed when the run settles, whatever the outcome.
        A caller that is cancelled stops waiting without cancelling the shared
        run.

        Args:
            key: Coalescing key (a normalized name)
            factory: Zero-argument coroutine function producing the result

        Returns:
            The factory's result
        """
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._pending[key] = task
            task.add_done_callback(lambda done: self._settle(key, done))
        else:
            logger.debug(f"Joining in-flight resolution for '{key}'")
        return await asyncio.shield(task)

    def _settle(self, key: str, task: "asyncio.Task[T]") -> None:
        # Runs even when the task is cancelled before its coroutine starts.
        if self._pending.get(key) is task:
            del self._pending[key]

    def in_flight(self, key: str) -> bool:
        return key in self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)
