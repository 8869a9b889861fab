"""
Request coordination: coalescing of concurrent calls plus per-key throttling.

Concurrent calls that share a key join the execution already in flight;
sequential calls for the same key are spaced at least rate_limit_seconds
apart by suspending the later caller.
"""
import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional, Set, TypeVar

from .types import (
    CoordinatorClosedError,
    CoordinatorConfig,
    CoordinatorEvent,
    CoordinatorEventListener,
    CoordinatorEventType,
    InFlightRequest,
    PendingRequestStore,
)
from .stores.memory import MemoryPendingStore

logger = logging.getLogger(__name__)

LOG_PREFIX = "[request_coordinator]"

T = TypeVar("T")

RATE_LIMIT_SECONDS = 2.0

DEFAULT_COORDINATOR_CONFIG = CoordinatorConfig(
    rate_limit_seconds=RATE_LIMIT_SECONDS,
)


def merge_coordinator_config(
    config: Optional[CoordinatorConfig] = None,
) -> CoordinatorConfig:
    """Merge user config with defaults."""
    if config is None:
        return CoordinatorConfig(
            rate_limit_seconds=DEFAULT_COORDINATOR_CONFIG.rate_limit_seconds,
        )

    return CoordinatorConfig(
        rate_limit_seconds=config.rate_limit_seconds
        if config.rate_limit_seconds is not None
        else DEFAULT_COORDINATOR_CONFIG.rate_limit_seconds,
    )


class RequestCoordinator:
    """
    RequestCoordinator - coalesces and throttles keyed async calls.

    One instance is meant to live for the whole process, owned by the
    application's composition root and handed to every data-fetching caller.

    Example:
        coordinator = RequestCoordinator()

        async def fetch_contacts():
            return await coordinator.execute(
                "contacts:list",
                lambda: crm.get("/contacts"),
            )

        # Both callers share one upstream call
        first, second = await asyncio.gather(fetch_contacts(), fetch_contacts())

    Forced calls (force_refresh=True) skip both coalescing and throttling but
    still record their start time and register themselves as in flight.
    Pending entries are tagged with an execution id and only the owning
    execution removes its entry. When the owner of the entry finishes while
    older executions of the key are still running, the newest of those takes
    the entry over.

    Each execution runs in its own task. A caller that is cancelled stops
    waiting, but the execution still completes for everyone else sharing it.
    """

    def __init__(
        self,
        config: Optional[CoordinatorConfig] = None,
        store: Optional[PendingRequestStore] = None,
        *,
        clock: Optional[Callable[[], float]] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        self._config = merge_coordinator_config(config)
        self._store = store or MemoryPendingStore()
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._last_request_times: Dict[str, float] = {}
        self._listeners: Set[CoordinatorEventListener] = set()
        self._live: Dict[str, List[InFlightRequest]] = {}
        self._tasks: Set[asyncio.Task] = set()
        self._execution_counter = 0
        self._closed = False

    async def execute(
        self,
        key: str,
        request_fn: Callable[[], Awaitable[T]],
        force_refresh: bool = False,
    ) -> T:
        """
        Run request_fn under coordination for key.

        Errors raised by request_fn reach every caller sharing the execution
        unchanged. Nothing is retried.
        """
        if self._closed:
            raise CoordinatorClosedError("RequestCoordinator is closed")

        if not force_refresh:
            while True:
                existing = self._store.get(key)
                if existing is not None:
                    return await self._join(key, existing)

                wait = self._remaining_wait(key)
                if wait <= 0:
                    break

                logger.debug(f"{LOG_PREFIX} Rate limiting {key}, waiting {wait:.3f}s")
                self._emit(
                    CoordinatorEvent(
                        type=CoordinatorEventType.THROTTLE,
                        key=key,
                        timestamp=time.time(),
                        metadata={"wait_seconds": wait},
                    )
                )
                await self._sleep(wait)

        return await self._lead(key, request_fn, force_refresh)

    def _remaining_wait(self, key: str) -> float:
        """Seconds the next execution of key must still wait."""
        last = self._last_request_times.get(key)
        if last is None:
            return 0.0
        elapsed = self._clock() - last
        return max(0.0, self._config.rate_limit_seconds - elapsed)

    async def _join(self, key: str, existing: InFlightRequest[T]) -> T:
        existing.subscribers += 1
        logger.debug(f"{LOG_PREFIX} Returning existing request for: {key}")

        self._emit(
            CoordinatorEvent(
                type=CoordinatorEventType.JOIN,
                key=key,
                timestamp=time.time(),
                metadata={"subscribers": existing.subscribers},
            )
        )

        return await asyncio.shield(existing.future)

    async def _lead(
        self,
        key: str,
        request_fn: Callable[[], Awaitable[T]],
        forced: bool,
    ) -> T:
        self._execution_counter += 1
        execution_id = self._execution_counter

        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()
        started_at = self._clock()

        self._last_request_times[key] = started_at
        in_flight = InFlightRequest(
            future=future,
            execution_id=execution_id,
            subscribers=1,
            started_at=started_at,
            forced=forced,
        )
        self._store.set(key, in_flight)
        self._live.setdefault(key, []).append(in_flight)

        logger.info(f"{LOG_PREFIX} Executing API request: {key}")
        self._emit(
            CoordinatorEvent(
                type=CoordinatorEventType.LEAD,
                key=key,
                timestamp=time.time(),
                metadata={"execution_id": execution_id, "forced": forced},
            )
        )

        # The execution belongs to no caller; cancelling the leader only
        # abandons its own wait.
        task = loop.create_task(self._run(key, request_fn, in_flight))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        return await asyncio.shield(future)

    async def _run(
        self,
        key: str,
        request_fn: Callable[[], Awaitable[T]],
        in_flight: InFlightRequest[T],
    ) -> None:
        future = in_flight.future
        execution_id = in_flight.execution_id
        try:
            value = await request_fn()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as error:
            future.set_exception(error)
            # Mark retrieved; callers that are still waiting receive it.
            future.exception()

            logger.error(f"{LOG_PREFIX} API request failed: {key}: {error}")
            self._emit(
                CoordinatorEvent(
                    type=CoordinatorEventType.ERROR,
                    key=key,
                    timestamp=time.time(),
                    metadata={"error": str(error), "execution_id": execution_id},
                )
            )
        else:
            future.set_result(value)

            logger.info(f"{LOG_PREFIX} API request completed: {key}")
            self._emit(
                CoordinatorEvent(
                    type=CoordinatorEventType.COMPLETE,
                    key=key,
                    timestamp=time.time(),
                    metadata={
                        "execution_id": execution_id,
                        "subscribers": in_flight.subscribers,
                        "duration_seconds": self._clock() - in_flight.started_at,
                    },
                )
            )
        finally:
            self._release(key, in_flight)

    def _release(self, key: str, in_flight: InFlightRequest) -> None:
        """
        Drop a finished execution from the bookkeeping of key.

        If it still owns the pending entry, the newest execution of key that
        is still running takes the entry over; otherwise the key is untracked.
        """
        running = [
            entry
            for entry in self._live.get(key, [])
            if entry is not in_flight and not entry.future.done()
        ]
        if running:
            self._live[key] = running
        else:
            self._live.pop(key, None)

        if self._store.get(key) is not in_flight:
            return
        if running:
            self._store.set(key, running[-1])
        else:
            self._store.delete(key, in_flight.execution_id)

    def is_pending(self, key: str) -> bool:
        """Check if key currently has an in-flight execution."""
        return self._store.has(key)

    def get_subscribers(self, key: str) -> int:
        """Get the number of callers sharing the in-flight execution for key."""
        existing = self._store.get(key)
        return existing.subscribers if existing else 0

    def get_stats(self) -> dict:
        """Get statistics about coordinated requests."""
        return {
            "in_flight": self._store.size(),
            "tracked_keys": len(self._last_request_times),
            "executions": self._execution_counter,
        }

    def get_config(self) -> CoordinatorConfig:
        """Get configuration."""
        return self._config

    def clear_pending(self) -> None:
        """
        Drop all in-flight bookkeeping.

        Running executions are not cancelled; callers already waiting on them
        still receive their outcome.
        """
        self._store.clear()
        self._live.clear()

    def reset(self) -> None:
        """Drop in-flight bookkeeping and throttling history."""
        self._store.clear()
        self._live.clear()
        self._last_request_times.clear()

    def on(self, listener: CoordinatorEventListener) -> Callable[[], None]:
        """Add event listener."""
        self._listeners.add(listener)
        return lambda: self._listeners.discard(listener)

    def off(self, listener: CoordinatorEventListener) -> None:
        """Remove event listener."""
        self._listeners.discard(listener)

    def _emit(self, event: CoordinatorEvent) -> None:
        """Emit an event to all listeners."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as error:
                logger.debug(f"{LOG_PREFIX} Listener failed for {event.type.value}: {error}")

    def close(self) -> None:
        """Close and release resources."""
        self._closed = True
        self.reset()
        self._listeners.clear()


def create_request_coordinator(
    config: Optional[CoordinatorConfig] = None,
    store: Optional[PendingRequestStore] = None,
) -> RequestCoordinator:
    """Create a request coordinator instance."""
    return RequestCoordinator(config, store)
