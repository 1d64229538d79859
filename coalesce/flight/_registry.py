"""
Pending-call registry — key → in-flight execution.

Owned by exactly one coalesced wrapper. All mutation happens synchronously
between event-loop suspension points, so check-and-insert needs no lock.

Lifecycle of a key:

    (absent) ──submit──▶ (in flight) ──task settles──▶ (absent)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable

from coalesce._types import Key
from coalesce.flight._types import FlightStats

logger = logging.getLogger(__name__)


class Flight[T]:
    """One in-flight execution shared by every caller with the same key."""

    __slots__ = ("key", "task", "callers")

    def __init__(self, key: Key) -> None:
        self.key = key
        self.task: asyncio.Task[T] | None = None
        self.callers = 1


class Registry[T]:
    """
    Pending-call registry with counters.

    submit() either joins the flight registered under key or starts a new
    one. The key is removed inside the flight's own task as it settles, so
    no later caller can ever join a settled flight.
    """

    def __init__(
        self,
        name: str,
        log_level: int = logging.DEBUG,
        is_failure: Callable[[T], bool] | None = None,
    ) -> None:
        self._name = name
        self._log_level = log_level
        self._is_failure = is_failure
        self._flights: dict[Key, Flight[T]] = {}
        self._executions = 0
        self._joined = 0
        self._failures = 0

    def submit(self, key: Key, start: Callable[[], Awaitable[T] | T]) -> asyncio.Future[T]:
        """
        Return a handle onto the execution for key, starting it if absent.

        start() is called at most once per flight, synchronously. If it
        raises, nothing is registered and the exception reaches the caller.
        Every handle is shielded: cancelling one never cancels the shared task.
        """
        flight = self._flights.get(key)
        if flight is not None and flight.task is not None:
            flight.callers += 1
            self._joined += 1
            logger.log(
                self._log_level,
                "%s: joined in-flight key=%r callers=%d",
                self._name, key, flight.callers,
            )
            return asyncio.shield(flight.task)

        loop = asyncio.get_running_loop()
        produced = start()

        flight = Flight(key)
        flight.task = loop.create_task(self._run(flight, produced))
        self._flights[key] = flight
        self._executions += 1
        logger.log(self._log_level, "%s: started key=%r", self._name, key)
        return asyncio.shield(flight.task)

    async def _run(self, flight: Flight[T], produced: Awaitable[T] | T) -> T:
        try:
            if inspect.isawaitable(produced):
                value = await produced
            else:
                value = produced
        except Exception as e:
            self._failures += 1
            logger.log(
                self._log_level,
                "%s: failed key=%r callers=%d error=%s: %s",
                self._name, flight.key, flight.callers, type(e).__name__, e,
            )
            raise
        finally:
            self._release(flight)

        if self._is_failure is not None and self._is_failure(value):
            self._failures += 1
            logger.log(
                self._log_level,
                "%s: settled with failure key=%r callers=%d value=%r",
                self._name, flight.key, flight.callers, value,
            )
            return value

        logger.log(
            self._log_level,
            "%s: settled key=%r callers=%d",
            self._name, flight.key, flight.callers,
        )
        return value

    def _release(self, flight: Flight[T]) -> None:
        # Only the flight that owns the slot may clear it.
        if self._flights.get(flight.key) is flight:
            del self._flights[flight.key]

    # ═══════════════════════════════════════════════════════════════════════════
    # Introspection
    # ═══════════════════════════════════════════════════════════════════════════

    def __len__(self) -> int:
        return len(self._flights)

    def __contains__(self, key: object) -> bool:
        return key in self._flights

    def keys(self) -> list[Key]:
        return list(self._flights)

    def stats(self) -> FlightStats:
        return FlightStats(
            executions=self._executions,
            joined=self._joined,
            failures=self._failures,
            in_flight=len(self._flights),
        )


__all__ = ("Flight", "Registry")
