"""
Lift — bridges between coalesced handles and kungfu computations.

Re-exports from combinators.lift plus helpers for moving a shared
in-flight handle into Result-based code.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from kungfu import LazyCoroResult, Result

from combinators.lift import (
    pure,
    fail,
    catching_async,
    wrap_async,
    lifted,
    call,
    call_catching,
)


def from_result[T, E](result: Result[T, E]) -> LazyCoroResult[T, E]:
    """Lift a settled Result into LazyCoroResult."""
    async def _run() -> Result[T, E]:
        return result
    return LazyCoroResult(_run)


def from_awaitable[T, E](
    awaitable_fn: Callable[[], Awaitable[T]],
    on_error: Callable[[Exception], E],
) -> LazyCoroResult[T, E]:
    """
    Create LazyCoroResult from a zero-argument async function.

    Alias for catching_async with clearer naming.
    """
    return catching_async(awaitable_fn, on_error=on_error)


def from_handle[T, E](
    handle: Awaitable[T],
    on_error: Callable[[Exception], E],
) -> LazyCoroResult[T, E]:
    """
    Lift an already-issued handle into LazyCoroResult.

    Example:
        handle = fetch_user(uid)          # coalesced, already in flight
        result = await L.from_handle(handle, on_error=str)
    """
    async def _await() -> T:
        return await handle

    return catching_async(_await, on_error=on_error)


def lift_coalesced[**P, T, E](
    fn: Callable[P, Awaitable[T]],
    on_error: Callable[[Exception], E],
) -> Callable[P, LazyCoroResult[T, E]]:
    """
    Turn a coalesced function into one returning LazyCoroResult.

    The call (and so the join onto any in-flight execution) happens when
    the computation is awaited, not when it is built.
    """
    def wrapped(*args: P.args, **kwargs: P.kwargs) -> LazyCoroResult[T, E]:
        async def _call() -> T:
            return await fn(*args, **kwargs)

        return catching_async(_call, on_error=on_error)

    return wrapped


__all__ = (
    # From combinators.lift
    "pure",
    "fail",
    "catching_async",
    "wrap_async",
    "lifted",
    "call",
    "call_catching",
    # Coalesce additions
    "from_result",
    "from_awaitable",
    "from_handle",
    "lift_coalesced",
)
