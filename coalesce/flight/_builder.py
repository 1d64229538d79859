"""
Coalesce builder — fluent API over the pending-call registry.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from types import MethodType

from coalesce._types import Key, KeyFn
from coalesce.flight._keys import derive_key
from coalesce.flight._registry import Registry
from coalesce.flight._types import FlightStats, Policy


def _label(operation: Callable[..., object], policy: Policy) -> str:
    if policy.name is not None:
        return policy.name
    return getattr(operation, "__qualname__", None) or repr(operation)


def _require_callable(operation: object) -> None:
    if not callable(operation):
        raise TypeError(f"operation must be callable, got {type(operation).__name__}")


def _bind[W](
    attr: str,
    instance: object,
    make: Callable[[Callable[..., object]], W],
    operation: Callable[..., object],
) -> W:
    """Per-instance wrapper for a method, cached in the instance __dict__."""
    try:
        cache = instance.__dict__
    except AttributeError:
        raise TypeError(
            f"coalesced method {attr!r} needs instances with __dict__, "
            f"{type(instance).__name__} has none"
        ) from None
    bound = cache.get(attr)
    if bound is None:
        bound = make(MethodType(operation, instance))
        cache[attr] = bound
    return bound


# ═══════════════════════════════════════════════════════════════════════════════
# Coalesced — Wrapped Operation
# ═══════════════════════════════════════════════════════════════════════════════


class Coalesced[**P, T]:
    """
    Drop-in replacement for an async operation.

    Concurrent calls with equal keys share one execution and its outcome.
    The call itself never suspends: it returns a future that is either
    attached to the in-flight execution or backed by a freshly started one.

    Example:
        fetch_user = C.coalesce(load_user).build()

        a, b = await asyncio.gather(fetch_user(1), fetch_user(1))
        assert a is b  # load_user ran once

    Used as @coalesced on a method, each instance gets its own registry and
    self is left out of the key. Instances need a __dict__.
    """

    def __init__(self, operation: Callable[P, Awaitable[T] | T], policy: Policy) -> None:
        # Before own attributes: update_wrapper copies operation.__dict__.
        functools.update_wrapper(self, operation)
        self._operation = operation
        self._policy = policy
        self._name = _label(operation, policy)
        self._registry: Registry[T] = Registry(self._name, policy.log_level)
        self._attrname: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self._attrname = name

    def __get__(self, instance: object, owner: type | None = None) -> Coalesced[..., T]:
        # Each instance gets its own registry; self is not part of the key.
        if instance is None:
            return self
        policy = self._policy
        return _bind(
            self._attrname or self.__name__,
            instance,
            lambda method: Coalesced(method, policy),
            self._operation,
        )

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> asyncio.Future[T]:
        key = derive_key(self._policy, self._name, args, kwargs)
        operation = self._operation
        return self._registry.submit(key, lambda: operation(*args, **kwargs))

    @property
    def policy(self) -> Policy:
        return self._policy

    @property
    def in_flight(self) -> int:
        """Number of keys currently executing."""
        return len(self._registry)

    def pending_keys(self) -> list[Key]:
        """Snapshot of keys currently executing."""
        return self._registry.keys()

    def stats(self) -> FlightStats:
        return self._registry.stats()

    def __repr__(self) -> str:
        return f"<Coalesced {self._name} in_flight={self.in_flight}>"


# ═══════════════════════════════════════════════════════════════════════════════
# Coalesce Builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class Coalesce[**P, T]:
    """
    Fluent coalescing builder.

    Example:
        fetch_user = (
            C.coalesce(load_user)
            .key(lambda uid: f"user:{uid}")
            .name("load_user")
            .build()
        )
    """

    _operation: Callable[P, Awaitable[T] | T]
    _policy: Policy

    def key(self, fn: KeyFn) -> Coalesce[P, T]:
        """Set key function. Receives the same arguments as the operation."""
        return Coalesce(_operation=self._operation, _policy=self._policy.with_key(fn))

    def name(self, name: str) -> Coalesce[P, T]:
        """Set label used in log records."""
        return Coalesce(_operation=self._operation, _policy=self._policy.with_name(name))

    def policy(self, p: Policy) -> Coalesce[P, T]:
        """Replace whole configuration."""
        return Coalesce(_operation=self._operation, _policy=p)

    def build(self) -> Coalesced[P, T]:
        """Build wrapped operation. Each build owns a fresh registry."""
        return Coalesced(self._operation, self._policy)


# ═══════════════════════════════════════════════════════════════════════════════
# coalesce() — Entry Point
# ═══════════════════════════════════════════════════════════════════════════════


def coalesce[**P, T](operation: Callable[P, Awaitable[T] | T]) -> Coalesce[P, T]:
    """
    Create coalescing builder for an operation.

    The operation may be a coroutine function, any callable returning an
    awaitable, or a plain function (its value is wrapped in a task).

    Example:
        from coalesce import flight as C

        async def load_user(uid: int) -> User:
            return await db.get_user(uid)

        fetch_user = C.coalesce(load_user).build()
        user = await fetch_user(42)
    """
    _require_callable(operation)
    return Coalesce(_operation=operation, _policy=Policy())


def coalesced[**P, T](
    operation: Callable[P, Awaitable[T] | T] | None = None,
    /,
    *,
    key: KeyFn | None = None,
    name: str | None = None,
) -> Coalesced[P, T] | Callable[[Callable[P, Awaitable[T] | T]], Coalesced[P, T]]:
    """
    Decorator form of coalesce().

    Example:
        @C.coalesced
        async def load_user(uid: int) -> User: ...

        @C.coalesced(key=lambda q, **_: q.lower())
        async def search(q: str, limit: int = 10) -> list[Hit]: ...
    """

    def decorate(op: Callable[P, Awaitable[T] | T]) -> Coalesced[P, T]:
        builder = coalesce(op)
        if key is not None:
            builder = builder.key(key)
        if name is not None:
            builder = builder.name(name)
        return builder.build()

    if operation is not None:
        return decorate(operation)
    return decorate


__all__ = ("Coalesce", "Coalesced", "coalesce", "coalesced")
