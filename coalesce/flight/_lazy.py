"""
Lazy coalescing — for operations returning LazyCoroResult.

The key is derived when the computation is built (so key errors surface
at the call site); the in-flight execution is joined when it is awaited.
Ok and Error outcomes are both shared verbatim.
"""

from __future__ import annotations

import functools
from collections.abc import Callable
from dataclasses import dataclass

from kungfu import Error, LazyCoroResult, Result

from coalesce._types import Key, KeyFn
from coalesce.flight._builder import _bind, _label, _require_callable
from coalesce.flight._keys import derive_key
from coalesce.flight._registry import Registry
from coalesce.flight._types import FlightStats, Policy


def _is_error(result: Result[object, object]) -> bool:
    return isinstance(result, Error)


# ═══════════════════════════════════════════════════════════════════════════════
# CoalescedLazy — Wrapped Operation
# ═══════════════════════════════════════════════════════════════════════════════


class CoalescedLazy[**P, T, E]:
    """
    Drop-in replacement for an operation returning LazyCoroResult[T, E].

    Example:
        def charge(order_id: str) -> LazyCoroResult[Payment, str]:
            return L.catching_async(lambda: api.charge(order_id), on_error=str)

        charge_once = C.coalesce_lazy(charge).build()

        match await charge_once("order-1"):
            case Ok(payment): ...
            case Error(e): ...
    """

    def __init__(self, operation: Callable[P, LazyCoroResult[T, E]], policy: Policy) -> None:
        functools.update_wrapper(self, operation)
        self._operation = operation
        self._policy = policy
        self._name = _label(operation, policy)
        self._registry: Registry[Result[T, E]] = Registry(
            self._name,
            policy.log_level,
            is_failure=_is_error,
        )
        self._attrname: str | None = None

    def __set_name__(self, owner: type, name: str) -> None:
        self._attrname = name

    def __get__(self, instance: object, owner: type | None = None) -> CoalescedLazy[..., T, E]:
        if instance is None:
            return self
        policy = self._policy
        return _bind(
            self._attrname or self.__name__,
            instance,
            lambda method: CoalescedLazy(method, policy),
            self._operation,
        )

    def __call__(self, *args: P.args, **kwargs: P.kwargs) -> LazyCoroResult[T, E]:
        key = derive_key(self._policy, self._name, args, kwargs)
        operation = self._operation
        registry = self._registry

        async def execute() -> Result[T, E]:
            return await registry.submit(key, lambda: operation(*args, **kwargs))

        return LazyCoroResult(execute)

    @property
    def policy(self) -> Policy:
        return self._policy

    @property
    def in_flight(self) -> int:
        return len(self._registry)

    def pending_keys(self) -> list[Key]:
        return self._registry.keys()

    def stats(self) -> FlightStats:
        return self._registry.stats()

    def __repr__(self) -> str:
        return f"<CoalescedLazy {self._name} in_flight={self.in_flight}>"


# ═══════════════════════════════════════════════════════════════════════════════
# CoalesceLazy Builder
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(slots=True, frozen=True)
class CoalesceLazy[**P, T, E]:
    """Fluent builder for CoalescedLazy. Same surface as Coalesce."""

    _operation: Callable[P, LazyCoroResult[T, E]]
    _policy: Policy

    def key(self, fn: KeyFn) -> CoalesceLazy[P, T, E]:
        return CoalesceLazy(_operation=self._operation, _policy=self._policy.with_key(fn))

    def name(self, name: str) -> CoalesceLazy[P, T, E]:
        return CoalesceLazy(_operation=self._operation, _policy=self._policy.with_name(name))

    def policy(self, p: Policy) -> CoalesceLazy[P, T, E]:
        return CoalesceLazy(_operation=self._operation, _policy=p)

    def build(self) -> CoalescedLazy[P, T, E]:
        return CoalescedLazy(self._operation, self._policy)


def coalesce_lazy[**P, T, E](
    operation: Callable[P, LazyCoroResult[T, E]],
) -> CoalesceLazy[P, T, E]:
    """
    Create coalescing builder for a LazyCoroResult-returning operation.

    Example:
        charge_once = (
            C.coalesce_lazy(charge)
            .key(lambda order_id: f"charge:{order_id}")
            .build()
        )
    """
    _require_callable(operation)
    return CoalesceLazy(_operation=operation, _policy=Policy())


__all__ = ("CoalescedLazy", "CoalesceLazy", "coalesce_lazy")
