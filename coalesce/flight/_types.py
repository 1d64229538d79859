"""
Flight types.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from coalesce._types import KeyFn

# ═══════════════════════════════════════════════════════════════════════════════
# Errors
# ═══════════════════════════════════════════════════════════════════════════════


class CoalesceError(Exception):
    """Base class for errors raised by coalesce itself (never by the wrapped op)."""


class KeyDerivationError(CoalesceError):
    """
    Call arguments could not be turned into a key.

    Raised synchronously in the calling context. The call is not coalesced
    and the wrapped operation is not invoked.
    """

    def __init__(self, name: str, reason: str) -> None:
        super().__init__(f"{name}: cannot derive key: {reason}")
        self.name = name
        self.reason = reason


# ═══════════════════════════════════════════════════════════════════════════════
# Policy — Configuration
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Policy:
    """
    Coalescing configuration.

    Example:
        policy = (
            Policy()
            .with_key(lambda uid: f"user:{uid}")
            .with_name("fetch_user")
            .with_log_level(logging.INFO)
        )

    Note: Immutable — each method returns new Policy.
    key_fn=None means structural serialization of the arguments.
    """

    key_fn: KeyFn | None = None
    name: str | None = None
    log_level: int = logging.DEBUG

    def with_key(self, fn: KeyFn) -> Policy:
        """Use a custom key function. Receives the call's *args, **kwargs."""
        if not callable(fn):
            raise TypeError(f"key function must be callable, got {type(fn).__name__}")
        return Policy(key_fn=fn, name=self.name, log_level=self.log_level)

    def with_name(self, name: str) -> Policy:
        """Label used in log records."""
        return Policy(key_fn=self.key_fn, name=name, log_level=self.log_level)

    def with_log_level(self, level: int) -> Policy:
        """Level for lifecycle log records (start, join, settle)."""
        return Policy(key_fn=self.key_fn, name=self.name, log_level=level)


# ═══════════════════════════════════════════════════════════════════════════════
# Stats — Snapshot
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class FlightStats:
    """Counters of one coalesced operation, taken at a point in time."""

    executions: int
    joined: int
    failures: int
    in_flight: int


# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    "CoalesceError",
    "KeyDerivationError",
    "Policy",
    "FlightStats",
)
