"""
Flight — in-flight request coalescing.

    from coalesce import flight as C

    fetch_user = C.coalesce(load_user).key(lambda uid: f"user:{uid}").build()
    a, b = await asyncio.gather(fetch_user(1), fetch_user(1))  # one load_user call

Lifecycle of a key:

    (absent) ──first call──▶ (in flight) ──execution settles──▶ (absent)
                                  ▲    │
                    equal key ────┘    └──▶ every caller gets the same outcome
"""

from __future__ import annotations

from coalesce.flight._types import (
    CoalesceError,
    KeyDerivationError,
    Policy,
    FlightStats,
)
from coalesce.flight._keys import structural_key
from coalesce.flight._builder import coalesce, coalesced, Coalesce, Coalesced
from coalesce.flight._lazy import coalesce_lazy, CoalesceLazy, CoalescedLazy

__all__ = (
    # Types
    "CoalesceError",
    "KeyDerivationError",
    "Policy",
    "FlightStats",
    # Keys
    "structural_key",
    # Builder API
    "coalesce",
    "coalesced",
    "Coalesce",
    "Coalesced",
    # Lazy (kungfu) API
    "coalesce_lazy",
    "CoalesceLazy",
    "CoalescedLazy",
)
