"""
Core types for coalesce.

Re-exports from kungfu/combinators + custom type aliases.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable
from typing import Any

# Re-export from kungfu
from kungfu import Result, Ok, Error, LazyCoroResult

# Re-export from combinators
from combinators import LCR

# ═══════════════════════════════════════════════════════════════════════════════
# Lazy Computation Aliases
# ═══════════════════════════════════════════════════════════════════════════════

type Lazy[T, E] = LazyCoroResult[T, E]
"""Lazy async computation that may fail."""

# ═══════════════════════════════════════════════════════════════════════════════
# Key Derivation
# ═══════════════════════════════════════════════════════════════════════════════

type KeyFn = Callable[..., Hashable]
"""Maps a call's arguments to a comparable key. Receives *args, **kwargs."""

type Key = Hashable

type Args = tuple[Any, ...]
type Kwargs = dict[str, Any]

# ═══════════════════════════════════════════════════════════════════════════════
# Exports
# ═══════════════════════════════════════════════════════════════════════════════

__all__ = (
    # Re-exports from kungfu
    "Result",
    "Ok",
    "Error",
    "LazyCoroResult",
    # Re-exports from combinators
    "LCR",
    # Type aliases
    "Lazy",
    "KeyFn",
    "Key",
    "Args",
    "Kwargs",
)
