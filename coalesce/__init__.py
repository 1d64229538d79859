"""
coalesce — in-flight request coalescing for asyncio backends.

    from coalesce import flight as C   # Coalesced operations
    from coalesce import lift as L     # Bridges into kungfu computations
"""

from coalesce import flight
from coalesce import lift
from coalesce.flight import (
    coalesce,
    coalesced,
    coalesce_lazy,
    CoalesceError,
    KeyDerivationError,
)
from coalesce._types import (
    Lazy,
    LCR,
)

__version__ = "0.1.0"

__all__ = (
    "flight",
    "lift",
    "coalesce",
    "coalesced",
    "coalesce_lazy",
    "CoalesceError",
    "KeyDerivationError",
    "Lazy",
    "LCR",
)
