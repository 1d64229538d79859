"""
Key derivation — structural serialization of call arguments.

Two calls are equivalent iff their keys are equal. The default key is a
canonical JSON string of ``[args, kwargs]``; mapping order never matters.
"""

from __future__ import annotations

import json
import logging
from dataclasses import fields, is_dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from coalesce._types import Key
from coalesce.flight._types import KeyDerivationError, Policy

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════════════════════
# Normalization
# ═══════════════════════════════════════════════════════════════════════════════

type Plain = None | bool | int | float | str | list[Plain] | dict[str, Plain]


def _dumps(obj: Plain) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _qualname(obj: object) -> str:
    cls = type(obj)
    return f"{cls.__module__}.{cls.__qualname__}"


def _escape(name: str) -> str:
    # Escaped user keys never start with "__", so they cannot pose as a tag.
    if name.startswith(("__", "~")):
        return "~" + name
    return name


def _normalize(obj: Any, stack: set[int]) -> Plain:
    """Convert obj into plain JSON data. Raises TypeError / ValueError."""
    if obj is None or isinstance(obj, (bool, int, float, str)) and not isinstance(obj, Enum):
        return obj

    # Scalars with a canonical text form
    if isinstance(obj, Enum):
        return {"__enum__": _qualname(obj), "value": _normalize(obj.value, stack)}
    if isinstance(obj, datetime):
        return {"__datetime__": obj.isoformat()}
    if isinstance(obj, date):
        return {"__date__": obj.isoformat()}
    if isinstance(obj, time):
        return {"__time__": obj.isoformat()}
    if isinstance(obj, timedelta):
        return {"__timedelta__": obj.total_seconds()}
    if isinstance(obj, UUID):
        return {"__uuid__": str(obj)}
    if isinstance(obj, Decimal):
        return {"__decimal__": str(obj)}
    if isinstance(obj, (bytes, bytearray)):
        return {"__bytes__": bytes(obj).hex()}

    # Containers
    marker = id(obj)
    if marker in stack:
        raise ValueError(f"circular reference through {type(obj).__name__}")
    stack.add(marker)
    try:
        if is_dataclass(obj) and not isinstance(obj, type):
            return {
                "__dataclass__": _qualname(obj),
                "fields": {f.name: _normalize(getattr(obj, f.name), stack) for f in fields(obj)},
            }
        if isinstance(obj, dict):
            if all(isinstance(k, str) for k in obj):
                return {_escape(k): _normalize(v, stack) for k, v in obj.items()}
            pairs = [[_normalize(k, stack), _normalize(v, stack)] for k, v in obj.items()]
            pairs.sort(key=lambda kv: _dumps(kv[0]))
            return {"__map__": pairs}
        if isinstance(obj, (list, tuple)):
            return [_normalize(item, stack) for item in obj]
        if isinstance(obj, (set, frozenset)):
            return {"__set__": sorted(_dumps(_normalize(item, stack)) for item in obj)}
    finally:
        stack.discard(marker)

    raise TypeError(f"unsupported argument type {type(obj).__name__}")


# ═══════════════════════════════════════════════════════════════════════════════
# structural_key() — Default Key Function
# ═══════════════════════════════════════════════════════════════════════════════


def structural_key(*args: Any, **kwargs: Any) -> str:
    """
    Canonical key for a call's arguments.

    Supports JSON scalars, lists/tuples, dicts, sets, dataclasses, enums,
    datetimes, UUID, Decimal and bytes. Lists and tuples are equivalent.

    Example:
        structural_key(5, mode="fast")  == '[[5],{"mode":"fast"}]'
        structural_key({"a": 1, "b": 2}) == structural_key({"b": 2, "a": 1})

    Raises:
        TypeError: unsupported argument type
        ValueError: circular reference
    """
    stack: set[int] = set()
    return _dumps([_normalize(list(args), stack), _normalize(kwargs, stack)])


# ═══════════════════════════════════════════════════════════════════════════════
# derive_key() — Key Function + Error Surfacing
# ═══════════════════════════════════════════════════════════════════════════════


def derive_key(
    policy: Policy,
    name: str,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> Key:
    """
    Apply policy.key_fn (or structural_key) and check the result is hashable.

    Any failure becomes KeyDerivationError, chained to the cause.
    """
    fn = policy.key_fn if policy.key_fn is not None else structural_key
    try:
        key = fn(*args, **kwargs)
        hash(key)
    except KeyDerivationError:
        raise
    except Exception as e:
        error = KeyDerivationError(name, f"{type(e).__name__}: {e}")
        logger.log(policy.log_level, "%s", error)
        raise error from e
    return key


__all__ = ("structural_key", "derive_key")
