from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from uuid import UUID

import pytest

from coalesce.flight import structural_key


@dataclass(frozen=True, slots=True)
class UserId:
    value: int


@dataclass(frozen=True, slots=True)
class OrderId:
    value: int


class Tier(Enum):
    GOLD = "gold"
    SILVER = "silver"


def test_compact_json_of_args_and_kwargs():
    assert structural_key(5, mode="fast") == '[[5],{"mode":"fast"}]'
    assert structural_key() == "[[],{}]"


def test_mapping_and_kwarg_order_do_not_matter():
    assert structural_key({"a": 1, "b": 2}) == structural_key({"b": 2, "a": 1})
    assert structural_key(x=1, y=2) == structural_key(y=2, x=1)


def test_scalars_of_different_types_stay_distinct():
    keys = {structural_key(v) for v in (1, 1.5, "1", True, None)}
    assert len(keys) == 5


def test_positional_and_keyword_are_different_calls():
    assert structural_key(1) != structural_key(x=1)


def test_dataclasses_are_tagged_by_type():
    assert structural_key(UserId(1)) == structural_key(UserId(1))
    assert structural_key(UserId(1)) != structural_key(OrderId(1))
    assert structural_key(UserId(1)) != structural_key(UserId(2))


def test_sets_are_order_independent():
    assert structural_key({3, 1, 2}) == structural_key({2, 3, 1})
    assert structural_key(frozenset({"b", "a"})) == structural_key(frozenset({"a", "b"}))


def test_non_string_mapping_keys_are_supported():
    assert structural_key({1: "a", 2: "b"}) == structural_key({2: "b", 1: "a"})
    assert structural_key({1: "a"}) != structural_key({"1": "a"})


def test_rich_scalars():
    stamp = datetime(2024, 1, 2, 3, 4, 5)
    uid = UUID("12345678-1234-5678-1234-567812345678")

    key = structural_key(Tier.GOLD, stamp, timedelta(minutes=1), uid, Decimal("1.10"), b"\x00\xff")

    assert key == structural_key(Tier.GOLD, stamp, timedelta(seconds=60), uid, Decimal("1.10"), b"\x00\xff")
    assert structural_key(Tier.GOLD) != structural_key(Tier.SILVER)
    assert "00ff" in key


def test_shared_references_are_not_cycles():
    shared = [1, 2]
    assert structural_key([shared, shared]) == structural_key([[1, 2], [1, 2]])


def test_cycles_raise_value_error():
    data: dict[str, object] = {}
    data["self"] = data

    with pytest.raises(ValueError, match="circular"):
        structural_key(data)


def test_unsupported_types_raise_type_error():
    with pytest.raises(TypeError, match="unsupported argument type"):
        structural_key(lambda: None)


def test_user_dicts_cannot_pose_as_tagged_values():
    assert structural_key(b"\x00\xff") != structural_key({"__bytes__": "00ff"})
    assert structural_key(UserId(1)) != structural_key(
        {"__dataclass__": f"{__name__}.UserId", "fields": {"value": 1}}
    )
    assert structural_key({"__set__": []}) != structural_key(set())


def test_escaped_keys_stay_distinct():
    keys = {structural_key({k: 1}) for k in ("a", "~a", "~~a", "__a", "~__a")}
    assert len(keys) == 5
