"""Shared infrastructure for examples."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field


# Types
@dataclass(frozen=True, slots=True)
class UserId:
    value: int


@dataclass(frozen=True, slots=True)
class User:
    id: UserId
    name: str
    email: str


# Errors
@dataclass(frozen=True, slots=True)
class NotFound(Exception):
    entity: str
    id: int | str

    def __str__(self) -> str:
        return f"{self.entity}:{self.id} not found"


# Fake DB — slow, counts round-trips
@dataclass(slots=True)
class FakeDb:
    queries: int = 0
    users: dict[int, User] = field(default_factory=lambda: {
        1: User(UserId(1), "Alice", "alice@example.com"),
        2: User(UserId(2), "Bob", "bob@example.com"),
    })

    async def get_user(self, user_id: UserId) -> User:
        self.queries += 1
        await asyncio.sleep(0.05)
        user = self.users.get(user_id.value)
        if user is None:
            raise NotFound("User", user_id.value)
        return user


# Helpers
def banner(title: str) -> None:
    print(f"\n{'─' * 50}\n{title}\n{'─' * 50}")


def run(main: Callable[[], Coroutine[object, object, None]], *, verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="  [%(name)s] %(message)s",
    )
    asyncio.run(main())
