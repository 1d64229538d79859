"""
Coalesce — concurrent equal calls share one execution.

Run: uv run python examples/coalesce_example.py

Key concepts:
- coalesce(op).build() = drop-in replacement for op
- Equal key while in flight = join, no new call
- Settled = forgotten; next call executes again
"""

import asyncio
import sys

from kungfu import Ok, Error

from coalesce import flight as C
from coalesce import lift as L
from examples._infra import banner, run, UserId, FakeDb


db = FakeDb()

fetch_user = (
    C.coalesce(db.get_user)
    .key(lambda uid: f"user:{uid.value}")
    .name("fetch_user")
    .build()
)


async def main() -> None:
    banner("Coalesce: In-Flight Deduplication")

    print("\n1. Five concurrent requests for the same user:")
    users = await asyncio.gather(*(fetch_user(UserId(1)) for _ in range(5)))
    print(f"   → {users[0].name} x{len(users)}, DB queries: {db.queries} (only 1!)")

    print("\n2. Concurrent requests for different users:")
    alice, bob = await asyncio.gather(fetch_user(UserId(1)), fetch_user(UserId(2)))
    print(f"   → {alice.name}, {bob.name}, DB queries: {db.queries}")

    print("\n3. Sequential request (previous one settled):")
    await fetch_user(UserId(1))
    print(f"   DB queries: {db.queries} (fresh execution)")

    print("\n4. Shared failure, then retry:")
    before = db.queries
    results = await asyncio.gather(
        fetch_user(UserId(404)), fetch_user(UserId(404)), return_exceptions=True
    )
    print(f"   → {[str(r) for r in results]}, DB queries: {db.queries - before}")

    match await L.from_handle(fetch_user(UserId(404)), on_error=str):
        case Ok(user):
            print(f"   retry → {user.name}")
        case Error(e):
            print(f"   retry → error: {e} (executed again, not poisoned)")

    print(f"\n{fetch_user.stats()}")
    print("\nDone!")


if __name__ == "__main__":
    run(main, verbose="-v" in sys.argv)
