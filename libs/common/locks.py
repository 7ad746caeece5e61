"""Keyed in-process async locks.

Used to serialize writes per wallet and terminal transitions per payout
reference inside one process. Cross-process safety comes from row locks
(``SELECT ... FOR UPDATE``) and optimistic version columns in the database.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class KeyedLocks:
    """A lazily created ``asyncio.Lock`` per key.

    Entries are dropped once nobody holds or waits on them, so the registry
    does not grow with the number of wallets ever touched.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: dict[Hashable, _Entry] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(key, None)

    def is_held(self, key: Hashable) -> bool:
        entry = self._entries.get(key)
        return bool(entry and entry.lock.locked())

    def __len__(self) -> int:
        return len(self._entries)


wallet_locks = KeyedLocks("wallet")
payout_locks = KeyedLocks("payout")
