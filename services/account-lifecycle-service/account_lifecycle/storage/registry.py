"""Thread-safe in-memory keyed stores for live accounts."""

from __future__ import annotations

from threading import Lock
from typing import Generic, Hashable, TypeVar

from ..domain.account import Account, AccountKey

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ShardedMap(Generic[K, V]):
    """Dictionary split into shards, each guarded by its own lock."""

    def __init__(self, shards: int = 16) -> None:
        self._shards: list[dict[K, V]] = [{} for _ in range(shards)]
        self._locks = [Lock() for _ in range(shards)]

    def _index(self, key: K) -> int:
        return hash(key) % len(self._shards)

    def get(self, key: K) -> V | None:
        idx = self._index(key)
        with self._locks[idx]:
            return self._shards[idx].get(key)

    def put(self, key: K, value: V) -> None:
        idx = self._index(key)
        with self._locks[idx]:
            self._shards[idx][key] = value

    def setdefault(self, key: K, value: V) -> V:
        idx = self._index(key)
        with self._locks[idx]:
            return self._shards[idx].setdefault(key, value)

    def pop(self, key: K) -> V | None:
        idx = self._index(key)
        with self._locks[idx]:
            return self._shards[idx].pop(key, None)

    def __contains__(self, key: object) -> bool:
        idx = self._index(key)  # type: ignore[arg-type]
        with self._locks[idx]:
            return key in self._shards[idx]

    def __len__(self) -> int:
        total = 0
        for lock, shard in zip(self._locks, self._shards):
            with lock:
                total += len(shard)
        return total


class AccountRegistry:
    """Live accounts keyed by :class:`AccountKey`."""

    def __init__(self, shards: int = 16) -> None:
        self._accounts: ShardedMap[AccountKey, Account] = ShardedMap(shards)

    def add(self, account: Account) -> None:
        self._accounts.put(account.key, account)

    def get(self, key: AccountKey) -> Account | None:
        return self._accounts.get(key)

    def delete(self, key: AccountKey) -> Account | None:
        """Remove and return the account for ``key``, or ``None`` if absent."""
        return self._accounts.pop(key)

    def __contains__(self, key: object) -> bool:
        return key in self._accounts

    def __len__(self) -> int:
        return len(self._accounts)
