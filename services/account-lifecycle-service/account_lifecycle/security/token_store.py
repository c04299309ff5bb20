"""Device and share tokens bound to dashboards, with Redis and in-memory backends."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from threading import Lock
from typing import Final, Protocol

from redis import Redis

from ..domain.account import AccountKey, Dashboard


@dataclass(frozen=True, slots=True)
class TokenBinding:
    """What a token grants access to."""

    email: str
    app_name: str
    dash_id: int
    device_id: int | None = None

    @property
    def is_shared(self) -> bool:
        return self.device_id is None


class TokenStore(Protocol):
    def assign(self, token: str, key: AccountKey, dash_id: int, device_id: int | None = None) -> None: ...

    def lookup(self, token: str) -> TokenBinding | None: ...

    def delete_dash(self, key: AccountKey, dash: Dashboard) -> int: ...


class InMemoryTokenStore:
    """Thread-safe token store for single-node deployments and tests."""

    def __init__(self) -> None:
        self._tokens: dict[str, TokenBinding] = {}
        self._lock = Lock()

    def assign(self, token: str, key: AccountKey, dash_id: int, device_id: int | None = None) -> None:
        with self._lock:
            self._tokens[token] = TokenBinding(key.email, key.app_name, dash_id, device_id)

    def lookup(self, token: str) -> TokenBinding | None:
        with self._lock:
            return self._tokens.get(token)

    def delete_dash(self, key: AccountKey, dash: Dashboard) -> int:
        """Revoke every device and share token of ``dash``; returns the number revoked."""
        with self._lock:
            doomed = {
                token
                for token, binding in self._tokens.items()
                if binding.email == key.email
                and binding.app_name == key.app_name
                and binding.dash_id == dash.id
            }
            doomed.update(token for token in dash.tokens() if token in self._tokens)
            for token in doomed:
                del self._tokens[token]
            return len(doomed)


class RedisTokenStore:
    """Token store shared across nodes, kept in a Redis hash plus per-dashboard sets."""

    _TOKENS_KEY: Final[str] = "tokens"

    def __init__(self, client: Redis, *, key_prefix: str = "lifecycle") -> None:
        self._client = client
        self._key_prefix = key_prefix

    def _hash_key(self) -> str:
        return f"{self._key_prefix}:{self._TOKENS_KEY}"

    def _dash_key(self, key: AccountKey, dash_id: int) -> str:
        return f"{self._key_prefix}:dash:{key.email}:{key.app_name}:{dash_id}"

    def assign(self, token: str, key: AccountKey, dash_id: int, device_id: int | None = None) -> None:
        binding = TokenBinding(key.email, key.app_name, dash_id, device_id)
        pipe = self._client.pipeline()
        pipe.hset(self._hash_key(), token, json.dumps(asdict(binding)))
        pipe.sadd(self._dash_key(key, dash_id), token)
        pipe.execute()

    def lookup(self, token: str) -> TokenBinding | None:
        raw = self._client.hget(self._hash_key(), token)
        if raw is None:
            return None
        return TokenBinding(**json.loads(raw))

    def delete_dash(self, key: AccountKey, dash: Dashboard) -> int:
        """Revoke every device and share token of ``dash``; returns the number revoked."""
        dash_key = self._dash_key(key, dash.id)
        members = {
            member.decode("utf-8") if isinstance(member, bytes) else member
            for member in self._client.smembers(dash_key)
        }
        members.update(dash.tokens())
        removed = 0
        if members:
            removed = int(self._client.hdel(self._hash_key(), *sorted(members)))
        self._client.delete(dash_key)
        return removed
