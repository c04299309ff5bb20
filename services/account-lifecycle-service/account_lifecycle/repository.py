"""Database repository for the relational side of account data."""

from __future__ import annotations

from typing import Any

from psycopg.types.json import Json
from psycopg_pool import ConnectionPool

from .domain.account import AccountKey

# tables holding rows keyed by (email, app_name), child tables first
_ACCOUNT_TABLES = ("purchases", "redeem_codes", "users")


class AccountRepository:
    """Postgres-backed account rows and the lifecycle audit trail."""

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def delete_account(self, key: AccountKey) -> int:
        """Delete every row owned by ``key`` in one transaction; returns rows removed."""
        removed = 0
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                for table in _ACCOUNT_TABLES:
                    cur.execute(
                        f"DELETE FROM {table} WHERE email = %s AND app_name = %s",
                        (key.email, key.app_name),
                    )
                    removed += max(cur.rowcount, 0)
            conn.commit()
        return removed

    def write_audit_event(
        self,
        *,
        key: AccountKey,
        event_type: str,
        actor: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Record an audit trail entry capturing account lifecycle activity."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO account_audit_log (email, app_name, event_type, actor, metadata)
                    VALUES (%s, %s, %s, %s, %s)
                    """,
                    (key.email, key.app_name, event_type, actor, Json(metadata or {})),
                )
                conn.commit()
