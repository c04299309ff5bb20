from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from account_lifecycle.domain.account import Account, AccountKey, Dashboard, Device, Notification, Profile
from account_lifecycle.domain.service import AccountDeletionService
from account_lifecycle.security.credentials import client_password_hash
from account_lifecycle.security.token_store import InMemoryTokenStore
from account_lifecycle.storage.profile_store import ProfileStore
from account_lifecycle.storage.quarantine import QuarantineStore
from account_lifecycle.storage.registry import AccountRegistry
from account_lifecycle.storage.reporting_store import ReportingStore
from account_lifecycle.storage.sessions import SessionRegistry

DEFAULT_APP = "Blynk"
PASSWORD = "correct horse battery staple"


class FakeRepository:
    """In-memory stand-in for the Postgres-backed account repository."""

    def __init__(self) -> None:
        self.rows: dict[AccountKey, int] = {}
        self.audit_log: list[FakeAuditEvent] = []
        self.fail_delete = False

    def delete_account(self, key: AccountKey) -> int:
        if self.fail_delete:
            raise RuntimeError("database unavailable")
        return self.rows.pop(key, 0)

    def write_audit_event(
        self,
        *,
        key: AccountKey,
        event_type: str,
        actor: str | None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.audit_log.append(FakeAuditEvent(key, event_type, actor, metadata or {}))


@dataclass
class FakeAuditEvent:
    key: AccountKey
    event_type: str
    actor: str | None
    metadata: dict


@dataclass
class FakeConnection:
    closed: bool = False

    def close(self) -> None:
        self.closed = True


@dataclass
class Platform:
    """All stores wired around one deletion service, rooted in a temp directory."""

    data_root: Path
    registry: AccountRegistry
    quarantine: QuarantineStore
    profiles: ProfileStore
    tokens: InMemoryTokenStore
    reporting: ReportingStore
    sessions: SessionRegistry
    repository: FakeRepository
    service: AccountDeletionService
    connections: list[FakeConnection] = field(default_factory=list)

    def add_account(self, email: str, app_name: str = DEFAULT_APP, *, dashboards: int = 2) -> Account:
        """Create a fully attached account: profile file, tokens, reporting, rows and a session."""
        account = Account(
            email=email,
            app_name=app_name,
            pass_hash=client_password_hash(PASSWORD, email),
            profile=Profile(dashboards=[_dashboard(email, idx) for idx in range(dashboards)]),
            created_at=datetime(2020, 1, 1, tzinfo=timezone.utc),
        )
        key = account.key
        self.registry.add(account)
        self.profiles.save(account)
        for dash in account.profile.dashboards:
            for device in dash.devices:
                self.tokens.assign(device.token, key, dash.id, device.id)
            self.tokens.assign(dash.shared_token, key, dash.id)
        reporting_dir = self.reporting.account_dir(key)
        reporting_dir.mkdir(parents=True, exist_ok=True)
        (reporting_dir / "history_0_v1_minute.bin").write_bytes(b"\x00" * 16)
        self.repository.rows[key] = 3
        session = self.sessions.get_or_create(key)
        for _ in range(2):
            connection = FakeConnection()
            session.add(connection)
            self.connections.append(connection)
        return account


def _dashboard(email: str, idx: int) -> Dashboard:
    prefix = email.split("@")[0]
    return Dashboard(
        id=idx,
        name=f"dash {idx}",
        devices=[Device(id=0, token=f"{prefix}-dev-{idx}-0"), Device(id=1, token=f"{prefix}-dev-{idx}-1")],
        shared_token=f"{prefix}-share-{idx}",
        notification=Notification(
            android_tokens={"phone-a": f"fcm-{prefix}-{idx}"},
            ios_tokens={"phone-b": f"apns-{prefix}-{idx}"},
        ),
    )


@pytest.fixture
def platform(tmp_path: Path) -> Platform:
    data_root = tmp_path / "data"
    registry = AccountRegistry()
    quarantine = QuarantineStore(data_root)
    profiles = ProfileStore(data_root, quarantine, DEFAULT_APP)
    tokens = InMemoryTokenStore()
    reporting = ReportingStore(data_root)
    sessions = SessionRegistry()
    repository = FakeRepository()
    service = AccountDeletionService(
        registry=registry,
        profiles=profiles,
        tokens=tokens,
        reporting=reporting,
        sessions=sessions,
        repository=repository,
    )
    return Platform(
        data_root=data_root,
        registry=registry,
        quarantine=quarantine,
        profiles=profiles,
        tokens=tokens,
        reporting=reporting,
        sessions=sessions,
        repository=repository,
        service=service,
    )
