from __future__ import annotations

from datetime import datetime, timezone

import pytest

from account_lifecycle.domain.account import Account, AccountKey, Dashboard, Notification, Profile
from account_lifecycle.storage.profile_store import ProfileStore
from account_lifecycle.storage.quarantine import QuarantineStore


@pytest.fixture
def profiles(tmp_path) -> ProfileStore:
    root = tmp_path / "data"
    return ProfileStore(root, QuarantineStore(root), "Blynk")


def test_file_name_omits_default_namespace(profiles):
    assert profiles.file_name(AccountKey.of("a@example.com", "Blynk")) == "u_a@example.com.user"
    assert profiles.file_name(AccountKey.of("a@example.com", "Farm")) == "u_a@example.com.Farm.user"


def test_save_and_reload_round_trip(profiles):
    account = Account(
        email="round@example.com",
        app_name="Farm",
        pass_hash="hash",
        profile=Profile(dashboards=[Dashboard(id=5, notification=Notification(ios_tokens={"p": "t"}))]),
        created_at=datetime(2021, 6, 1, tzinfo=timezone.utc),
    )

    path = profiles.save(account)
    [loaded] = list(profiles.iter_accounts())

    assert path.name == "u_round@example.com.Farm.user"
    assert loaded == account
    assert not list(profiles.root.glob(".tmp-*"))


def test_iter_accounts_skips_corrupt_files(profiles):
    profiles.save(Account(email="ok@example.com", app_name="Blynk", pass_hash="h"))
    (profiles.root / "u_broken@example.com.user").write_text("{not json")

    loaded = list(profiles.iter_accounts())

    assert [account.email for account in loaded] == ["ok@example.com"]


def test_quarantine_renames_into_deleted_folder(profiles):
    account = Account(email="gone@example.com", app_name="Blynk", pass_hash="h")
    live = profiles.save(account)

    moved = profiles.quarantine(account.key)

    assert not live.exists()
    assert moved == profiles.root / "deleted" / live.name
    assert profiles.load(moved) == account


def test_quarantine_without_profile_raises(profiles):
    with pytest.raises(FileNotFoundError):
        profiles.quarantine(AccountKey.of("missing@example.com", "Blynk"))
