"""Tests for the dashboard token stores."""

from __future__ import annotations

import fakeredis
import pytest

from account_lifecycle.domain.account import AccountKey, Dashboard, Device
from account_lifecycle.security.token_store import InMemoryTokenStore, RedisTokenStore


@pytest.fixture()
def redis_client() -> fakeredis.FakeStrictRedis:
    client = fakeredis.FakeStrictRedis()
    client.flushall()
    return client


@pytest.fixture(params=["memory", "redis"])
def token_store(request, redis_client):
    if request.param == "redis":
        return RedisTokenStore(redis_client, key_prefix="test")
    return InMemoryTokenStore()


OWNER = AccountKey.of("Owner@Example.com", "Blynk")
OTHER = AccountKey.of("other@example.com", "Blynk")


def _dash(dash_id: int) -> Dashboard:
    return Dashboard(
        id=dash_id,
        devices=[Device(id=0, token=f"dev-{dash_id}-0"), Device(id=1, token=f"dev-{dash_id}-1")],
        shared_token=f"share-{dash_id}",
    )


def test_delete_dash_revokes_device_and_shared_tokens(token_store):
    dash = _dash(1)
    for device in dash.devices:
        token_store.assign(device.token, OWNER, dash.id, device.id)
    token_store.assign(dash.shared_token, OWNER, dash.id)

    assert token_store.lookup("share-1").is_shared
    assert token_store.lookup("dev-1-0").device_id == 0

    removed = token_store.delete_dash(OWNER, dash)

    assert removed == 3
    for token in ("dev-1-0", "dev-1-1", "share-1"):
        assert token_store.lookup(token) is None


def test_delete_dash_keeps_other_dashboards_and_accounts(token_store):
    mine, theirs = _dash(1), _dash(2)
    token_store.assign("dev-1-0", OWNER, mine.id, 0)
    token_store.assign("dev-2-0", OWNER, theirs.id, 0)
    token_store.assign("foreign", OTHER, mine.id, 0)

    token_store.delete_dash(OWNER, mine)

    assert token_store.lookup("dev-2-0") is not None
    assert token_store.lookup("foreign") is not None


def test_delete_dash_catches_tokens_missing_from_profile(token_store):
    dash = Dashboard(id=3)
    token_store.assign("orphan", OWNER, dash.id, 9)

    assert token_store.delete_dash(OWNER, dash) == 1
    assert token_store.lookup("orphan") is None


def test_delete_dash_without_tokens_is_harmless(token_store):
    assert token_store.delete_dash(OWNER, Dashboard(id=4)) == 0


def test_account_key_normalises_email():
    assert OWNER.email == "owner@example.com"
    assert str(OWNER) == "owner@example.com-Blynk"
