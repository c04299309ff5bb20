from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class AccountKey:
    """Composite identity of an account: email within an application namespace."""

    email: str
    app_name: str

    @classmethod
    def of(cls, email: str, app_name: str) -> "AccountKey":
        """Build a key with the email normalised the way the profile store names files."""
        return cls(email=email.strip().lower(), app_name=app_name)

    def __str__(self) -> str:
        return f"{self.email}-{self.app_name}"


@dataclass(slots=True)
class Notification:
    """Push notification widget configuration; maps phone ids to push tokens."""

    android_tokens: dict[str, str] = field(default_factory=dict)
    ios_tokens: dict[str, str] = field(default_factory=dict)

    def clear_tokens(self) -> None:
        self.android_tokens.clear()
        self.ios_tokens.clear()

    @property
    def has_tokens(self) -> bool:
        return bool(self.android_tokens or self.ios_tokens)


@dataclass(slots=True)
class Device:
    id: int
    token: str | None = None
    name: str = ""


@dataclass(slots=True)
class Dashboard:
    """A user dashboard owning devices, a share token and notification settings."""

    id: int
    name: str = ""
    devices: list[Device] = field(default_factory=list)
    shared_token: str | None = None
    notification: Notification | None = None

    def tokens(self) -> list[str]:
        """Return every token bound to this dashboard (device tokens and share token)."""
        result = [device.token for device in self.devices if device.token]
        if self.shared_token:
            result.append(self.shared_token)
        return result


@dataclass(slots=True)
class Profile:
    dashboards: list[Dashboard] = field(default_factory=list)


@dataclass(slots=True)
class Account:
    """Aggregate root for a platform user within one application namespace."""

    email: str
    app_name: str
    pass_hash: str
    profile: Profile = field(default_factory=Profile)
    created_at: datetime = field(default_factory=_utcnow)

    @property
    def key(self) -> AccountKey:
        return AccountKey.of(self.email, self.app_name)
