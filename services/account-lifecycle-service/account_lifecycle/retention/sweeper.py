"""Permanent erasure of quarantined artifacts older than the retention window."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Iterator

from ..observability.metrics import QUARANTINE_ERASE_FAILURES, QUARANTINE_ERASED, SWEEP_DURATION
from ..storage.quarantine import QuarantineStore, last_modified

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 5


@dataclass(frozen=True, slots=True)
class RetentionPolicy:
    """Grace window an artifact stays in quarantine before it may be erased."""

    window: timedelta = timedelta(days=DEFAULT_RETENTION_DAYS)

    @classmethod
    def from_days(cls, days: float) -> "RetentionPolicy":
        if days < 0:
            raise ValueError("retention days must not be negative")
        return cls(window=timedelta(days=days))

    def is_expired(self, modified_at: datetime, now: datetime) -> bool:
        return now - modified_at > self.window


class EntryOutcome(str, Enum):
    erased = "erased"
    retained = "retained"
    failed = "failed"


@dataclass(slots=True)
class SweepReport:
    started_at: datetime
    erased: int = 0
    retained: int = 0
    failed: int = 0
    elapsed_seconds: float = 0.0


class RetentionSweeper:
    """Scans the quarantine area once per cycle and erases expired entries.

    Overlapping sweeps are not guarded here; the scheduler runs at most one
    cycle at a time.
    """

    def __init__(self, store: QuarantineStore, policy: RetentionPolicy | None = None) -> None:
        self._store = store
        self._policy = policy or RetentionPolicy()

    def iter_outcomes(self, now: datetime) -> Iterator[tuple[Path, EntryOutcome]]:
        """Yield ``(entry, outcome)`` for a snapshot of the quarantine area taken on first use.

        Entries that fail to be read or erased are logged and reported as
        ``failed``; they stay in place for the next cycle.
        """
        yield from self._outcomes(self._store.entries(), _as_utc(now))

    def _outcomes(self, entries: list[Path], now: datetime) -> Iterator[tuple[Path, EntryOutcome]]:
        for entry in entries:
            try:
                expired = self._policy.is_expired(last_modified(entry), now)
                if expired:
                    self._store.erase(entry)
            except FileNotFoundError:
                logger.debug("quarantined entry %s vanished during sweep", entry.name)
                continue
            except OSError as exc:
                logger.error("error processing quarantined entry %s: %s", entry, exc)
                yield entry, EntryOutcome.failed
                continue
            if expired:
                logger.info("permanently deleted expired account file: %s", entry.name)
                yield entry, EntryOutcome.erased
            else:
                yield entry, EntryOutcome.retained

    def sweep(self, now: datetime | None = None) -> SweepReport:
        """Run one sweep cycle and return its counts and duration.

        A naive ``now`` is taken to be UTC. Failing to list the quarantine area
        is logged and yields an empty report.
        """
        now = _as_utc(now or datetime.now(timezone.utc))
        report = SweepReport(started_at=now)
        if not self._store.exists():
            logger.debug("quarantine directory does not exist: %s", self._store.root)
            return report

        logger.info("starting deleted accounts cleanup (retention: %s)", self._policy.window)
        started = time.monotonic()
        try:
            snapshot = self._store.entries()
        except OSError as exc:
            logger.error("error listing quarantine directory %s: %s", self._store.root, exc)
            return report
        for _, outcome in self._outcomes(snapshot, now):
            if outcome is EntryOutcome.erased:
                report.erased += 1
            elif outcome is EntryOutcome.retained:
                report.retained += 1
            else:
                report.failed += 1
        report.elapsed_seconds = time.monotonic() - started

        QUARANTINE_ERASED.inc(report.erased)
        QUARANTINE_ERASE_FAILURES.inc(report.failed)
        SWEEP_DURATION.observe(report.elapsed_seconds)
        logger.info(
            "deleted accounts cleanup completed: removed %d, kept %d, failed %d in %.3fs",
            report.erased,
            report.retained,
            report.failed,
            report.elapsed_seconds,
        )
        return report


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
