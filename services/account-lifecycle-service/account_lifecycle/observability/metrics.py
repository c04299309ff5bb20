"""Prometheus instruments for deletion and retention workflows."""

from __future__ import annotations

from prometheus_client import Counter, Histogram

ACCOUNT_DELETIONS = Counter(
    "account_deletions_total",
    "Account deletion requests by outcome.",
    ["outcome"],
)

DELETION_STEP_FAILURES = Counter(
    "account_deletion_step_failures_total",
    "Failed steps of the deletion cascade.",
    ["step", "severity"],
)

QUARANTINE_ERASED = Counter(
    "quarantine_entries_erased_total",
    "Quarantined artifacts permanently erased by the retention sweep.",
)

QUARANTINE_ERASE_FAILURES = Counter(
    "quarantine_entry_failures_total",
    "Quarantined artifacts the retention sweep failed to inspect or erase.",
)

SWEEP_DURATION = Histogram(
    "retention_sweep_duration_seconds",
    "Wall-clock duration of a retention sweep cycle.",
    buckets=(0.01, 0.1, 0.5, 1, 5, 30, 120, 600),
)
