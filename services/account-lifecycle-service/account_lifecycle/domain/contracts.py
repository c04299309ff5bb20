"""Domain-level contracts shared by the API, the deletion cascade and its callers."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .account import AccountKey


class StepStatus(str, Enum):
    ok = "ok"
    skipped = "skipped"
    recoverable_failure = "recoverable_failure"
    critical_failure = "critical_failure"


@dataclass(slots=True)
class StepResult:
    """Outcome of one detachment step in the deletion cascade."""

    name: str
    status: StepStatus
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.status in (StepStatus.recoverable_failure, StepStatus.critical_failure)


@dataclass(slots=True)
class DeletionOutcome:
    """Result of a completed cascade; returned only when the quarantine move succeeded."""

    account_key: AccountKey
    quarantine_path: Path
    steps: list[StepResult] = field(default_factory=list)

    @property
    def recoverable_failures(self) -> list[StepResult]:
        return [step for step in self.steps if step.status is StepStatus.recoverable_failure]
