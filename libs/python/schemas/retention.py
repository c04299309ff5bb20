"""Retention sweep reporting contracts."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel


class SweepCompleted(BaseModel):
    started_at: datetime
    retention_days: float
    erased: int
    retained: int
    failed: int
    elapsed_seconds: float
