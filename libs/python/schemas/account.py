"""Account lifecycle events shared across services."""

from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, Field


class AccountQuarantined(BaseModel):
    email: str
    app_name: str
    quarantined_at: datetime
    quarantine_file: str
    failed_steps: list[str] = Field(default_factory=list)
    version: str = "v1"

