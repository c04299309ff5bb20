"""Shared schema exports."""

from .account import AccountQuarantined
from .retention import SweepCompleted

__all__ = [
    "AccountQuarantined",
    "SweepCompleted",
]
