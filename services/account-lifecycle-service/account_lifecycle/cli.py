"""Command line entry point for one-off retention sweeps.

Runs a single sweep of ``<data-root>/deleted`` and prints the report as JSON,
for cron-driven deployments that keep the in-process scheduler disabled.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime, timezone

from schemas import SweepCompleted

from .config import get_settings
from .retention.sweeper import RetentionPolicy, RetentionSweeper
from .storage.quarantine import QuarantineStore


def run_sweep(data_root: str, retention_days: float) -> SweepCompleted:
    """Sweep ``data_root`` once with a ``retention_days`` grace window."""
    sweeper = RetentionSweeper(QuarantineStore(data_root), RetentionPolicy.from_days(retention_days))
    report = sweeper.sweep(datetime.now(timezone.utc))
    return SweepCompleted(
        started_at=report.started_at,
        retention_days=retention_days,
        erased=report.erased,
        retained=report.retained,
        failed=report.failed,
        elapsed_seconds=report.elapsed_seconds,
    )


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="account-lifecycle",
        description="Account lifecycle maintenance commands",
    )
    subcommands = parser.add_subparsers(dest="command", required=True)
    sweep = subcommands.add_parser("sweep", help="Erase quarantined accounts past the retention window")
    sweep.add_argument("--data-root", default=settings.data_root, help="Data root holding the deleted/ folder")
    sweep.add_argument(
        "--retention-days",
        type=float,
        default=settings.retention_days,
        help=f"Retention window in days (default: {settings.retention_days})",
    )
    sweep.add_argument("-v", "--verbose", action="store_true", help="Log every inspected entry")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.retention_days < 0:
        parser.error("--retention-days must not be negative")

    result = run_sweep(args.data_root, args.retention_days)
    print(result.model_dump_json())
    return 1 if result.failed else 0


if __name__ == "__main__":
    sys.exit(main())
