from __future__ import annotations

import json
import os
from datetime import datetime, timedelta, timezone

from account_lifecycle import cli


def test_sweep_command_erases_expired_and_prints_report(tmp_path, capsys):
    deleted = tmp_path / "deleted"
    deleted.mkdir()
    expired = deleted / "u_old@example.com.user"
    fresh = deleted / "u_new@example.com.user"
    expired.write_text("{}")
    fresh.write_text("{}")
    stale = (datetime.now(timezone.utc) - timedelta(days=10)).timestamp()
    os.utime(expired, (stale, stale))

    exit_code = cli.main(["sweep", "--data-root", str(tmp_path), "--retention-days", "5"])

    report = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert report["erased"] == 1
    assert report["retained"] == 1
    assert report["retention_days"] == 5
    assert not expired.exists()
    assert fresh.exists()


def test_sweep_command_on_missing_directory(tmp_path, capsys):
    exit_code = cli.main(["sweep", "--data-root", str(tmp_path / "nowhere")])

    report = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert report["erased"] == 0
