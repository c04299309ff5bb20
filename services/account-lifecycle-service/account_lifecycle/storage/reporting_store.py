"""Historical reporting data kept on disk per account."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from ..domain.account import AccountKey

logger = logging.getLogger(__name__)

REPORTING_DIR_NAME = "reporting"


class ReportingStore:
    """Per-account reporting directories under ``<data_root>/reporting``."""

    def __init__(self, data_root: str | Path) -> None:
        self._root = Path(data_root) / REPORTING_DIR_NAME

    def account_dir(self, key: AccountKey) -> Path:
        return self._root / f"{key.email}_{key.app_name}"

    def delete(self, key: AccountKey) -> bool:
        """Remove all reporting data of ``key``; returns ``False`` when none existed."""
        target = self.account_dir(key)
        if not target.exists():
            return False
        shutil.rmtree(target)
        logger.info("removed reporting data for %s", key)
        return True
