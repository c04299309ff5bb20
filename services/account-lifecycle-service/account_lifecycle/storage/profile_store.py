"""Durable per-account profile files stored under the data root."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterator

from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from ..domain.account import Account, AccountKey
from .quarantine import QuarantineStore

logger = logging.getLogger(__name__)

USER_FILE_PREFIX = "u_"
USER_FILE_EXTENSION = ".user"

_account_adapter = TypeAdapter(Account)


class ProfileStore:
    """Reads and writes ``u_<email>[.<app>].user`` JSON files in the data root."""

    def __init__(self, data_root: str | Path, quarantine: QuarantineStore, default_app_name: str) -> None:
        self._root = Path(data_root)
        self._quarantine = quarantine
        self._default_app_name = default_app_name

    @property
    def root(self) -> Path:
        return self._root

    def file_name(self, key: AccountKey) -> str:
        """Return the artifact file name for ``key``; the default app omits its namespace."""
        if key.app_name == self._default_app_name:
            return f"{USER_FILE_PREFIX}{key.email}{USER_FILE_EXTENSION}"
        return f"{USER_FILE_PREFIX}{key.email}.{key.app_name}{USER_FILE_EXTENSION}"

    def profile_path(self, key: AccountKey) -> Path:
        return self._root / self.file_name(key)

    def save(self, account: Account) -> Path:
        """Persist ``account`` by writing a temp file and renaming it over the live one."""
        self._root.mkdir(parents=True, exist_ok=True)
        target = self.profile_path(account.key)
        payload = _account_adapter.dump_json(account, indent=2)
        fd, tmp_name = tempfile.mkstemp(dir=self._root, prefix=".tmp-", suffix=USER_FILE_EXTENSION)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(tmp_name, target)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return target

    def load(self, path: Path) -> Account:
        return _account_adapter.validate_json(path.read_bytes())

    def iter_accounts(self) -> Iterator[Account]:
        """Yield every readable profile in the data root, skipping corrupt files."""
        if not self._root.is_dir():
            return
        for path in sorted(self._root.glob(f"{USER_FILE_PREFIX}*{USER_FILE_EXTENSION}")):
            try:
                yield self.load(path)
            except (OSError, PydanticValidationError) as exc:
                logger.error("skipping unreadable profile %s: %s", path.name, exc)

    def quarantine(self, key: AccountKey) -> Path:
        """Move the live profile of ``key`` into the quarantine area.

        Raises ``FileNotFoundError`` when there is no live profile and
        ``OSError`` when the rename fails.
        """
        source = self.profile_path(key)
        if not source.is_file():
            raise FileNotFoundError(f"no profile file for {key}")
        return self._quarantine.move_in(source, self.file_name(key))
