"""File-backed key/value store with advisory file locking.

The local stand-in for browser storage: each key is one file holding a
serialized string. Reads and writes are synchronous; concurrent writers are
not merged (last writer wins).
"""
from __future__ import annotations

import fcntl
import re
from pathlib import Path

from pm_match.log import get_logger

log = get_logger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


class LocalStore:
    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _KEY_RE.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            _lock(f, exclusive=False)
            value = f.read()
            _unlock(f)
        return value

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        with open(path, "a+", encoding="utf-8") as f:
            _lock(f)
            f.seek(0)
            f.truncate()
            f.write(value)
            f.flush()
            _unlock(f)
        log.debug("Stored %s (%d bytes)", key, len(value))

    def remove_item(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)
