"""Saved resumes and jobs, kept most-recent-first in the local store."""
from __future__ import annotations

import json
import time
import uuid
from typing import Any, Callable, Generic, TypeVar

from pm_match.log import get_logger
from pm_match.models import SavedJob, SavedResume
from pm_match.storage import LocalStore

log = get_logger(__name__)

RESUME_STORAGE_KEY = "pm_match_resumes"
JOB_STORAGE_KEY = "pm_match_jobs"

DEFAULT_RESUME_NAME = "My Resume"
DEFAULT_JOB_NAME = "Unknown Company"
DUPLICATE_WINDOW_MS = 5 * 60 * 1000

T = TypeVar("T", SavedResume, SavedJob)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _job_name(name: Any) -> str:
    # company names come straight from model output
    text = "" if name is None else str(name).strip()
    return text or DEFAULT_JOB_NAME


class _History(Generic[T]):
    """Append-and-delete list persisted whole under one storage key."""

    key: str
    entry_type: type

    def __init__(self, store: LocalStore, clock: Callable[[], int] = _now_ms) -> None:
        self.store = store
        self.clock = clock
        self._entries: list[T] = self._load()

    def _load(self) -> list[T]:
        raw = self.store.get_item(self.key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            return [self.entry_type.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            log.error("Could not load %s — starting empty: %s", self.key, exc)
            return []

    def _persist(self) -> None:
        self.store.set_item(self.key, json.dumps([e.to_dict() for e in self._entries]))

    def _prepend(self, entry: T) -> T:
        self._entries.insert(0, entry)
        self._persist()
        log.info("Saved %s entry %r (%d total)", self.key, entry.name, len(self._entries))
        return entry

    @property
    def entries(self) -> list[T]:
        return list(self._entries)

    def get(self, entry_id: str) -> T | None:
        return next((e for e in self._entries if e.id == entry_id), None)

    def delete(self, entry_id: str) -> bool:
        remaining = [e for e in self._entries if e.id != entry_id]
        if len(remaining) == len(self._entries):
            return False
        self._entries = remaining
        self._persist()
        log.info("Deleted %s entry %s", self.key, entry_id)
        return True

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(list(self._entries))


class ResumeHistory(_History[SavedResume]):
    key = RESUME_STORAGE_KEY
    entry_type = SavedResume

    def save(self, name: str, content: str) -> SavedResume | None:
        if not content.strip():
            return None
        entry = SavedResume(
            id=str(uuid.uuid4()),
            name=name.strip() or DEFAULT_RESUME_NAME,
            content=content,
            timestamp=self.clock(),
        )
        return self._prepend(entry)


class JobHistory(_History[SavedJob]):
    key = JOB_STORAGE_KEY
    entry_type = SavedJob

    def is_recent_duplicate(self, name: str | None) -> bool:
        """Same name (case-insensitive) saved within the last five minutes."""
        now = self.clock()
        wanted = _job_name(name).lower()
        return any(
            j.name.lower() == wanted and now - j.timestamp < DUPLICATE_WINDOW_MS
            for j in self._entries
        )

    def save(self, name: str | None, content: str, url: str = "") -> SavedJob | None:
        name = _job_name(name)
        content = content or ""
        url = url or ""
        if not content.strip() and not url.strip():
            return None
        if self.is_recent_duplicate(name):
            log.debug("Skipping duplicate job save for %r", name)
            return None
        entry = SavedJob(
            id=str(uuid.uuid4()),
            name=name,
            content=content,
            url=url,
            timestamp=self.clock(),
        )
        return self._prepend(entry)
