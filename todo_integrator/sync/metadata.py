"""Identity store mapping daily-note tasks to remote task ids.

Records are keyed by ``<date>::<cleaned title>`` and persisted under a single
namespaced key of the host's key-value blob as a list of ``[key, record]``
pairs. Every mutation rewrites that list immediately; other keys in the blob
are left untouched.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from ..core.models import TaskMetadata, make_metadata_key
from ..utils.io import safe_read_json, write_json
from ..utils.text import clean_task_title


STORAGE_KEY = "todo-integrator-task-metadata"
DEFAULT_MAX_AGE_DAYS = 90

LoadFn = Callable[[], Optional[Dict[str, Any]]]
SaveFn = Callable[[Dict[str, Any]], None]


class TaskMetadataStore:
    """In-memory identity map with write-through persistence."""

    def __init__(
        self,
        load: LoadFn,
        save: SaveFn,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._load = load
        self._save = save
        self.logger = logger or logging.getLogger(__name__)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._records: Dict[str, TaskMetadata] = {}
        self._blob: Dict[str, Any] = {}
        self._load_records()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _load_records(self) -> None:
        try:
            blob = self._load() or {}
        except Exception as exc:
            self.logger.error(f"Failed to load task metadata: {exc}")
            return

        if not isinstance(blob, dict):
            self.logger.warning(f"Ignoring non-object metadata blob of type {type(blob).__name__}")
            return

        self._blob = dict(blob)
        entries = blob.get(STORAGE_KEY)
        if not entries:
            return

        if isinstance(entries, dict):
            entries = list(entries.items())

        for entry in entries:
            try:
                _, payload = entry
                record = TaskMetadata.from_dict(payload)
            except (TypeError, ValueError, KeyError, AttributeError) as exc:
                self.logger.warning(f"Skipping malformed metadata entry {entry!r}: {exc}")
                continue
            record.title = clean_task_title(record.title)
            self._records[record.key] = record

        self.logger.debug(f"Loaded {len(self._records)} task metadata records")

    def _persist(self) -> None:
        try:
            blob = dict(self._reload_blob())
            blob[STORAGE_KEY] = [[key, record.to_dict()] for key, record in self._records.items()]
            self._save(blob)
            self.logger.debug(f"Saved {len(self._records)} task metadata records")
        except Exception as exc:
            # In-memory state stays authoritative; the next mutation retries.
            self.logger.error(f"Failed to save task metadata: {exc}")

    def _reload_blob(self) -> Dict[str, Any]:
        # Other keys of the host blob may have changed since construction.
        try:
            blob = self._load()
        except Exception as exc:
            self.logger.warning(f"Reloading metadata blob failed, using cached copy: {exc}")
            return self._blob
        if isinstance(blob, dict):
            self._blob = blob
        return self._blob

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def set_metadata(self, date: str, title: str, remote_id: str) -> None:
        """Create or replace the record for (date, title)."""
        title = clean_task_title(title)
        record = TaskMetadata(remote_id=remote_id, date=date, title=title, last_synced=self._now_iso())
        self._records[record.key] = record
        self._persist()
        self.logger.debug(f"Task metadata stored: {record.key} -> {remote_id}")

    def update_title(self, date: str, old_title: str, new_title: str) -> bool:
        """Move a record to a new title on the same date, keeping its remote id."""
        old_key = make_metadata_key(date, clean_task_title(old_title))
        record = self._records.pop(old_key, None)
        if record is None:
            return False

        record.title = clean_task_title(new_title)
        record.last_synced = self._now_iso()
        self._records[record.key] = record
        self._persist()
        self.logger.debug(f"Task title updated in metadata: '{old_title}' -> '{record.title}' ({date})")
        return True

    def remove_metadata(self, date: str, title: str) -> bool:
        key = make_metadata_key(date, clean_task_title(title))
        if self._records.pop(key, None) is None:
            return False
        self._persist()
        self.logger.debug(f"Task metadata removed: {key}")
        return True

    def remove_by_remote_id(self, remote_id: str) -> bool:
        keys = [key for key, record in self._records.items() if record.remote_id == remote_id]
        if not keys:
            return False
        for key in keys:
            del self._records[key]
        self._persist()
        self.logger.debug(f"Task metadata removed for remote id {remote_id}")
        return True

    def cleanup_stale(self, max_age_days: int = DEFAULT_MAX_AGE_DAYS) -> int:
        """
        Drop records whose last sync is older than ``max_age_days``.

        Records with an unreadable timestamp are dropped as well.

        Returns:
            Number of removed records
        """
        cutoff = self._clock() - timedelta(days=max_age_days)
        stale = []
        for key, record in self._records.items():
            synced_at = record.last_synced_at()
            if synced_at is None or synced_at < cutoff:
                stale.append(key)

        for key in stale:
            del self._records[key]

        if stale:
            self._persist()
            self.logger.info(f"Cleaned up {len(stale)} stale metadata record(s)")
        return len(stale)

    def clear_all(self) -> None:
        self._records.clear()
        self._persist()
        self.logger.info("All task metadata cleared")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_remote_id(self, date: str, title: str) -> Optional[str]:
        record = self._records.get(make_metadata_key(date, clean_task_title(title)))
        return record.remote_id if record else None

    def has_metadata(self, date: str, title: str) -> bool:
        return make_metadata_key(date, clean_task_title(title)) in self._records

    def find_by_remote_id(self, remote_id: str) -> Optional[TaskMetadata]:
        for record in self._records.values():
            if record.remote_id == remote_id:
                return record
        return None

    def get_metadata_by_date(self, date: str) -> List[TaskMetadata]:
        return [record for record in self._records.values() if record.date == date]

    def get_metadata_by_date_range(self, start_date: str, end_date: str) -> List[TaskMetadata]:
        """Records whose date lies in [start_date, end_date] (ISO string order)."""
        return [
            record for record in self._records.values()
            if start_date <= record.date <= end_date
        ]

    def find_by_partial_title(self, date: str, fragment: str) -> List[TaskMetadata]:
        """Records on ``date`` whose title contains ``fragment`` (case-insensitive)."""
        needle = fragment.lower()
        return [
            record for record in self._records.values()
            if record.date == date and needle in record.title.lower()
        ]

    def get_all_metadata(self) -> List[TaskMetadata]:
        return list(self._records.values())

    def dates(self) -> List[str]:
        """Distinct record dates in ascending order."""
        return sorted({record.date for record in self._records.values()})

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, item: Tuple[str, str]) -> bool:
        date, title = item
        return self.has_metadata(date, title)

    def __iter__(self) -> Iterator[TaskMetadata]:
        return iter(list(self._records.values()))

    def _now_iso(self) -> str:
        return self._clock().isoformat()


def json_file_backend(file_path: str) -> Tuple[LoadFn, SaveFn]:
    """
    Build ``(load, save)`` callables backed by a JSON file.

    ``load`` returns an empty blob when the file is missing or unreadable;
    ``save`` raises on failure so the store can log it.
    """

    def load() -> Dict[str, Any]:
        return safe_read_json(file_path, default={})

    def save(blob: Dict[str, Any]) -> None:
        write_json(file_path, blob)

    return load, save
