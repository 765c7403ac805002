"""Metadata command - inspect and maintain the identity store."""

import logging
from typing import Optional

from ..core.models import SyncConfig
from ..sync.metadata import TaskMetadataStore, json_file_backend


class MetadataCommand:
    """Lists, prunes or clears the task identity records."""

    def __init__(self, config: SyncConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)
        load, save = json_file_backend(config.metadata_path)
        self.store = TaskMetadataStore(load, save)

    def run(self, action: str = "list", date: Optional[str] = None, days: Optional[int] = None) -> bool:
        if action == "list":
            return self._list(date)
        if action == "cleanup":
            return self._cleanup(days if days is not None else self.config.stale_metadata_days)
        if action == "clear":
            self.store.clear_all()
            print("Identity store cleared.")
            return True

        print(f"Unknown metadata action '{action}'.")
        return False

    def _list(self, date: Optional[str]) -> bool:
        records = self.store.get_metadata_by_date(date) if date else self.store.get_all_metadata()
        if not records:
            print("No task metadata stored.")
            return True

        for record in sorted(records, key=lambda r: (r.date, r.title)):
            print(f"{record.date}  {record.title}  →  {record.remote_id}  (synced {record.last_synced})")
        print(f"\n{len(records)} record(s)")
        return True

    def _cleanup(self, days: int) -> bool:
        if days < 1:
            print("--days must be at least 1")
            return False
        removed = self.store.cleanup_stale(days)
        print(f"Removed {removed} record(s) older than {days} day(s).")
        return True
