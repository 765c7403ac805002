"""Sync command - run one full sync cycle between daily notes and Microsoft To Do."""

import logging
from typing import Optional

from ..core.config import ACCESS_TOKEN_ENV_VAR, get_access_token
from ..core.exceptions import ConfigurationError, RemoteStoreError, SyncError
from ..core.models import SyncConfig, SyncResult
from ..obsidian.daily_notes import DailyNoteManager
from ..sync.engine import TodoSynchronizer
from ..sync.metadata import TaskMetadataStore, json_file_backend
from ..todo.client import TodoApiClient


class SyncCommand:
    """Command for synchronizing daily-note tasks with Microsoft To Do."""

    def __init__(self, config: SyncConfig, verbose: bool = False):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)
        if verbose:
            self.logger.setLevel(logging.DEBUG)
        self.config_changed = False

    def run(self, list_name: Optional[str] = None, strict: bool = False) -> bool:
        """Run the sync command."""
        try:
            self.config.validate()
        except ConfigurationError as exc:
            print(f"Configuration error: {exc}")
            return False

        token = get_access_token()
        if not token:
            print(f"No access token available. Set {ACCESS_TOKEN_ENV_VAR} and try again.")
            return False

        local_store = DailyNoteManager(
            self.config.vault_path,
            daily_notes_folder=self.config.daily_notes_folder,
            date_format=self.config.date_format,
            template_path=self.config.template_path,
        )
        load, save = json_file_backend(self.config.metadata_path)
        metadata_store = TaskMetadataStore(load, save)

        with TodoApiClient(lambda: token, default_list_id=self.config.default_list_id) as client:
            if list_name or not self.config.default_list_id:
                name = list_name or self.config.todo_list_name
                try:
                    list_id = client.get_or_create_task_list(name)
                except RemoteStoreError as exc:
                    print(f"Could not resolve task list '{name}': {exc}")
                    return False
                if list_id != self.config.default_list_id:
                    self.config.default_list_id = list_id
                    self.config_changed = True

            synchronizer = TodoSynchronizer(
                local_store,
                client,
                metadata_store,
                task_section_heading=self.config.task_section_heading,
                stale_after_days=self.config.stale_metadata_days,
            )

            print(f"\n🔄 Syncing {self.config.vault_path} with '{self.config.todo_list_name}'...")
            try:
                result = synchronizer.perform_full_sync()
            except SyncError as exc:
                print(f"❌ Sync failed: {exc}")
                return False

        self.config.last_sync_time = result.timestamp
        self.config_changed = True
        self._show_summary(result)

        if strict and result.has_errors:
            return False
        return True

    def _show_summary(self, result: SyncResult) -> None:
        """Print per-phase counts and any collected errors."""
        reconcile = result.reconciliation
        print("\n🔄 Sync Summary")
        print(f"  Identity store: {reconcile.kept} kept, {reconcile.renamed} renamed, {reconcile.removed} removed")
        print(f"  To Do → Obsidian: {result.remote_to_local.added} added")
        print(f"  Obsidian → To Do: {result.local_to_remote.added} added")
        print(f"  Completions: {result.completions.completed} synced")
        if result.stale_removed:
            print(f"  Stale records pruned: {result.stale_removed}")

        errors = result.all_errors
        if errors:
            print(f"\n⚠️  {len(errors)} error(s):")
            for message in errors:
                print(f"  • {message}")
        else:
            print("\n✅ Sync completed")
