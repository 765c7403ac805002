"""Sync engine reconciling daily-note tasks with a Microsoft To Do list."""

import logging
import threading
from typing import Dict, List, Optional, Set, Tuple

from ..core.exceptions import SyncError, SyncInProgressError
from ..core.models import (
    CompletionResult,
    LocalTask,
    ReconcileResult,
    RemoteTask,
    SyncResult,
    TaskStatus,
    TransferResult,
)
from ..utils.date import literal_date, to_local_date, to_utc_date, today_iso
from ..utils.text import clean_task_title, has_legacy_tag, normalize_title, titles_match
from .metadata import DEFAULT_MAX_AGE_DAYS, TaskMetadataStore
from .ports import LocalTaskStore, RemoteTaskStore


class TodoSynchronizer:
    """Runs one full sync cycle between the daily notes and the remote list.

    A cycle is made of ordered phases:

    0. make sure today's daily note exists (the only step allowed to abort)
    1. reconcile the identity store with what the notes currently contain
    2. remote -> local: add open remote tasks to their daily note
    3. local -> remote: create remote tasks for new local tasks
    4. completions: propagate completion in both directions

    Per-task failures are logged and collected in the phase result; a
    failing bulk fetch or a missing default list aborts only its phase.
    """

    def __init__(
        self,
        local_store: LocalTaskStore,
        remote_store: RemoteTaskStore,
        metadata_store: TaskMetadataStore,
        task_section_heading: Optional[str] = None,
        stale_after_days: int = DEFAULT_MAX_AGE_DAYS,
        logger: Optional[logging.Logger] = None,
    ):
        self.local_store = local_store
        self.remote_store = remote_store
        self.metadata_store = metadata_store
        self.task_section_heading = task_section_heading
        self.stale_after_days = stale_after_days
        self.logger = logger or logging.getLogger(__name__)
        self._in_flight = threading.Lock()

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def perform_full_sync(self) -> SyncResult:
        """Run all phases in order and return the aggregated result.

        Raises:
            SyncInProgressError: if another cycle is still running
            SyncError: if today's daily note cannot be created
        """
        if not self._in_flight.acquire(blocking=False):
            raise SyncInProgressError("A sync is already in progress")

        try:
            self.logger.info("Starting full sync")
            try:
                self.local_store.ensure_today_container_exists()
            except Exception as exc:
                self.logger.error("Could not prepare today's daily note: %s", exc)
                raise SyncError(f"Could not prepare today's daily note: {exc}") from exc

            result = SyncResult()
            result.reconciliation = self.reconcile_metadata()
            result.remote_to_local = self.sync_remote_to_local()
            result.local_to_remote = self.sync_local_to_remote()
            result.completions = self.sync_completions()
            result.stale_removed = self.metadata_store.cleanup_stale(self.stale_after_days)

            self.logger.info(
                "Sync finished: %d added locally, %d added remotely, %d completed, %d error(s)",
                result.remote_to_local.added,
                result.local_to_remote.added,
                result.completions.completed,
                len(result.all_errors),
            )
            return result
        finally:
            self._in_flight.release()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _read_all_local_tasks(self) -> List[LocalTask]:
        tasks: List[LocalTask] = []
        for container in self.local_store.list_all_task_containers():
            tasks.extend(self.local_store.read_tasks(container, self.task_section_heading))
        return tasks

    def _placement_date(self, task: RemoteTask) -> str:
        """Daily note date for a remote task: literal due date, else local creation date."""
        if task.due is not None:
            due_date = literal_date(task.due.date_time)
            if due_date:
                return due_date
            self.logger.warning("Unparsable due date %r on task '%s'", task.due.date_time, task.title)

        created = to_local_date(task.created_at)
        if created:
            return created

        self.logger.warning("Unparsable creation date %r on task '%s', using today", task.created_at, task.title)
        return today_iso()

    def _completion_date(self, task: RemoteTask) -> str:
        completed = to_utc_date(task.completed_at)
        if completed:
            return completed
        self.logger.warning(
            "Missing or invalid completion date %r on task '%s', using today",
            task.completed_at, task.title,
        )
        return today_iso()

    @staticmethod
    def _local_key(task: LocalTask) -> Tuple[Optional[str], str]:
        return task.start_date, normalize_title(clean_task_title(task.title))

    # ------------------------------------------------------------------
    # Phase 1
    # ------------------------------------------------------------------
    def reconcile_metadata(self) -> ReconcileResult:
        """Repair identity records after local edits made outside a sync.

        For every record: keep it when its title is still present on that
        date, move it to a local title that contains the recorded one
        (case-insensitive), otherwise drop it.
        """
        result = ReconcileResult()
        for date in self.metadata_store.dates():
            try:
                container = self.local_store.path_for_date(date)
                local_tasks = self.local_store.read_tasks(container, self.task_section_heading)
            except Exception as exc:
                message = f"Reconciliation failed for {date}: {exc}"
                self.logger.error(message)
                result.errors.append(message)
                continue

            local_titles = []
            for task in local_tasks:
                cleaned = clean_task_title(task.title)
                if cleaned and cleaned not in local_titles:
                    local_titles.append(cleaned)

            records = self.metadata_store.get_metadata_by_date(date)
            claimed: Set[str] = {record.title for record in records if record.title in local_titles}

            for record in records:
                if record.title in local_titles:
                    result.kept += 1
                    continue

                needle = record.title.lower()
                renamed_to = next(
                    (title for title in local_titles if title not in claimed and needle in title.lower()),
                    None,
                )
                if renamed_to is not None:
                    self.metadata_store.update_title(date, record.title, renamed_to)
                    claimed.add(renamed_to)
                    result.renamed += 1
                    self.logger.info("Task renamed on %s: '%s' -> '%s'", date, record.title, renamed_to)
                else:
                    self.metadata_store.remove_metadata(date, record.title)
                    result.removed += 1
                    self.logger.info("Task '%s' no longer in daily note %s, forgetting it", record.title, date)

        self.logger.info(
            "Reconciliation: %d kept, %d renamed, %d removed",
            result.kept, result.renamed, result.removed,
        )
        return result

    # ------------------------------------------------------------------
    # Phase 2
    # ------------------------------------------------------------------
    def sync_remote_to_local(self) -> TransferResult:
        result = TransferResult()
        try:
            remote_tasks = self.remote_store.list_tasks()
            local_tasks = self._read_all_local_tasks()
        except Exception as exc:
            message = f"Remote to local sync failed: {exc}"
            self.logger.error(message)
            result.errors.append(message)
            return result

        for task in remote_tasks:
            if not has_legacy_tag(task.title):
                continue
            cleaned = clean_task_title(task.title)
            try:
                self.remote_store.update_title(task.id, cleaned)
                self.logger.info("Removed legacy tag from remote task %s: '%s'", task.id, cleaned)
                task.title = cleaned
            except Exception as exc:
                self.logger.error("Failed to clean title of remote task %s: %s", task.id, exc)

        present: Set[Tuple[Optional[str], str]] = {self._local_key(task) for task in local_tasks}

        for task in remote_tasks:
            title = clean_task_title(task.title)
            try:
                if task.is_completed:
                    continue
                if self.metadata_store.find_by_remote_id(task.id) is not None:
                    continue
                if not title:
                    self.logger.debug("Skipping remote task %s with empty title", task.id)
                    continue

                date = self._placement_date(task)
                key = (date, normalize_title(title))
                if key in present:
                    self.logger.debug("Remote task '%s' already in daily note %s", title, date)
                    continue

                container = self.local_store.create_container(date)
                self.local_store.append_task(container, title, self.task_section_heading)
                self.metadata_store.set_metadata(date, title, task.id)
                present.add(key)
                result.added += 1
            except Exception as exc:
                message = f'Failed to add task "{title}": {exc}'
                self.logger.error(message)
                result.errors.append(message)

        self.logger.info("Remote to local: %d task(s) added, %d error(s)", result.added, len(result.errors))
        return result

    # ------------------------------------------------------------------
    # Phase 3
    # ------------------------------------------------------------------
    def sync_local_to_remote(self) -> TransferResult:
        result = TransferResult()
        if not self.remote_store.get_default_list_id():
            message = "Local to remote sync failed: no default task list configured"
            self.logger.error(message)
            result.errors.append(message)
            return result

        try:
            local_tasks = self._read_all_local_tasks()
            remote_tasks = self.remote_store.list_tasks()
        except Exception as exc:
            message = f"Local to remote sync failed: {exc}"
            self.logger.error(message)
            result.errors.append(message)
            return result

        candidates: List[LocalTask] = []
        seen: Set[Tuple[Optional[str], str]] = set()
        for task in local_tasks:
            if task.completed or not task.start_date:
                continue
            if self.metadata_store.has_metadata(task.start_date, task.title):
                continue
            key = self._local_key(task)
            if not key[1] or key in seen:
                continue
            seen.add(key)
            candidates.append(task)

        remote_titles = {normalize_title(clean_task_title(task.title)) for task in remote_tasks}

        for task in candidates:
            normalized = normalize_title(clean_task_title(task.title))
            if normalized in remote_titles:
                self.logger.debug("Task '%s' already exists remotely, skipping", task.title)
                continue
            try:
                created = self.remote_store.create_task_with_start_date(task.title, task.start_date)
                self.metadata_store.set_metadata(task.start_date, clean_task_title(task.title), created.id)
                remote_titles.add(normalized)
                result.added += 1
            except Exception as exc:
                message = f'Failed to add task "{task.title}": {exc}'
                self.logger.error(message)
                result.errors.append(message)

        self.logger.info("Local to remote: %d task(s) added, %d error(s)", result.added, len(result.errors))
        return result

    # ------------------------------------------------------------------
    # Phase 4
    # ------------------------------------------------------------------
    def sync_completions(self) -> CompletionResult:
        result = CompletionResult()
        if not self.remote_store.get_default_list_id():
            message = "Completion sync failed: no default task list configured"
            self.logger.error(message)
            result.errors.append(message)
            return result

        try:
            remote_tasks = self.remote_store.list_tasks()
            local_tasks = self._read_all_local_tasks()
        except Exception as exc:
            message = f"Completion sync failed: {exc}"
            self.logger.error(message)
            result.errors.append(message)
            return result

        by_id: Dict[str, RemoteTask] = {task.id: task for task in remote_tasks}

        # Remote -> local
        for remote in remote_tasks:
            if not remote.is_completed:
                continue
            record = self.metadata_store.find_by_remote_id(remote.id)
            if record is None:
                continue
            local = next(
                (
                    task for task in local_tasks
                    if task.start_date == record.date and clean_task_title(task.title) == record.title
                ),
                None,
            )
            if local is None or local.completed:
                continue
            try:
                completion_date = self._completion_date(remote)
                self.local_store.set_task_completion(
                    local.container_path, local.line_number, True, completion_date
                )
                local.completed = True
                local.completion_date = completion_date
                result.completed += 1
                self.logger.info("Completed '%s' in daily note %s", local.title, record.date)
            except Exception as exc:
                message = f'Failed to complete task "{local.title}" locally: {exc}'
                self.logger.error(message)
                result.errors.append(message)

        # Local -> remote
        for local in local_tasks:
            if not local.completed or not local.start_date:
                continue
            try:
                remote_id = self.metadata_store.get_remote_id(local.start_date, local.title)
                if remote_id:
                    remote = by_id.get(remote_id)
                    if remote is None or remote.is_completed:
                        continue
                else:
                    remote = self._find_completion_fallback(local, remote_tasks)
                    if remote is None:
                        continue

                self.remote_store.complete(remote.id)
                remote.status = TaskStatus.COMPLETED
                result.completed += 1
                self.logger.info("Completed remote task '%s' (%s)", remote.title, remote.id)
            except Exception as exc:
                message = f'Failed to complete task "{local.title}" remotely: {exc}'
                self.logger.error(message)
                result.errors.append(message)

        self.logger.info("Completions: %d task(s) completed, %d error(s)", result.completed, len(result.errors))
        return result

    def _find_completion_fallback(self, local: LocalTask, remote_tasks: List[RemoteTask]) -> Optional[RemoteTask]:
        """Open remote task placed on the same date with the same normalized title."""
        for remote in remote_tasks:
            if remote.is_completed:
                continue
            if not titles_match(remote.title, local.title):
                continue
            if self._placement_date(remote) == local.start_date:
                return remote
        return None
