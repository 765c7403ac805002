"""
Domain models for todo-integrator.

This module contains the core data structures shared by the daily-notes
store, the Microsoft To Do client and the sync engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import os
import json

from .exceptions import ConfigurationError
from .paths import get_path_manager
from ..utils.date import FILENAME_FORMATS


def _normalize_path(path: str) -> str:
    """Expand user and convert to absolute path."""
    return os.path.abspath(os.path.expanduser(path))


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class TaskStatus(Enum):
    """Remote task status as reported by Microsoft To Do."""

    NOT_STARTED = "notStarted"
    IN_PROGRESS = "inProgress"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: Optional[str]) -> TaskStatus:
        # Graph also knows waitingOnOthers/deferred; treat them as open.
        try:
            return cls(value)
        except ValueError:
            return cls.NOT_STARTED


@dataclass
class DateTimeTimeZone:
    """Graph dateTimeTimeZone value: a literal timestamp plus a zone name."""

    date_time: str
    time_zone: str = "UTC"

    def to_dict(self) -> Dict[str, str]:
        return {"dateTime": self.date_time, "timeZone": self.time_zone}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional[DateTimeTimeZone]:
        if not data or not data.get("dateTime"):
            return None
        return cls(date_time=data["dateTime"], time_zone=data.get("timeZone") or "UTC")


@dataclass
class RemoteTask:
    """Represents a task from a Microsoft To Do list."""

    id: str
    title: str
    status: TaskStatus = TaskStatus.NOT_STARTED
    created_at: str = ""
    completed_at: Optional[str] = None
    due: Optional[DateTimeTimeZone] = None

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED

    @classmethod
    def from_graph(cls, payload: Dict[str, Any]) -> RemoteTask:
        """Build a task from a Graph ``todoTask`` resource."""
        completed = payload.get("completedDateTime")
        if isinstance(completed, dict):
            completed = completed.get("dateTime")

        return cls(
            id=payload.get("id", ""),
            title=payload.get("title") or "",
            status=TaskStatus.parse(payload.get("status")),
            created_at=payload.get("createdDateTime") or "",
            completed_at=completed or None,
            due=DateTimeTimeZone.from_dict(payload.get("dueDateTime")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "status": self.status.value,
            "createdDateTime": self.created_at,
            "completedDateTime": self.completed_at,
            "dueDateTime": self.due.to_dict() if self.due else None,
        }


@dataclass
class LocalTask:
    """Represents a checklist line parsed from a daily note."""

    title: str
    completed: bool
    line_number: int
    container_path: str
    start_date: Optional[str] = None
    completion_date: Optional[str] = None
    indent: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "completed": self.completed,
            "line": self.line_number,
            "file": self.container_path,
            "start_date": self.start_date,
            "completion_date": self.completion_date,
        }


@dataclass
class TaskMetadata:
    """Identity record linking a daily-note task to a remote task."""

    remote_id: str
    date: str
    title: str
    last_synced: str = field(default_factory=utc_now_iso)

    @property
    def key(self) -> str:
        return make_metadata_key(self.date, self.title)

    def last_synced_at(self) -> Optional[datetime]:
        """Parse ``last_synced``; None when the stored value is unusable."""
        try:
            parsed = datetime.fromisoformat(self.last_synced)
        except (TypeError, ValueError):
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "remote_id": self.remote_id,
            "date": self.date,
            "title": self.title,
            "last_synced": self.last_synced,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TaskMetadata:
        """Build a record, also accepting the camelCase layout of older blobs."""
        remote_id = data.get("remote_id") or data.get("msftTaskId")
        if not remote_id or not data.get("date") or data.get("title") is None:
            raise ValueError(f"Incomplete metadata record: {data!r}")

        last_synced = data.get("last_synced")
        if last_synced is None and "lastSynced" in data:
            # Epoch milliseconds
            last_synced = datetime.fromtimestamp(
                float(data["lastSynced"]) / 1000.0, tz=timezone.utc
            ).isoformat()

        return cls(
            remote_id=str(remote_id),
            date=str(data["date"]),
            title=str(data["title"]),
            last_synced=last_synced or utc_now_iso(),
        )


def make_metadata_key(date: str, title: str) -> str:
    """Composite identity key ``<date>::<title>``."""
    return f"{date}::{title}"


@dataclass
class TransferResult:
    """Outcome of a phase that copies tasks from one side to the other."""

    added: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"added": self.added, "errors": list(self.errors)}


@dataclass
class CompletionResult:
    """Outcome of the completion phase."""

    completed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"completed": self.completed, "errors": list(self.errors)}


@dataclass
class ReconcileResult:
    """Outcome of identity-store reconciliation against the daily notes."""

    kept: int = 0
    renamed: int = 0
    removed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kept": self.kept,
            "renamed": self.renamed,
            "removed": self.removed,
            "errors": list(self.errors),
        }


@dataclass
class SyncResult:
    """Aggregate outcome of a full sync cycle."""

    remote_to_local: TransferResult = field(default_factory=TransferResult)
    local_to_remote: TransferResult = field(default_factory=TransferResult)
    completions: CompletionResult = field(default_factory=CompletionResult)
    reconciliation: ReconcileResult = field(default_factory=ReconcileResult)
    stale_removed: int = 0
    timestamp: str = field(default_factory=utc_now_iso)

    @property
    def total_added(self) -> int:
        return self.remote_to_local.added + self.local_to_remote.added

    @property
    def total_completed(self) -> int:
        return self.completions.completed

    @property
    def all_errors(self) -> List[str]:
        return (
            self.reconciliation.errors
            + self.remote_to_local.errors
            + self.local_to_remote.errors
            + self.completions.errors
        )

    @property
    def has_errors(self) -> bool:
        return bool(self.all_errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "remote_to_local": self.remote_to_local.to_dict(),
            "local_to_remote": self.local_to_remote.to_dict(),
            "completions": self.completions.to_dict(),
            "reconciliation": self.reconciliation.to_dict(),
            "stale_removed": self.stale_removed,
            "timestamp": self.timestamp,
        }


LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass
class SyncConfig:
    """Configuration for sync operations."""

    vault_path: Optional[str] = None
    daily_notes_folder: str = "Daily Notes"
    date_format: str = "YYYY-MM-DD"
    template_path: Optional[str] = None
    task_section_heading: str = "## ToDo"
    todo_list_name: str = "Obsidian Tasks"
    default_list_id: Optional[str] = None
    metadata_path: Optional[str] = None
    stale_metadata_days: int = 90
    log_level: str = "info"
    log_to_file: bool = False
    last_sync_time: Optional[str] = None

    def __post_init__(self) -> None:
        if self.metadata_path is None:
            self.metadata_path = str(get_path_manager().metadata_path)
        else:
            self.metadata_path = _normalize_path(self.metadata_path)

        if self.vault_path:
            self.vault_path = _normalize_path(self.vault_path)

    def validate(self) -> None:
        """Raise ConfigurationError when the config cannot drive a sync."""
        if not self.vault_path:
            raise ConfigurationError("No Obsidian vault configured (set 'vault_path').")
        if not os.path.isdir(self.vault_path):
            raise ConfigurationError(f"Configured vault does not exist: {self.vault_path}")
        if self.date_format not in FILENAME_FORMATS:
            raise ConfigurationError(
                f"Unsupported date format '{self.date_format}'. "
                f"Choose one of: {', '.join(FILENAME_FORMATS)}"
            )
        folder = self.daily_notes_folder or ""
        if os.path.isabs(folder) or ".." in folder.replace("\\", "/").split("/"):
            raise ConfigurationError(f"Invalid daily notes folder: {folder}")
        if self.stale_metadata_days < 1:
            raise ConfigurationError("stale_metadata_days must be at least 1")
        if self.log_level.lower() not in LOG_LEVELS:
            raise ConfigurationError(f"Unknown log level '{self.log_level}'")

    @classmethod
    def load_from_file(cls, config_path: str) -> SyncConfig:
        config_path = _normalize_path(config_path)
        if not os.path.exists(config_path):
            return cls()

        try:
            with open(config_path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (json.JSONDecodeError, OSError):
            return cls()

        if not isinstance(data, dict):
            return cls()

        obsidian = data.get("obsidian", {})
        todo = data.get("todo", {})
        sync = data.get("sync", {})
        logging_cfg = data.get("logging", {})

        return cls(
            vault_path=obsidian.get("vault_path"),
            daily_notes_folder=obsidian.get("daily_notes_folder", "Daily Notes"),
            date_format=obsidian.get("date_format", "YYYY-MM-DD"),
            template_path=obsidian.get("template_path"),
            task_section_heading=obsidian.get("task_section_heading", "## ToDo"),
            todo_list_name=todo.get("list_name", "Obsidian Tasks"),
            default_list_id=todo.get("default_list_id"),
            metadata_path=sync.get("metadata_path"),
            stale_metadata_days=int(sync.get("stale_metadata_days", 90)),
            last_sync_time=sync.get("last_sync_time"),
            log_level=logging_cfg.get("level", "info"),
            log_to_file=bool(logging_cfg.get("to_file", False)),
        )

    def save_to_file(self, config_path: str) -> None:
        config_path = _normalize_path(config_path)
        os.makedirs(os.path.dirname(config_path), exist_ok=True)

        data = {
            "obsidian": {
                "vault_path": self.vault_path,
                "daily_notes_folder": self.daily_notes_folder,
                "date_format": self.date_format,
                "template_path": self.template_path,
                "task_section_heading": self.task_section_heading,
            },
            "todo": {
                "list_name": self.todo_list_name,
                "default_list_id": self.default_list_id,
            },
            "sync": {
                "metadata_path": self.metadata_path,
                "stale_metadata_days": self.stale_metadata_days,
                "last_sync_time": self.last_sync_time,
            },
            "logging": {
                "level": self.log_level,
                "to_file": self.log_to_file,
            },
        }

        with open(config_path, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2, ensure_ascii=False)
