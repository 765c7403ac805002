"""
Store interfaces used by the sync engine.

The engine depends on these Protocols rather than on the daily-notes
manager or the Graph client directly, so either side can be replaced by
an in-memory fake in tests.
"""

from typing import List, Optional, Protocol

from ..core.models import LocalTask, RemoteTask


class LocalTaskStore(Protocol):
    """Date-partitioned document store (one container per calendar date)."""

    def ensure_today_container_exists(self) -> str: ...

    def create_container(self, date: str) -> str: ...

    def list_all_task_containers(self) -> List[str]: ...

    def read_tasks(self, container: str, section_heading: Optional[str] = None) -> List[LocalTask]: ...

    def append_task(self, container_path: str, title: str, section_heading: Optional[str] = None) -> None: ...

    def set_task_completion(
        self,
        container_path: str,
        line_number: int,
        completed: bool,
        completion_date: Optional[str] = None,
    ) -> None: ...

    def path_for_date(self, date: str) -> str:
        """Container path for a YYYY-MM-DD date; raises ValueError if unparsable."""
        ...


class RemoteTaskStore(Protocol):
    """Remote task service operating on a single default list."""

    def list_tasks(self) -> List[RemoteTask]: ...

    def create_task(self, title: str) -> RemoteTask: ...

    def create_task_with_start_date(self, title: str, date: str) -> RemoteTask: ...

    def update_title(self, task_id: str, new_title: str) -> None: ...

    def complete(self, task_id: str) -> None: ...

    def get_default_list_id(self) -> Optional[str]: ...
