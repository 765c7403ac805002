"""Daily note management: one markdown file per calendar date."""

import logging
import os
import re
from datetime import date, datetime
from typing import List, Optional

from ..core.exceptions import ConfigurationError, LocalStoreError
from ..core.models import LocalTask
from ..utils.date import (
    FILENAME_FORMATS,
    date_from_filename,
    filename_for_date,
    format_with_pattern,
    is_iso_date,
    parse_date,
)
from ..utils.io import atomic_write
from . import parser


DEFAULT_FOLDER = "Daily Notes"
DEFAULT_DATE_FORMAT = "YYYY-MM-DD"
DEFAULT_SECTION_HEADING = "## ToDo"

_TEMPLATE_DATE_FORMAT_RE = re.compile(r'\{\{date:([^}]+)\}\}')


class DailyNoteManager:
    """Reads and edits tasks in the daily notes of an Obsidian vault."""

    def __init__(
        self,
        vault_path: str,
        daily_notes_folder: str = DEFAULT_FOLDER,
        date_format: str = DEFAULT_DATE_FORMAT,
        template_path: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.vault_path = os.path.abspath(os.path.expanduser(vault_path))
        self.daily_notes_folder = self._validate_folder(daily_notes_folder or "")
        if date_format not in FILENAME_FORMATS:
            raise ConfigurationError(f"Unsupported daily note date format: {date_format}")
        self.date_format = date_format
        self.template_path = template_path
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def _validate_folder(folder: str) -> str:
        normalized = folder.replace("\\", "/").strip("/")
        if os.path.isabs(folder) or ".." in normalized.split("/"):
            raise ConfigurationError(f"Invalid daily notes folder: {folder}")
        return normalized

    @property
    def notes_dir(self) -> str:
        return os.path.join(self.vault_path, *[p for p in self.daily_notes_folder.split("/") if p])

    # ------------------------------------------------------------------
    # Containers
    # ------------------------------------------------------------------
    def path_for_date(self, date_str: str) -> str:
        """Absolute path of the daily note for a YYYY-MM-DD date.

        Raises:
            ValueError: if the date cannot be parsed
        """
        if not isinstance(date_str, str) or not is_iso_date(date_str):
            raise ValueError(f"Invalid date: {date_str!r}")
        target = parse_date(date_str)
        return os.path.join(self.notes_dir, f"{filename_for_date(target, self.date_format)}.md")

    def date_for_container(self, container_path: str) -> Optional[str]:
        """YYYY-MM-DD date of a daily note, None if its name is not a date."""
        stem = os.path.splitext(os.path.basename(container_path))[0]
        parsed = date_from_filename(stem, self.date_format)
        return parsed.isoformat() if parsed else None

    def ensure_today_container_exists(self) -> str:
        return self.create_container(date.today().isoformat())

    def create_container(self, date_str: str) -> str:
        """Create the daily note for a date unless it already exists."""
        path = self.path_for_date(date_str)
        if os.path.exists(path):
            return path

        content = self._new_note_content(parse_date(date_str))
        if not atomic_write(path, content):
            raise LocalStoreError(f"Could not create daily note {path}")
        self.logger.info(f"Created daily note {path}")
        return path

    def list_all_task_containers(self) -> List[str]:
        """Daily notes whose filename parses as a date, sorted by path."""
        notes_dir = self.notes_dir
        if not os.path.isdir(notes_dir):
            self.logger.warning(f"Daily notes folder not found: {notes_dir}")
            return []

        containers = []
        for root, _dirs, files in os.walk(notes_dir):
            for name in files:
                if not name.endswith(".md"):
                    continue
                path = os.path.join(root, name)
                if self.date_for_container(path) is None:
                    self.logger.debug("Skipping non-date note %s", path)
                    continue
                containers.append(path)
        return sorted(containers)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def read_tasks(self, container: str, section_heading: Optional[str] = None) -> List[LocalTask]:
        """
        Parse the checklist lines of a daily note.

        With a section heading only lines inside that section are read; a
        note without the section yields no tasks. A missing file yields no
        tasks.
        """
        lines = self._read_lines(container)
        if lines is None:
            return []

        start, end = 0, len(lines)
        if section_heading:
            bounds = parser.find_section_bounds(lines, section_heading)
            if bounds is None:
                self.logger.debug("Section '%s' not found in %s", section_heading, container)
                return []
            start, end = bounds[0] + 1, bounds[1]

        start_date = self.date_for_container(container)
        tasks = []
        for index in range(start, end):
            parsed = parser.parse_task_line(lines[index])
            if parsed is None:
                continue
            tasks.append(LocalTask(
                title=parsed['title'],
                completed=parsed['completed'],
                line_number=index + 1,
                container_path=container,
                start_date=start_date,
                completion_date=parsed['completion_date'],
                indent=parsed['indent'],
            ))
        return tasks

    def get_all_tasks(self, section_heading: Optional[str] = None) -> List[LocalTask]:
        """Tasks across every daily note; unreadable notes are skipped."""
        tasks: List[LocalTask] = []
        for container in self.list_all_task_containers():
            try:
                tasks.extend(self.read_tasks(container, section_heading))
            except LocalStoreError as exc:
                self.logger.error(f"Skipping {container}: {exc}")
        return tasks

    def append_task(self, container_path: str, title: str, section_heading: Optional[str] = None) -> None:
        """Insert an open task after the last task of the section, creating the section if needed."""
        heading = (section_heading or DEFAULT_SECTION_HEADING).strip()
        lines = self._read_lines(container_path)
        if lines is None:
            raise LocalStoreError(f"Daily note not found: {container_path}")

        bounds = parser.find_section_bounds(lines, heading)
        if bounds is None:
            index = parser.find_new_section_index(lines)
            lines[index:index] = [heading, ""]
            heading_index = index
            self.logger.debug("Created section '%s' in %s", heading, container_path)
        else:
            heading_index = bounds[0]

        insertion = parser.find_task_insertion_index(lines, heading_index)
        lines.insert(insertion, parser.format_task_line(title))
        self._write_lines(container_path, lines)
        self.logger.info(f"Added task '{title}' to {os.path.basename(container_path)}")

    def set_task_completion(
        self,
        container_path: str,
        line_number: int,
        completed: bool,
        completion_date: Optional[str] = None,
    ) -> None:
        """Flip the checkbox on a 1-based line and update its completion marker."""
        lines = self._read_lines(container_path)
        if lines is None:
            raise LocalStoreError(f"Daily note not found: {container_path}")
        if line_number < 1 or line_number > len(lines):
            raise LocalStoreError(f"Line {line_number} is out of bounds for {container_path}")

        try:
            lines[line_number - 1] = parser.set_line_completion(lines[line_number - 1], completed, completion_date)
        except ValueError as exc:
            raise LocalStoreError(f"{container_path}:{line_number}: {exc}") from exc

        self._write_lines(container_path, lines)
        self.logger.info(
            "Task completion updated in %s line %d (completed=%s, date=%s)",
            os.path.basename(container_path), line_number, completed, completion_date,
        )

    # ------------------------------------------------------------------
    # File helpers
    # ------------------------------------------------------------------
    def _read_lines(self, path: str) -> Optional[List[str]]:
        if not os.path.exists(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as handle:
                return handle.read().split("\n")
        except (OSError, UnicodeDecodeError) as exc:
            raise LocalStoreError(f"Could not read {path}: {exc}") from exc

    def _write_lines(self, path: str, lines: List[str]) -> None:
        if not atomic_write(path, "\n".join(lines)):
            raise LocalStoreError(f"Could not write {path}")

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------
    def _new_note_content(self, note_date: date) -> str:
        template = self._load_template()
        if template is None:
            return self.default_note_content(note_date)
        return self.render_template(template, note_date)

    def _load_template(self) -> Optional[str]:
        if not self.template_path:
            return None

        path = self.template_path
        if not os.path.isabs(path):
            path = os.path.join(self.vault_path, path)
        if not path.endswith(".md") and not os.path.exists(path):
            path += ".md"

        try:
            with open(path, "r", encoding="utf-8") as handle:
                return handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.error("Failed to load template %s, using default content: %s", path, exc)
            return None

    def render_template(self, template: str, note_date: date, now: Optional[datetime] = None) -> str:
        """Expand {{date}}, {{date:FORMAT}}, {{title}}, {{time}} and {{timestamp}}."""
        now = now or datetime.now()
        at = datetime.combine(note_date, now.time())

        content = _TEMPLATE_DATE_FORMAT_RE.sub(
            lambda m: format_with_pattern(note_date, m.group(1).strip()), template
        )
        return (
            content
            .replace("{{date}}", filename_for_date(note_date, self.date_format))
            .replace("{{title}}", f"Daily Note - {self._long_date(note_date)}")
            .replace("{{time}}", at.strftime("%H:%M"))
            .replace("{{timestamp}}", at.strftime("%Y-%m-%d %H:%M:%S"))
        )

    @staticmethod
    def _long_date(note_date: date) -> str:
        return f"{note_date.strftime('%A, %B')} {note_date.day}, {note_date.year}"

    def default_note_content(self, note_date: date) -> str:
        return (
            f"# Daily Note - {self._long_date(note_date)}\n"
            "\n"
            f"{DEFAULT_SECTION_HEADING}\n"
            "\n"
            "## Notes\n"
            "\n"
            "## Reflections\n"
            "\n"
        )
