"""
Markdown task and section parsing utilities for daily notes.
"""

import re
from typing import Any, Dict, List, Optional, Tuple


# Regular expressions for parsing tasks
TASK_RE = re.compile(r'^(\s*)-\s*\[([ xX])\]\s*(.*?)\s*$')
COMPLETION_DATE_RE = re.compile(r'\s*✅\s*(\d{4}-\d{2}-\d{2})')
HEADING_RE = re.compile(r'^(#+)\s')
CHECKBOX_RE = re.compile(r'^(\s*)-\s*\[([ xX])\]')

COMPLETION_MARK = '✅'


def parse_task_line(line: str) -> Optional[Dict[str, Any]]:
    """
    Parse a markdown checklist line into components.

    Args:
        line: Raw markdown line

    Returns:
        Dictionary with indent, completed, title and completion_date, or
        None if the line is not a task or its title is empty
    """
    match = TASK_RE.match(line)
    if not match:
        return None

    indent, status_char, content = match.groups()

    completion_date = None
    completion_match = COMPLETION_DATE_RE.search(content)
    if completion_match:
        completion_date = completion_match.group(1)
        content = COMPLETION_DATE_RE.sub('', content)

    title = content.strip()
    if not title:
        return None

    return {
        'indent': indent,
        'completed': status_char.lower() == 'x',
        'title': title,
        'completion_date': completion_date,
    }


def is_task_line(line: str) -> bool:
    return CHECKBOX_RE.match(line) is not None


def format_task_line(
    title: str,
    completed: bool = False,
    completion_date: Optional[str] = None,
    indent: str = "",
) -> str:
    """Render a checklist line."""
    parts = [f"{indent}- [{'x' if completed else ' '}] {title}"]
    if completed and completion_date:
        parts.append(f"{COMPLETION_MARK} {completion_date}")
    return " ".join(parts)


def set_line_completion(line: str, completed: bool, completion_date: Optional[str] = None) -> str:
    """
    Toggle the checkbox of a task line.

    Completing replaces any existing completion marker with the given date
    (an existing marker is kept when no date is given); reopening removes it.

    Raises:
        ValueError: if the line is not a task line
    """
    match = CHECKBOX_RE.match(line)
    if not match:
        raise ValueError(f"Not a task line: {line!r}")

    indent = match.group(1)
    rest = line[match.end():].rstrip()

    if completed:
        if completion_date:
            rest = COMPLETION_DATE_RE.sub('', rest).rstrip()
            rest = f"{rest} {COMPLETION_MARK} {completion_date}"
        return f"{indent}- [x]{rest}"

    rest = COMPLETION_DATE_RE.sub('', rest).rstrip()
    return f"{indent}- [ ]{rest}"


def heading_level(line: str) -> int:
    """Number of leading '#' of a heading line, 0 for non-headings."""
    match = HEADING_RE.match(line.strip())
    return len(match.group(1)) if match else 0


def find_section_bounds(lines: List[str], heading: str) -> Optional[Tuple[int, int]]:
    """
    Locate a section by its heading line.

    The section ends at the next heading of the same or a higher level.

    Returns:
        (heading index, end index exclusive) or None if the heading is absent
    """
    target = heading.strip()
    level = heading_level(target) or 1

    for index, line in enumerate(lines):
        if line.strip() != target:
            continue
        end = len(lines)
        for later in range(index + 1, len(lines)):
            next_level = heading_level(lines[later])
            if next_level and next_level <= level:
                end = later
                break
        return index, end

    return None


def find_task_insertion_index(lines: List[str], heading_index: int) -> int:
    """
    Index right after the last task line of the section at ``heading_index``.

    Scanning stops at the next heading or the first non-empty, non-task line.
    """
    insertion = heading_index + 1
    for index in range(heading_index + 1, len(lines)):
        stripped = lines[index].strip()
        if heading_level(stripped):
            break
        if is_task_line(stripped):
            insertion = index + 1
            continue
        if stripped:
            break
    return insertion


def find_new_section_index(lines: List[str]) -> int:
    """Where to insert a missing task section: before the first '## ' heading."""
    for index, line in enumerate(lines):
        stripped = line.strip()
        if stripped.startswith('# '):
            continue
        if stripped.startswith('## '):
            return index
    return len(lines)
