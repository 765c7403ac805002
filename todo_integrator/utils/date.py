"""
Date parsing and formatting utilities.
"""

import re
from datetime import date, datetime, timezone
from typing import Dict, Optional


ISO_DATE_RE = re.compile(r'^\d{4}-\d{2}-\d{2}$')
_FRACTION_RE = re.compile(r'\.(\d+)')

# Daily note filename formats and their strftime equivalents
FILENAME_FORMATS: Dict[str, str] = {
    "YYYY-MM-DD": "%Y-%m-%d",
    "DD-MM-YYYY": "%d-%m-%Y",
    "MM-DD-YYYY": "%m-%d-%Y",
    "YYYYMMDD": "%Y%m%d",
    "YYYY_MM_DD": "%Y_%m_%d",
}

# Moment-style tokens accepted in {{date:FORMAT}} template placeholders,
# longest first so "YYYY" wins over "YY".
_MOMENT_TOKENS = [
    ("YYYY", "%Y"),
    ("YY", "%y"),
    ("MMMM", "%B"),
    ("MMM", "%b"),
    ("MM", "%m"),
    ("dddd", "%A"),
    ("ddd", "%a"),
    ("DD", "%d"),
    ("HH", "%H"),
    ("mm", "%M"),
    ("ss", "%S"),
]
_MOMENT_RE = re.compile("|".join(token for token, _ in _MOMENT_TOKENS))


def parse_date(date_str: Optional[str]) -> Optional[date]:
    """
    Parse a date string into a date object.

    Handles:
    - ISO format (YYYY-MM-DD)
    - ISO datetime (YYYY-MM-DDTHH:MM:SS), only the date part is used

    Args:
        date_str: Date string to parse

    Returns:
        Parsed date object or None if invalid
    """
    if not date_str:
        return None

    if 'T' in date_str:
        date_str = date_str.split('T')[0]

    try:
        return datetime.strptime(date_str.strip(), '%Y-%m-%d').date()
    except ValueError:
        return None


def today_iso() -> str:
    """Today's local calendar date as YYYY-MM-DD."""
    return date.today().isoformat()


def is_iso_date(value: Optional[str]) -> bool:
    """True when value is a real calendar date in YYYY-MM-DD form."""
    if not value or not ISO_DATE_RE.match(value):
        return False
    return parse_date(value) is not None


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp as returned by Microsoft Graph.

    Graph emits seven fractional digits and may omit the offset; the
    fraction is truncated to microseconds and naive values are taken as UTC.

    Returns:
        Timezone-aware datetime or None if unparsable
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    text = _FRACTION_RE.sub(lambda m: '.' + m.group(1)[:6].ljust(6, '0'), text, count=1)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def to_local_date(value: Optional[str]) -> Optional[str]:
    """Convert a timestamp to the local calendar date (YYYY-MM-DD)."""
    parsed = parse_iso_datetime(value)
    if parsed is None:
        return None
    return parsed.astimezone().date().isoformat()


def to_utc_date(value: Optional[str]) -> Optional[str]:
    """Convert a timestamp to its UTC calendar date (YYYY-MM-DD)."""
    parsed = parse_iso_datetime(value)
    if parsed is None:
        return None
    return parsed.astimezone(timezone.utc).date().isoformat()


def literal_date(value: Optional[str]) -> Optional[str]:
    """
    Take the calendar-date component of a timestamp literally.

    Used for due dates, whose date component is meaningful on its own and
    must not shift when converted between zones.
    """
    if not value:
        return None
    candidate = value.strip()[:10]
    return candidate if is_iso_date(candidate) else None


def moment_to_strftime(pattern: str) -> str:
    """Translate a moment-style pattern (YYYY-MM-DD, dddd...) to strftime."""
    mapping = dict(_MOMENT_TOKENS)
    escaped = pattern.replace('%', '%%')
    return _MOMENT_RE.sub(lambda m: mapping[m.group(0)], escaped)


def format_with_pattern(d: date, pattern: str) -> str:
    """Format a date with a moment-style pattern."""
    return d.strftime(moment_to_strftime(pattern))


def filename_for_date(d: date, date_format: str) -> str:
    """Render the daily note basename (without extension) for a date."""
    return d.strftime(FILENAME_FORMATS[date_format])


def date_from_filename(stem: str, date_format: str) -> Optional[date]:
    """Parse a daily note basename back into a date, None if it does not match."""
    try:
        return datetime.strptime(stem, FILENAME_FORMATS[date_format]).date()
    except (KeyError, ValueError):
        return None
