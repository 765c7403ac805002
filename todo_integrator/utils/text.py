"""
Title cleaning and normalization utilities.

Older releases embedded a ``[todo::<id>]`` marker in task titles to carry
the remote identifier. Those markers are stripped wherever a title crosses
a store boundary or is used as an identity key.
"""

import re
from typing import Optional


# Non-greedy up to the first closing bracket: "[[todo::x]]" leaves the
# outer literal brackets behind ("[]").
LEGACY_TAG_RE = re.compile(r'\[todo::[^\]]*\]')
WHITESPACE_RE = re.compile(r'\s+')


def clean_task_title(title: Optional[str]) -> str:
    """
    Remove legacy ``[todo::...]`` markers from a title.

    Every marker is removed, runs of whitespace collapse to a single
    space and the result is trimmed. The function is idempotent.

    Args:
        title: Raw task title

    Returns:
        Cleaned title ("" for None)
    """
    if not title:
        return ""
    cleaned = LEGACY_TAG_RE.sub('', title)
    return WHITESPACE_RE.sub(' ', cleaned).strip()


def normalize_title(title: Optional[str]) -> str:
    """Trim, lower-case and collapse whitespace for equality checks."""
    if not title:
        return ""
    return WHITESPACE_RE.sub(' ', title.strip().lower())


def has_legacy_tag(title: Optional[str]) -> bool:
    """Return True if the title still carries a ``[todo::`` marker."""
    return bool(title) and '[todo::' in title


def titles_match(left: Optional[str], right: Optional[str]) -> bool:
    """Compare two titles after cleaning and normalization."""
    return normalize_title(clean_task_title(left)) == normalize_title(clean_task_title(right))
