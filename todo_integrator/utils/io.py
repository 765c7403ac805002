"""
File helpers shared by the identity store, the config and the daily notes.

Writes go to a temporary file in the target directory and are moved into
place with ``os.replace``. Readers and writers coordinate through an
advisory lock on a ``<name>.lock`` companion file where fcntl exists.
"""

import contextlib
import errno
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Dict, IO, Iterator, Optional

try:  # POSIX only
    import fcntl  # type: ignore
except ImportError:  # pragma: no cover - Windows
    fcntl = None  # type: ignore


DEFAULT_LOCK_TIMEOUT = 8.0  # seconds
LOCK_POLL_INTERVAL = 0.05  # seconds

logger = logging.getLogger(__name__)


def _expand(file_path: str) -> Path:
    return Path(os.path.expanduser(str(file_path)))


def _acquire(fd: int, operation: int, deadline: float, target: Path) -> None:
    """Poll a non-blocking flock until it succeeds or the deadline passes."""
    while True:
        try:
            fcntl.flock(fd, operation | fcntl.LOCK_NB)
            return
        except OSError as exc:  # pragma: no cover - timing dependent
            if exc.errno not in (errno.EACCES, errno.EAGAIN):
                raise
            if time.monotonic() >= deadline:
                raise TimeoutError(f"Timed out waiting for lock on {target}") from exc
            time.sleep(LOCK_POLL_INTERVAL)


@contextlib.contextmanager
def locked(target: Path, exclusive: bool, timeout: float = DEFAULT_LOCK_TIMEOUT) -> Iterator[None]:
    """Hold a shared or exclusive advisory lock for ``target``; no-op without fcntl."""
    if fcntl is None:
        yield
        return

    lock_path = target.parent / f"{target.name}.lock"
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    operation = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH

    with open(lock_path, "a") as lock_file:
        _acquire(lock_file.fileno(), operation, time.monotonic() + timeout, target)
        try:
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


def _replace_atomically(target: Path, write: Callable[[IO[str]], None], suffix: str, lock_timeout: float) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)

    staged: Optional[Path] = None
    try:
        with locked(target, exclusive=True, timeout=lock_timeout):
            with tempfile.NamedTemporaryFile(
                mode='w', dir=str(target.parent), prefix='.tmp_', suffix=suffix,
                delete=False, encoding='utf-8',
            ) as handle:
                staged = Path(handle.name)
                write(handle)
            os.replace(str(staged), str(target))
    finally:
        if staged is not None and staged.exists():
            with contextlib.suppress(OSError):
                staged.unlink()


def safe_read_json(file_path: str, default: Optional[Dict] = None, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> Dict[str, Any]:
    """
    Read a JSON file under a shared lock.

    Args:
        file_path: Path to JSON file
        default: Returned when the file is missing, locked too long or invalid

    Returns:
        Parsed JSON data or default value
    """
    if default is None:
        default = {}

    target = _expand(file_path)
    if not target.exists():
        return default

    try:
        with locked(target, exclusive=False, timeout=lock_timeout):
            with target.open('r', encoding='utf-8') as handle:
                return json.load(handle)
    except TimeoutError as exc:
        logger.warning(f"Timed out waiting to read {target}: {exc}")
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning(f"Failed to read {target}: {exc}")
    return default


def write_json(file_path: str, data: Dict[str, Any], indent: int = 2, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> None:
    """
    Atomically replace a JSON file.

    Raises:
        OSError, TimeoutError, TypeError: when the file cannot be written;
        the previous content is left in place
    """
    _replace_atomically(
        _expand(file_path),
        lambda handle: json.dump(data, handle, indent=indent, ensure_ascii=False),
        '.json',
        lock_timeout,
    )


def safe_write_json(file_path: str, data: Dict[str, Any], indent: int = 2, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> bool:
    """Like :func:`write_json` but logs failures and returns False instead of raising."""
    try:
        write_json(file_path, data, indent, lock_timeout=lock_timeout)
        return True
    except (OSError, TimeoutError, TypeError, ValueError) as exc:
        logger.error(f"Error writing to {file_path}: {exc}")
        return False


def atomic_write(file_path: str, content: str, *, lock_timeout: float = DEFAULT_LOCK_TIMEOUT) -> bool:
    """
    Atomically replace a text file.

    Returns:
        True if successful, False otherwise
    """
    try:
        _replace_atomically(_expand(file_path), lambda handle: handle.write(content), '', lock_timeout)
        return True
    except (OSError, TimeoutError) as exc:
        logger.error(f"Error writing to {file_path}: {exc}")
        return False
