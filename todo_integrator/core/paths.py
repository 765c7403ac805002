"""
Where todo-integrator keeps its files.

Everything lives under one working directory::

    <working dir>/config.json
    <working dir>/data/task_metadata.json
    <working dir>/logs/todo-integrator.log

The working directory is ``$TODO_INTEGRATOR_HOME`` when set, otherwise the
platform's per-user configuration directory.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional


APP_DIR_NAME = "todo-integrator"


def platform_config_dir(app_name: str = APP_DIR_NAME) -> Path:
    """Per-user configuration directory for the running platform."""
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / app_name
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA")
        return (Path(base) if base else home / "AppData" / "Roaming") / app_name
    base = os.environ.get("XDG_CONFIG_HOME")
    return (Path(base) if base else home / ".config") / app_name


class PathManager:
    """Resolves and creates the working directory layout."""

    APP_DIR_NAME = APP_DIR_NAME
    CONFIG_FILE = "config.json"
    METADATA_FILE = "task_metadata.json"
    LOG_FILE = "todo-integrator.log"
    HOME_ENV_VAR = "TODO_INTEGRATOR_HOME"

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self._root: Optional[Path] = None

    @property
    def working_dir(self) -> Path:
        """Working directory, resolved once per manager."""
        if self._root is None:
            override = os.environ.get(self.HOME_ENV_VAR)
            if override:
                self._root = Path(override).expanduser().resolve()
                self.logger.debug(f"{self.HOME_ENV_VAR} points to {self._root}")
            else:
                self._root = platform_config_dir(self.APP_DIR_NAME)
        return self._root

    @property
    def data_dir(self) -> Path:
        return self.working_dir / "data"

    @property
    def log_dir(self) -> Path:
        return self.working_dir / "logs"

    @property
    def config_path(self) -> Path:
        return self.working_dir / self.CONFIG_FILE

    @property
    def metadata_path(self) -> Path:
        return self.data_dir / self.METADATA_FILE

    @property
    def log_path(self) -> Path:
        return self.log_dir / self.LOG_FILE

    def ensure_directories(self) -> None:
        for directory in (self.working_dir, self.data_dir, self.log_dir):
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                self.logger.debug(f"Created {directory}")


_path_manager: Optional[PathManager] = None


def get_path_manager() -> PathManager:
    """Return the process-wide path manager."""
    global _path_manager
    if _path_manager is None:
        _path_manager = PathManager()
    return _path_manager


def reset_path_manager() -> None:
    """Forget the cached manager so the next lookup re-reads the environment."""
    global _path_manager
    _path_manager = None
