"""
Configuration management for todo-integrator.
"""

import os
from pathlib import Path
from typing import Optional

from .models import SyncConfig
from .paths import get_path_manager


ACCESS_TOKEN_ENV_VAR = "TODO_INTEGRATOR_ACCESS_TOKEN"


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    return get_path_manager().config_path


def load_config(config_path: Optional[str] = None) -> SyncConfig:
    """
    Load configuration from file or return defaults.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        SyncConfig object
    """
    if config_path is None:
        config_path = str(get_default_config_path())

    return SyncConfig.load_from_file(config_path)


def save_config(config: SyncConfig, config_path: Optional[str] = None):
    """
    Save configuration to file.

    Args:
        config: SyncConfig object to save
        config_path: Optional path to save to. Uses default if not provided.
    """
    if config_path is None:
        manager = get_path_manager()
        manager.ensure_directories()
        config_path = str(manager.config_path)

    config.save_to_file(config_path)


def get_access_token() -> Optional[str]:
    """Read the Microsoft Graph access token from the environment."""
    token = os.environ.get(ACCESS_TOKEN_ENV_VAR, "").strip()
    return token or None


def get_log_dir() -> Path:
    """Get the log directory."""
    manager = get_path_manager()
    manager.ensure_directories()
    return manager.log_dir
