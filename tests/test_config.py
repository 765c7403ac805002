"""
Tests for configuration loading, saving and validation.
"""

import json
import os

import pytest

from todo_integrator.core.config import (
    get_access_token,
    get_default_config_path,
    load_config,
    save_config,
)
from todo_integrator.core.exceptions import ConfigurationError
from todo_integrator.core.models import SyncConfig
from todo_integrator.core.paths import get_path_manager, platform_config_dir


class TestPaths:

    def test_home_override(self, isolated_home):
        manager = get_path_manager()
        assert manager.working_dir == isolated_home.resolve()
        assert manager.config_path == isolated_home.resolve() / "config.json"
        assert manager.metadata_path == isolated_home.resolve() / "data" / "task_metadata.json"
        assert manager.log_path == isolated_home.resolve() / "logs" / "todo-integrator.log"

    def test_ensure_directories(self, isolated_home):
        get_path_manager().ensure_directories()
        assert (isolated_home / "data").is_dir()
        assert (isolated_home / "logs").is_dir()

    def test_platform_dir_honours_xdg(self, monkeypatch, tmp_path):
        monkeypatch.setattr("todo_integrator.core.paths.sys.platform", "linux")
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert platform_config_dir() == tmp_path / "todo-integrator"

    def test_default_metadata_path_follows_home(self, isolated_home):
        config = SyncConfig()
        assert config.metadata_path == str(isolated_home.resolve() / "data" / "task_metadata.json")


class TestLoadSave:

    def test_missing_file_gives_defaults(self):
        config = load_config()
        assert config.vault_path is None
        assert config.todo_list_name == "Obsidian Tasks"
        assert config.stale_metadata_days == 90

    @pytest.mark.parametrize("content", ["{broken", "[1, 2]"])
    def test_unusable_file_gives_defaults(self, tmp_path, content):
        path = tmp_path / "config.json"
        path.write_text(content, encoding="utf-8")
        assert load_config(str(path)).task_section_heading == "## ToDo"

    def test_round_trip(self, vault_path):
        config = SyncConfig(
            vault_path=vault_path,
            daily_notes_folder="Journal",
            date_format="YYYYMMDD",
            todo_list_name="Work",
            default_list_id="L1",
            stale_metadata_days=30,
            log_level="debug",
            log_to_file=True,
        )
        save_config(config)

        loaded = load_config()

        assert loaded == config

    def test_nested_layout_on_disk(self, tmp_path, vault_path):
        path = tmp_path / "cfg" / "config.json"
        save_config(SyncConfig(vault_path=vault_path, default_list_id="L1"), str(path))

        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["obsidian"]["vault_path"] == os.path.abspath(vault_path)
        assert data["todo"] == {"list_name": "Obsidian Tasks", "default_list_id": "L1"}
        assert data["logging"] == {"level": "info", "to_file": False}

    def test_default_path(self, isolated_home):
        assert get_default_config_path() == isolated_home.resolve() / "config.json"


class TestValidate:

    def test_valid(self, vault_path):
        SyncConfig(vault_path=vault_path).validate()

    @pytest.mark.parametrize("changes", [
        {"vault_path": None},
        {"vault_path": "/definitely/not/here"},
        {"date_format": "D.M.Y"},
        {"daily_notes_folder": "../escape"},
        {"stale_metadata_days": 0},
        {"log_level": "chatty"},
    ])
    def test_invalid(self, vault_path, changes):
        values = {"vault_path": vault_path}
        values.update(changes)
        with pytest.raises(ConfigurationError):
            SyncConfig(**values).validate()


def test_access_token_from_environment(monkeypatch):
    assert get_access_token() is None
    monkeypatch.setenv("TODO_INTEGRATOR_ACCESS_TOKEN", "  abc  ")
    assert get_access_token() == "abc"
