#!/usr/bin/env python3
"""
Global pytest configuration and fixtures.

This module provides:
- An isolated working directory so tests never touch the user's config
- Temporary vault fixtures with a daily notes folder
- In-memory identity store backends
"""

import os
import shutil
import sys
import tempfile
from typing import Generator

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from todo_integrator.core.paths import reset_path_manager
from tests.fakes import FakeLocalStore, FakeRemoteStore, MemoryBlob


def pytest_configure(config):
    """Configure pytest environment."""
    config.addinivalue_line("markers", "integration: runs the synchronizer against real daily-note files")


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point the working directory at a throwaway location."""
    home = tmp_path / "todo-integrator-home"
    monkeypatch.setenv("TODO_INTEGRATOR_HOME", str(home))
    monkeypatch.delenv("TODO_INTEGRATOR_ACCESS_TOKEN", raising=False)
    reset_path_manager()
    yield home
    reset_path_manager()


@pytest.fixture
def temp_dir() -> Generator[str, None, None]:
    """Create a temporary directory for test isolation."""
    temp_path = tempfile.mkdtemp(prefix="todo_integrator_test_")
    try:
        yield temp_path
    finally:
        shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def vault_path(temp_dir: str) -> str:
    """An empty vault containing a 'Daily Notes' folder."""
    path = os.path.join(temp_dir, "vault")
    os.makedirs(os.path.join(path, "Daily Notes"))
    return path


@pytest.fixture
def blob() -> MemoryBlob:
    return MemoryBlob()


@pytest.fixture
def local_store() -> FakeLocalStore:
    return FakeLocalStore()


@pytest.fixture
def remote_store() -> FakeRemoteStore:
    return FakeRemoteStore()

