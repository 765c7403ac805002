"""
End-to-end sync cycles against real daily-note files and an in-memory list.
"""

import pytest

from todo_integrator.core.models import TaskStatus
from todo_integrator.obsidian.daily_notes import DailyNoteManager
from todo_integrator.sync.engine import TodoSynchronizer
from todo_integrator.sync.metadata import TaskMetadataStore, json_file_backend
from tests.fakes import read_note, write_note


pytestmark = pytest.mark.integration


@pytest.fixture
def notes(vault_path):
    return DailyNoteManager(vault_path)


@pytest.fixture
def synchronizer(notes, remote_store, tmp_path):
    load, save = json_file_backend(str(tmp_path / "meta.json"))
    return TodoSynchronizer(notes, remote_store, TaskMetadataStore(load, save), task_section_heading="## ToDo")


def test_round_trip_with_completion_and_rename(notes, remote_store, synchronizer, vault_path):
    path = write_note(vault_path, "2024-01-15.md", (
        "# Daily Note - Monday, January 15, 2024\n"
        "\n"
        "## ToDo\n"
        "- [ ] Buy milk\n"
        "\n"
        "## Notes\n"
        "- [ ] Not synced\n"
    ))
    remote_store.add_task("r1", "Book flights", due="2024-01-15T00:00:00.0000000")

    first = synchronizer.perform_full_sync()

    assert not first.has_errors
    assert first.remote_to_local.added == 1
    assert first.local_to_remote.added == 1
    assert remote_store.created == [("Buy milk", "2024-01-15")]
    content = read_note(path)
    assert content.index("- [ ] Buy milk") < content.index("- [ ] Book flights") < content.index("## Notes")

    # Rename locally and complete remotely
    write_note(vault_path, "2024-01-15.md", read_note(path).replace("Buy milk", "Buy milk and bread"))
    remote_store.tasks["r1"].status = TaskStatus.COMPLETED
    remote_store.tasks["r1"].completed_at = "2024-01-16T18:00:00Z"

    second = synchronizer.perform_full_sync()

    assert second.reconciliation.renamed == 1
    assert second.local_to_remote.added == 0
    assert second.completions.completed == 1
    assert "- [x] Book flights ✅ 2024-01-16" in read_note(path)

    # Check the renamed task locally; it completes the remote it is linked to
    write_note(vault_path, "2024-01-15.md",
               read_note(path).replace("- [ ] Buy milk and bread", "- [x] Buy milk and bread"))

    third = synchronizer.perform_full_sync()

    assert third.completions.completed == 1
    assert remote_store.tasks["new-1"].status == TaskStatus.COMPLETED
    assert "Not synced" not in [title for title, _ in remote_store.created]


def test_idempotent_file_contents(notes, remote_store, synchronizer, vault_path):
    remote_store.add_task("r1", "Renew passport [todo::r1]", due="2024-02-01T00:00:00.0000000")

    synchronizer.perform_full_sync()
    path = notes.path_for_date("2024-02-01")
    snapshot = read_note(path)

    synchronizer.perform_full_sync()

    assert read_note(path) == snapshot
    assert snapshot.count("Renew passport") == 1
    assert remote_store.tasks["r1"].title == "Renew passport"
