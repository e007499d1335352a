from __future__ import annotations

from pathlib import Path

import pytest

from libs.core import document_store
from libs.core.kv_store import FileKeyValueStore, KeyValueStoreError, MemoryKeyValueStore
from libs.core.models import ResumeProject, ScoreRecord, sample_resume


def _project(project_id: str, last_modified: int, user_id: str = "user-1") -> ResumeProject:
    return ResumeProject(
        id=project_id,
        user_id=user_id,
        title=f"Resume {project_id}",
        last_modified=last_modified,
        data=sample_resume(),
    )


@pytest.fixture(params=["memory", "file", "sql"])
def store(request, tmp_path: Path) -> document_store.ProjectStore:
    if request.param == "memory":
        return document_store.KeyValueProjectStore(MemoryKeyValueStore())
    if request.param == "file":
        return document_store.KeyValueProjectStore(FileKeyValueStore(tmp_path / "kv"))
    return document_store.SqlProjectStore("sqlite+pysqlite:///:memory:")


def test_projects_listed_newest_first(store) -> None:
    store.save_project(_project("a", 100))
    store.save_project(_project("b", 300))
    store.save_project(_project("c", 200))

    listed = store.list_projects("user-1")
    assert [project.id for project in listed] == ["b", "c", "a"]


def test_save_project_overwrites_existing_record(store) -> None:
    project = _project("a", 100)
    store.save_project(project)
    project.title = "Renamed"
    project.last_modified = 150
    store.save_project(project)

    listed = store.list_projects("user-1")
    assert len(listed) == 1
    assert listed[0].title == "Renamed"
    assert store.get_project("user-1", "a").last_modified == 150


def test_projects_are_scoped_by_user(store) -> None:
    store.save_project(_project("a", 100, user_id="user-1"))
    store.save_project(_project("b", 100, user_id="user-2"))

    assert [project.id for project in store.list_projects("user-2")] == ["b"]
    assert store.get_project("user-1", "b") is None


def test_delete_project(store) -> None:
    store.save_project(_project("a", 100))
    store.save_project(_project("b", 200))
    store.delete_project("user-1", "a")

    assert [project.id for project in store.list_projects("user-1")] == ["b"]
    assert store.get_project("user-1", "a") is None


def test_master_profile_round_trip(store) -> None:
    assert store.load_master_profile("user-1") is None
    data = sample_resume()
    data.personal_info.full_name = "Jordan Lee"
    store.save_master_profile("user-1", data)

    loaded = store.load_master_profile("user-1")
    assert loaded == data
    assert store.load_master_profile("user-2") is None


def test_project_round_trip_preserves_versions_and_scores(store) -> None:
    project = _project("a", 100)
    project.version_counter = 2
    project.score_history.append(ScoreRecord(timestamp=1, score=70))
    store.save_project(project)

    loaded = store.get_project("user-1", "a")
    assert loaded == project


def test_key_value_store_uses_fixed_keys() -> None:
    backend = MemoryKeyValueStore()
    store = document_store.KeyValueProjectStore(backend)
    store.save_project(_project("a", 100))
    store.save_master_profile("user-1", sample_resume())

    assert backend.get("resume_projects:user-1") is not None
    assert backend.get("master_profile:user-1") is not None


def test_corrupt_record_raises_document_store_error() -> None:
    backend = MemoryKeyValueStore()
    backend.set("resume_projects:user-1", "{not json")
    store = document_store.KeyValueProjectStore(backend)

    with pytest.raises(document_store.DocumentStoreError):
        store.list_projects("user-1")


def test_backend_failure_is_wrapped() -> None:
    class _BrokenBackend(MemoryKeyValueStore):
        def set(self, key: str, value: str) -> None:
            raise KeyValueStoreError("disk full")

    store = document_store.KeyValueProjectStore(_BrokenBackend())
    with pytest.raises(document_store.DocumentStoreError):
        store.save_project(_project("a", 100))


def test_create_project_store_backends(tmp_path: Path) -> None:
    local = document_store.create_project_store("local", local_store_dir=str(tmp_path))
    assert isinstance(local, document_store.KeyValueProjectStore)
    assert isinstance(local.backend, FileKeyValueStore)

    sql = document_store.create_project_store(
        "SQL", database_url="sqlite+pysqlite:///:memory:"
    )
    assert isinstance(sql, document_store.SqlProjectStore)

    with pytest.raises(document_store.DocumentStoreError):
        document_store.create_project_store("firestore")
