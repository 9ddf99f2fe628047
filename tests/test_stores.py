import pytest

from fakes import FakeClock, FakeIdProvider
from taskboard.adapters.jsonfile.store import JsonFileStore
from taskboard.adapters.memory.store import InMemoryStore
from taskboard.adapters.sql.store import SqlStore
from taskboard.domain.errors import ValidationError
from taskboard.domain.patches import SetTitle
from taskboard.domain.task import Task
from taskboard.repositories.task_repo import TaskRepository


@pytest.fixture(params=["memory", "json", "sql"])
def any_store(request, tmp_path):
    """Każdy adapter magazynu na świeżym katalogu/bazie."""
    match request.param:
        case "memory":
            return InMemoryStore()
        case "json":
            return JsonFileStore(tmp_path / "data")
        case "sql":
            return SqlStore(tmp_path / "taskboard.db")


def test_missing_collection_returns_fallback(any_store):
    assert any_store.load("tasks", []) == []
    assert any_store.load("tasks", [{"id": "x"}]) == [{"id": "x"}]


def test_save_replaces_whole_collection(any_store):
    any_store.save("tasks", [{"id": "1"}, {"id": "2"}])
    any_store.save("tasks", [{"id": "3", "tags": ["a"], "dueDate": None}])

    assert any_store.load("tasks", []) == [{"id": "3", "tags": ["a"], "dueDate": None}]


def test_collections_are_independent(any_store):
    any_store.save("tasks", [{"id": "t"}])
    any_store.save("users", [{"id": "u"}])

    assert any_store.load("tasks", []) == [{"id": "t"}]
    assert any_store.load("users", []) == [{"id": "u"}]


def test_loaded_records_are_copies(any_store):
    any_store.save("tasks", [{"id": "1", "tags": []}])

    loaded = any_store.load("tasks", [])
    loaded[0]["tags"].append("mutated")
    loaded.append({"id": "2"})

    assert any_store.load("tasks", []) == [{"id": "1", "tags": []}]


def test_repository_round_trip_on_every_store(any_store):
    clock = FakeClock()
    repo = TaskRepository(any_store, clock, FakeIdProvider())
    task = repo.create(Task(title="Zażółć gęślą jaźń", user_id="u-1", created_at=clock.now(), tags=["pl"]))

    repo.update(task.id, [SetTitle("Nowy")])
    fresh = TaskRepository(any_store, clock, FakeIdProvider())

    assert fresh.find_by_id(task.id).title == "Nowy"
    assert fresh.find_by_id(task.id).tags == ["pl"]


def test_json_store_writes_one_file_per_key_without_swap(tmp_path):
    store = JsonFileStore(tmp_path)
    store.save("tasks", [{"id": "1"}])

    assert (tmp_path / "tasks.json").exists()
    assert not (tmp_path / "tasks.json.swap").exists()
    assert JsonFileStore(tmp_path).load("tasks", []) == [{"id": "1"}]


def test_json_store_rejects_corrupted_file(tmp_path):
    (tmp_path / "tasks.json").write_text("{not json", encoding="utf-8")

    with pytest.raises(ValidationError):
        JsonFileStore(tmp_path).load("tasks", [])


def test_json_store_rejects_path_like_keys(tmp_path):
    with pytest.raises(ValidationError):
        JsonFileStore(tmp_path).save("../escape", [])


def test_sql_store_persists_between_instances(tmp_path):
    db_path = tmp_path / "taskboard.db"
    SqlStore(db_path).save("users", [{"id": "u-1"}])

    reopened = SqlStore(f"sqlite:///{db_path}")

    assert reopened.load("users", []) == [{"id": "u-1"}]
    assert reopened.keys() == ["users"]
