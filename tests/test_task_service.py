import pytest
from datetime import timedelta

from taskboard.domain.errors import MissingReferenceError, ValidationError
from taskboard.domain.events import ErrorOccurred, TaskCreated, TaskDeleted, TaskUpdated
from taskboard.domain.patches import SetCompleted, SetDependencies, SetTitle


def format_task(task) -> str:
    return f"✅ {task.title} | {task.id} | done={task.completed} | created={task.created_at}"


def test_create_task(task_service, alice):
    # Arrange
    events = []
    task_service.add_listener(events.append)

    # Act
    task = task_service.create_task({"title": "Kup mleko", "user_id": alice.id})

    # Assert
    items = task_service.get_tasks_for_user(alice.id)
    assert len(items) == 1
    assert "Kup mleko" in format_task(items[0])
    assert task.id in format_task(items[0])
    assert events == [TaskCreated(task)]


def test_create_requires_existing_user(task_service, store):
    # Arrange
    events = []
    task_service.add_listener(events.append)
    saves = store.saves

    # Act / Assert
    with pytest.raises(MissingReferenceError):
        task_service.create_task({"title": "A", "user_id": "ghost"})

    assert store.saves == saves
    assert len(events) == 1
    assert isinstance(events[0], ErrorOccurred)
    assert events[0].operation == "create_task"


def test_create_rejects_unknown_fields_and_missing_title(task_service, alice):
    with pytest.raises(ValidationError):
        task_service.create_task({"title": "A", "user_id": alice.id, "colour": "red"})
    with pytest.raises(ValidationError):
        task_service.create_task({"user_id": alice.id})


def test_dependencies_must_exist(task_service, alice):
    first = task_service.create_task({"title": "A", "user_id": alice.id})

    with pytest.raises(MissingReferenceError):
        task_service.create_task({"title": "B", "user_id": alice.id, "dependencies": ["nope"]})

    second = task_service.create_task({"title": "B", "user_id": alice.id, "dependencies": [first.id]})
    assert second.dependencies == [first.id]

    with pytest.raises(MissingReferenceError):
        task_service.update_task(second.id, [SetDependencies(("nope",))])


def test_update_publishes_event(task_service, alice):
    task = task_service.create_task({"title": "A", "user_id": alice.id})
    events = []
    task_service.add_listener(events.append)

    updated = task_service.update_task(task.id, [SetTitle("B")])

    assert updated.title == "B"
    assert events == [TaskUpdated(updated)]
    assert task_service.update_task("missing", [SetTitle("C")]) is None


def test_delete_publishes_event_with_snapshot(task_service, alice):
    task = task_service.create_task({"title": "A", "user_id": alice.id})
    events = []
    task_service.add_listener(events.append)

    assert task_service.delete_task(task.id) is True
    assert task_service.delete_task(task.id) is False

    assert len(events) == 1
    assert isinstance(events[0], TaskDeleted)
    assert events[0].task_id == task.id
    assert events[0].task.title == "A"
    assert task_service.get_task_by_id(task.id) is None


def test_pending_and_completed_lists(task_service, alice):
    a = task_service.create_task({"title": "A", "user_id": alice.id})
    b = task_service.create_task({"title": "B", "user_id": alice.id})

    task_service.update_task(a.id, [SetCompleted(True)])

    assert [t.id for t in task_service.get_completed_tasks(alice.id)] == [a.id]
    assert [t.id for t in task_service.get_pending_tasks(alice.id)] == [b.id]


def test_overdue_scenario(task_service, alice, clock):
    # Arrange
    task = task_service.create_task(
        {"title": "Zapłać rachunek", "user_id": alice.id, "due_date": clock.now() + timedelta(hours=1)}
    )
    assert task_service.get_overdue_tasks(alice.id) == []

    # Act
    clock.advance(hours=2)

    # Assert
    overdue = task_service.get_overdue_tasks(alice.id)
    assert [t.id for t in overdue] == [task.id]
    assert task_service.get_task_stats(alice.id).overdue == 1

    task_service.update_task(task.id, [SetCompleted(True)])
    assert task_service.get_overdue_tasks(alice.id) == []


def test_queries_by_priority_category_tag_and_assignee(task_service, alice, bob):
    task_service.create_task({"title": "A", "user_id": alice.id, "priority": "high", "category": "Work", "tags": ["x"]})
    task_service.create_task({"title": "B", "user_id": alice.id, "assigned_to": bob.id})

    assert [t.title for t in task_service.get_tasks_by_priority(alice.id, "high")] == ["A"]
    assert [t.title for t in task_service.get_tasks_by_category(alice.id, "work")] == ["A"]
    assert [t.title for t in task_service.get_tasks_by_tag(alice.id, "X")] == ["A"]
    assert [t.title for t in task_service.get_tasks_assigned_to_user(bob.id)] == ["B"]
    assert [t.title for t in task_service.search_tasks(alice.id, "b")] == ["B"]


def test_add_note_records_author(task_service, alice):
    task = task_service.create_task({"title": "A", "user_id": alice.id})

    updated = task_service.add_note(task.id, "Pierwsza notatka", author=alice.id)

    assert len(updated.notes) == 1
    assert updated.notes[0].author == alice.id
    assert updated.notes[0].content == "Pierwsza notatka"


def test_add_dependency(task_service, alice):
    a = task_service.create_task({"title": "A", "user_id": alice.id})
    b = task_service.create_task({"title": "B", "user_id": alice.id})

    updated = task_service.add_dependency(b.id, a.id)

    assert updated.dependencies == [a.id]
    assert task_service.add_dependency("missing", a.id) is None
