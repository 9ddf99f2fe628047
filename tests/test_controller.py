import pytest
from datetime import timedelta

from fakes import FakePresenter
from taskboard.controllers.intents import (
    AddTagRequested,
    CreateTaskRequested,
    FilterRequested,
    RemoveTagRequested,
    ToggleCompletionRequested,
)
from taskboard.controllers.task_controller import TaskController
from taskboard.domain.enums import FilterKind, TaskStatus
from taskboard.domain.errors import MissingReferenceError, NotFoundError, PermissionDeniedError, ValidationError
from taskboard.domain.events import ControllerInitialized, ErrorOccurred, TaskCreated, TasksFiltered


@pytest.fixture
def presenter():
    return FakePresenter()


@pytest.fixture
def controller(task_service, user_service, presenter, clock, alice):
    ctrl = TaskController(task_service, user_service, presenter, clock)
    ctrl.initialize(alice.id)
    return ctrl


@pytest.fixture
def controller_events(controller):
    events = []
    controller.add_listener(events.append)
    return events


def errors(events):
    return [e for e in events if isinstance(e, ErrorOccurred)]


def test_initialize_loads_user_and_renders(task_service, user_service, presenter, clock, alice):
    ctrl = TaskController(task_service, user_service, presenter, clock)
    events = []
    ctrl.add_listener(events.append)

    ctrl.initialize(alice.id)

    assert ctrl.is_initialized()
    assert presenter.called("initialize") == [alice.id]
    assert presenter.called("display_tasks") == ["all"]
    assert presenter.called("display_stats") == [0]
    assert events[-1] == ControllerInitialized(alice.id)


def test_initialize_with_unknown_user(task_service, user_service, presenter, clock):
    ctrl = TaskController(task_service, user_service, presenter, clock)
    events = []
    ctrl.add_listener(events.append)

    with pytest.raises(NotFoundError):
        ctrl.initialize("ghost")

    assert not ctrl.is_initialized()
    assert errors(events)[0].operation == "initialize"


def test_set_current_user_switches_permissions(controller, task_service, bob):
    foreign = task_service.create_task({"title": "Cudze", "user_id": bob.id})

    controller.set_current_user(bob.id)

    assert controller.current_user.id == bob.id
    assert controller.toggle_task_completion(foreign.id).completed is True


def test_create_task_sets_owner_and_assignee(controller, controller_events, presenter, alice):
    task = controller.create_task({"title": "Kup mleko", "priority": "high"})

    assert task.user_id == alice.id
    assert task.assigned_to == alice.id
    assert presenter.called("add_task") == [task.id]
    assert presenter.stats.total == 1
    assert TaskCreated(task) in controller_events


def test_create_task_without_title_is_funneled(controller, controller_events):
    with pytest.raises(ValidationError):
        controller.create_task({"description": "bez tytułu"})

    assert [e.operation for e in errors(controller_events)] == ["create_task"]


def test_permission_denied_makes_no_writes(controller, controller_events, task_service, bob, store):
    # Arrange
    foreign = task_service.create_task({"title": "Cudze", "user_id": bob.id})
    saves = store.saves

    # Act
    with pytest.raises(PermissionDeniedError):
        controller.update_task(foreign.id, {"title": "Moje"})
    with pytest.raises(PermissionDeniedError):
        controller.delete_task(foreign.id)
    with pytest.raises(PermissionDeniedError):
        controller.toggle_task_completion(foreign.id)
    with pytest.raises(PermissionDeniedError):
        controller.assign_task(foreign.id, bob.id)
    with pytest.raises(PermissionDeniedError):
        controller.add_time_spent(foreign.id, 2)

    # Assert
    assert store.saves == saves
    assert task_service.get_task_by_id(foreign.id).title == "Cudze"
    assert [e.operation for e in errors(controller_events)] == [
        "update_task", "delete_task", "toggle_task_completion", "assign_task", "add_time_spent",
    ]


def test_assignee_and_admin_can_modify(controller, task_service, user_service, bob, alice, presenter, clock):
    assigned = task_service.create_task({"title": "Dla Alice", "user_id": bob.id, "assigned_to": alice.id})
    updated = controller.update_task(assigned.id, {"title": "Zrobione przez Alice"})
    assert updated.title == "Zrobione przez Alice"

    admin = user_service.create_user({"username": "root", "email": "root@example.com", "role": "admin"})
    foreign = task_service.create_task({"title": "Cudze", "user_id": bob.id})
    admin_ctrl = TaskController(task_service, user_service, FakePresenter(), clock)
    admin_ctrl.initialize(admin.id)

    assert admin_ctrl.toggle_task_completion(foreign.id).completed is True


def test_missing_task_raises_not_found(controller):
    with pytest.raises(NotFoundError):
        controller.update_task("missing", {"title": "x"})
    assert controller.get_task("missing") is None


def test_unknown_update_field_is_rejected(controller, store):
    task = controller.create_task({"title": "A"})
    saves = store.saves

    with pytest.raises(ValidationError):
        controller.update_task(task.id, {"user_id": "someone"})

    assert store.saves == saves


def test_toggle_completion_twice(controller):
    task = controller.create_task({"title": "A"})

    done = controller.toggle_task_completion(task.id)
    undone = controller.toggle_task_completion(task.id)

    assert done.completed is True
    assert done.status == TaskStatus.COMPLETED
    assert undone.completed is False
    assert undone.status == TaskStatus.PENDING


def test_assign_task_requires_existing_user(controller, bob):
    task = controller.create_task({"title": "A"})

    assert controller.assign_task(task.id, bob.id).assigned_to == bob.id
    with pytest.raises(NotFoundError):
        controller.assign_task(task.id, "ghost")


def test_add_time_spent_accumulates(controller):
    task = controller.create_task({"title": "A", "estimated_hours": 4})

    controller.add_time_spent(task.id, 1.5)
    updated = controller.add_time_spent(task.id, 0.5)

    assert updated.actual_hours == 2.0
    assert updated.progress == 50
    with pytest.raises(ValidationError):
        controller.add_time_spent(task.id, -1)


def test_due_date_tags_and_notes(controller, alice, clock):
    task = controller.create_task({"title": "A"})
    due = clock.now() + timedelta(days=3)

    assert controller.set_due_date(task.id, due).due_date == due
    assert controller.add_task_tag(task.id, "Home").tags == ["home"]
    assert controller.add_task_tag(task.id, "home").tags == ["home"]
    assert controller.remove_task_tag(task.id, "HOME").tags == []

    noted = controller.add_task_note(task.id, "Notatka")
    assert noted.notes[0].author == alice.id


def test_delete_requires_confirmation(controller, presenter, task_service):
    task = controller.create_task({"title": "A"})

    presenter.confirm = False
    assert controller.delete_task(task.id) is False
    assert task_service.get_task_by_id(task.id) is not None

    presenter.confirm = True
    assert controller.delete_task(task.id) is True
    assert presenter.called("remove_task") == [task.id]
    assert task_service.get_task_by_id(task.id) is None


def test_filter_is_remembered_for_refresh(controller, controller_events, presenter):
    controller.create_task({"title": "A", "priority": "high"})
    controller.create_task({"title": "B"})

    tasks = controller.filter_tasks(FilterKind.PRIORITY, "high")
    controller.refresh_tasks()

    assert [t.title for t in tasks] == ["A"]
    assert controller.current_filter == FilterKind.PRIORITY
    assert presenter.filter_kind == "priority"
    assert [t.title for t in presenter.tasks] == ["A"]
    assert TasksFiltered("priority", "high", 1) in controller_events


def test_invalid_filters(controller):
    with pytest.raises(ValidationError):
        controller.filter_tasks("favourite")
    with pytest.raises(ValidationError):
        controller.filter_tasks("category")


def test_empty_search_reapplies_current_filter(controller, presenter):
    controller.create_task({"title": "Mleko"})
    a = controller.create_task({"title": "Chleb"})
    controller.toggle_task_completion(a.id)
    controller.filter_tasks("completed")

    assert [t.title for t in controller.search_tasks("mle")] == ["Mleko"]
    assert presenter.filter_kind == "search"

    assert [t.title for t in controller.search_tasks("   ")] == ["Chleb"]
    assert presenter.filter_kind == "completed"


def test_overdue_filter(controller, clock):
    controller.create_task({"title": "Termin", "due_date": clock.now() + timedelta(minutes=30)})
    assert controller.filter_tasks("overdue") == []

    clock.advance(hours=1)

    assert [t.title for t in controller.filter_tasks("overdue")] == ["Termin"]


def test_view_intents_are_dispatched(controller, presenter):
    presenter.emit(CreateTaskRequested({"title": "Z widoku"}))
    task = controller.get_all_tasks()[0]

    presenter.emit(AddTagRequested(task.id, "ui"))
    presenter.emit(ToggleCompletionRequested(task.id))
    presenter.emit(FilterRequested("completed"))

    assert [t.title for t in presenter.tasks] == ["Z widoku"]
    assert presenter.tasks[0].tags == ["ui"]

    presenter.emit(RemoveTagRequested(task.id, "ui"))
    assert controller.get_task(task.id).tags == []


def test_unknown_intent_is_ignored(controller):
    assert controller.handle_view_event(object()) is None


def test_service_errors_reach_the_view(controller, controller_events, presenter):
    task = controller.create_task({"title": "A"})

    with pytest.raises(MissingReferenceError):
        controller.update_task(task.id, {"dependencies": ["ghost"]})

    assert len(presenter.errors) == 1
    assert "ghost" in presenter.errors[0]
    assert len(errors(controller_events)) == 1


def test_service_events_refresh_the_view(controller, task_service, presenter, alice):
    presenter.calls.clear()

    task_service.create_task({"title": "Z zewnątrz", "user_id": alice.id})

    assert presenter.called("display_tasks") == ["all"]
    assert [t.title for t in presenter.tasks] == ["Z zewnątrz"]


def test_view_permissions(controller, task_service, user_service, bob, clock):
    foreign = task_service.create_task({"title": "Cudze", "user_id": bob.id})
    with pytest.raises(PermissionDeniedError):
        controller.get_task(foreign.id)

    moderator = user_service.create_user({"username": "mod", "email": "mod@example.com", "role": "moderator"})
    mod_ctrl = TaskController(task_service, user_service, FakePresenter(), clock)
    mod_ctrl.initialize(moderator.id)

    assert mod_ctrl.get_task(foreign.id).title == "Cudze"
    assert mod_ctrl.can_modify_task(foreign) is False


def test_operations_require_current_user(task_service, user_service, presenter, clock):
    ctrl = TaskController(task_service, user_service, presenter, clock)
    with pytest.raises(PermissionDeniedError):
        ctrl.create_task({"title": "A"})
