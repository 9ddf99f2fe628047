from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Callable, NoReturn

from taskboard.controllers import intents
from taskboard.domain.enums import FilterKind
from taskboard.domain.errors import NotFoundError, PermissionDeniedError, ValidationError
from taskboard.domain.events import (
    ControllerInitialized,
    DomainEvent,
    ErrorOccurred,
    TaskCreated,
    TaskDeleted,
    TasksFiltered,
    TasksSearched,
    TaskUpdated,
)
from taskboard.domain.patches import task_patches
from taskboard.domain.stats import TaskStatistics
from taskboard.domain.task import Task
from taskboard.domain.user import User
from taskboard.ports.clock import Clock
from taskboard.ports.presentation import TaskPresenter
from taskboard.services.event_bus import EventBus
from taskboard.services.task_service import TaskService
from taskboard.services.user_service import UserService

logger = logging.getLogger(__name__)


### COMMENTS
# ==========================================================
# Kontroler zadań (controllers/task_controller.py).
# ==========================================================
# Rola:
# - Bramka uprawnień: każda zmiana zadania najpierw pobiera zadanie i sprawdza
#   can_modify_task (właściciel, osoba przypisana albo admin). Odmowa -> PermissionDeniedError,
#   a żądanie nigdy nie dociera do serwisu.
# - Kształtuje żądania z UI (słownik pól -> operacje patch) i kieruje intencje UI do metod.
# - Po każdej udanej zmianie przelicza statystyki i wysyła je do prezentacji.
# - Zdarzenia serwisu (created/updated/deleted) -> pełne odświeżenie listy z bieżącym filtrem.
#
# Błędy:
# - Każda publiczna operacja kończy się w handle_error(): log + zdarzenie ErrorOccurred + ponowne rzucenie.
#   Wywołujący dostaje i zdarzenie, i wyjątek.


class BaseController:
    """Wspólna obsługa słuchaczy, błędów i walidacji parametrów."""

    def __init__(self, clock: Clock) -> None:
        self.clock = clock
        self.events: EventBus[DomainEvent] = EventBus("controller")

    def add_listener(self, listener: Callable[[DomainEvent], Any]) -> None:
        self.events.subscribe(listener)

    def remove_listener(self, listener: Callable[[DomainEvent], Any]) -> None:
        self.events.unsubscribe(listener)

    def notify_listeners(self, event: DomainEvent) -> None:
        self.events.publish(event)

    def handle_error(self, error: Exception, operation: str) -> NoReturn:
        logger.error("Error in %s: %s", operation, error)
        self.notify_listeners(ErrorOccurred(operation=operation, error=str(error), timestamp=self.clock.now()))
        raise error

    @staticmethod
    def validate_params(params: Mapping[str, Any], required: list[str]) -> None:
        missing = [name for name in required if params.get(name) is None or params.get(name) == ""]
        if missing:
            raise ValidationError(missing[0], f"Brak wymaganych parametrow: {', '.join(missing)}")


class TaskController(BaseController):
    """
    Kontroler pośredniczący między prezentacją (TaskPresenter) a serwisami.

    :param task_service: Serwis zadań (jego zdarzenia wyzwalają odświeżenie widoku).
    :param user_service: Serwis użytkowników (bieżący użytkownik, osoby przypisane).
    :param view: Powierzchnia prezentacji; kontroler subskrybuje jej intencje.
    """

    def __init__(
        self,
        task_service: TaskService,
        user_service: UserService,
        view: TaskPresenter,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock or task_service.clock)
        self.task_service = task_service
        self.user_service = user_service
        self.view = view
        self.current_user: User | None = None
        self.current_filter: FilterKind = FilterKind.ALL
        self.current_filter_value: str | None = None

        self._view_handlers: dict[type, Callable[[Any], Any]] = {
            intents.CreateTaskRequested: lambda i: self.create_task(i.data),
            intents.UpdateTaskRequested: lambda i: self.update_task(i.task_id, i.updates),
            intents.DeleteTaskRequested: lambda i: self.delete_task(i.task_id),
            intents.ToggleCompletionRequested: lambda i: self.toggle_task_completion(i.task_id),
            intents.AssignTaskRequested: lambda i: self.assign_task(i.task_id, i.user_id),
            intents.FilterRequested: lambda i: self.filter_tasks(i.filter_type, i.filter_value),
            intents.SearchRequested: lambda i: self.search_tasks(i.query),
            intents.RefreshRequested: lambda i: self.refresh_tasks(),
            intents.AddTimeRequested: lambda i: self.add_time_spent(i.task_id, i.hours),
            intents.SetDueDateRequested: lambda i: self.set_due_date(i.task_id, i.due_date),
            intents.AddTagRequested: lambda i: self.add_task_tag(i.task_id, i.tag),
            intents.RemoveTagRequested: lambda i: self.remove_task_tag(i.task_id, i.tag),
            intents.AddNoteRequested: lambda i: self.add_task_note(i.task_id, i.content),
        }

        self.task_service.add_listener(self.handle_service_event)
        self.view.subscribe(self.handle_view_event)

    # ---- lifecycle ----

    def initialize(self, user_id: str) -> None:
        try:
            user = self.user_service.get_user_by_id(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            self.current_user = user
            self.view.initialize(user)
            self._apply_filter(self.current_filter, self.current_filter_value)
            self._push_stats()
            self.notify_listeners(ControllerInitialized(user_id=user_id))
        except Exception as e:
            self.handle_error(e, "initialize")

    def set_current_user(self, user_id: str) -> None:
        self.initialize(user_id)

    def is_initialized(self) -> bool:
        return self.current_user is not None

    # ---- mutations ----

    def create_task(self, data: Mapping[str, Any]) -> Task:
        try:
            self.validate_params(data, ["title"])
            user = self._require_user("create_task")
            payload = dict(data)
            payload["user_id"] = user.id
            payload["assigned_to"] = payload.get("assigned_to") or user.id

            task = self.task_service.create_task(payload)
            self.view.add_task(task)
            self._push_stats()
            self.notify_listeners(TaskCreated(task))
            return task
        except Exception as e:
            self.handle_error(e, "create_task")

    def update_task(self, task_id: str, updates: Mapping[str, Any]) -> Task:
        try:
            return self._update_task(task_id, updates)
        except Exception as e:
            self.handle_error(e, "update_task")

    def delete_task(self, task_id: str) -> bool:
        try:
            task = self._fetch_modifiable(task_id, "delete_task")
            if not self.view.confirm_deletion(task):
                return False

            deleted = self.task_service.delete_task(task_id)
            if deleted:
                self.view.remove_task(task_id)
                self._push_stats()
                self.notify_listeners(TaskDeleted(task_id=task_id, task=task))
            return deleted
        except Exception as e:
            self.handle_error(e, "delete_task")

    def toggle_task_completion(self, task_id: str) -> Task:
        try:
            task = self._fetch_modifiable(task_id, "toggle_task_completion")
            return self._update_task(task_id, {"completed": not task.completed})
        except Exception as e:
            self.handle_error(e, "toggle_task_completion")

    def assign_task(self, task_id: str, user_id: str) -> Task:
        try:
            self.validate_params({"task_id": task_id, "user_id": user_id}, ["task_id", "user_id"])
            if self.user_service.get_user_by_id(user_id) is None:
                raise NotFoundError("User", user_id)
            return self._update_task(task_id, {"assigned_to": user_id})
        except Exception as e:
            self.handle_error(e, "assign_task")

    def add_time_spent(self, task_id: str, hours: float) -> Task:
        try:
            self.validate_params({"task_id": task_id, "hours": hours}, ["task_id", "hours"])
            if isinstance(hours, bool) or not isinstance(hours, (int, float)) or hours < 0:
                raise ValidationError("hours", "Liczba godzin musi byc nieujemna")
            task = self._fetch_modifiable(task_id, "add_time_spent")
            return self._update_task(task_id, {"actual_hours": (task.actual_hours or 0) + hours})
        except Exception as e:
            self.handle_error(e, "add_time_spent")

    def set_due_date(self, task_id: str, due_date) -> Task:
        try:
            return self._update_task(task_id, {"due_date": due_date})
        except Exception as e:
            self.handle_error(e, "set_due_date")

    def add_task_tag(self, task_id: str, tag: str) -> Task:
        try:
            self.validate_params({"task_id": task_id, "tag": tag}, ["task_id", "tag"])
            task = self._fetch_modifiable(task_id, "add_task_tag")
            if task.has_tag(tag):
                return task
            return self._update_task(task_id, {"tags": [*task.tags, tag]})
        except Exception as e:
            self.handle_error(e, "add_task_tag")

    def remove_task_tag(self, task_id: str, tag: str) -> Task:
        try:
            self.validate_params({"task_id": task_id, "tag": tag}, ["task_id", "tag"])
            task = self._fetch_modifiable(task_id, "remove_task_tag")
            normalized = tag.strip().lower()
            return self._update_task(task_id, {"tags": [t for t in task.tags if t != normalized]})
        except Exception as e:
            self.handle_error(e, "remove_task_tag")

    def add_task_note(self, task_id: str, content: str) -> Task:
        try:
            self.validate_params({"task_id": task_id, "content": content}, ["task_id", "content"])
            self._fetch_modifiable(task_id, "add_task_note")
            updated = self.task_service.add_note(task_id, content, author=self.current_user.id)
            if updated is None:
                raise NotFoundError("Task", task_id)
            self._after_update(updated)
            return updated
        except Exception as e:
            self.handle_error(e, "add_task_note")

    # ---- queries ----

    def filter_tasks(self, filter_type: FilterKind | str, filter_value: str | None = None) -> list[Task]:
        try:
            return self._apply_filter(filter_type, filter_value)
        except Exception as e:
            self.handle_error(e, "filter_tasks")

    def search_tasks(self, query: str | None) -> list[Task]:
        try:
            if not query or not query.strip():
                return self._apply_filter(self.current_filter, self.current_filter_value)

            user = self._require_user("search_tasks")
            tasks = self.task_service.search_tasks(user.id, query.strip())
            self.view.display_tasks(tasks, "search")
            self.notify_listeners(TasksSearched(query=query, count=len(tasks)))
            return tasks
        except Exception as e:
            self.handle_error(e, "search_tasks")

    def refresh_tasks(self) -> None:
        try:
            self._apply_filter(self.current_filter, self.current_filter_value)
            self._push_stats()
        except Exception as e:
            self.handle_error(e, "refresh_tasks")

    def update_task_stats(self) -> TaskStatistics:
        try:
            return self._push_stats()
        except Exception as e:
            self.handle_error(e, "update_task_stats")

    def get_task(self, task_id: str) -> Task | None:
        try:
            task = self.task_service.get_task_by_id(task_id)
            if task is None:
                return None
            if not self.can_view_task(task):
                raise PermissionDeniedError("get_task", self._user_id(), task_id)
            return task
        except Exception as e:
            self.handle_error(e, "get_task")

    def get_all_tasks(self) -> list[Task]:
        try:
            return self.task_service.get_tasks_for_user(self._require_user("get_all_tasks").id)
        except Exception as e:
            self.handle_error(e, "get_all_tasks")

    # ---- permissions ----

    def can_modify_task(self, task: Task | None) -> bool:
        user = self.current_user
        if task is None or user is None:
            return False
        if task.user_id == user.id or task.assigned_to == user.id:
            return True
        return user.is_admin

    def can_view_task(self, task: Task | None) -> bool:
        user = self.current_user
        if task is None or user is None:
            return False
        if task.user_id == user.id or task.assigned_to == user.id:
            return True
        return user.is_admin or user.can_manage_users

    # ---- event routing ----

    def handle_service_event(self, event: DomainEvent) -> None:
        match event:
            case TaskCreated() | TaskUpdated() | TaskDeleted():
                if self.is_initialized():
                    self.refresh_tasks()
            case ErrorOccurred(error=message):
                self.view.show_error(message)
            case _:
                pass

    def handle_view_event(self, intent: Any) -> Any:
        """Kieruje intencję UI do metody kontrolera; nieznane typy są ignorowane."""
        handler = self._view_handlers.get(type(intent))
        if handler is None:
            logger.debug("Ignoring unknown view intent %s", type(intent).__name__)
            return None
        return handler(intent)

    # ---- internals ----

    def _update_task(self, task_id: str, updates: Mapping[str, Any]) -> Task:
        self._fetch_modifiable(task_id, "update_task")
        patches = task_patches(updates)
        updated = self.task_service.update_task(task_id, patches)
        if updated is None:
            raise NotFoundError("Task", task_id)
        self._after_update(updated)
        return updated

    def _after_update(self, task: Task) -> None:
        self.view.update_task(task)
        self._push_stats()
        self.notify_listeners(TaskUpdated(task))

    def _fetch_modifiable(self, task_id: str, action: str) -> Task:
        self.validate_params({"task_id": task_id}, ["task_id"])
        user = self._require_user(action)
        task = self.task_service.get_task_by_id(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        if not self.can_modify_task(task):
            raise PermissionDeniedError(action, user.id, task_id)
        return task

    def _apply_filter(self, filter_type: FilterKind | str, filter_value: str | None) -> list[Task]:
        try:
            kind = FilterKind(filter_type)
        except ValueError:
            raise ValidationError("filter_type", f"Nieznany filtr: {filter_type}")
        if kind in (FilterKind.PRIORITY, FilterKind.CATEGORY, FilterKind.TAG):
            self.validate_params({"filter_value": filter_value}, ["filter_value"])

        user_id = self._require_user("filter_tasks").id
        service = self.task_service
        queries: dict[FilterKind, Callable[[], list[Task]]] = {
            FilterKind.ALL: lambda: service.get_tasks_for_user(user_id),
            FilterKind.PENDING: lambda: service.get_pending_tasks(user_id),
            FilterKind.COMPLETED: lambda: service.get_completed_tasks(user_id),
            FilterKind.OVERDUE: lambda: service.get_overdue_tasks(user_id),
            FilterKind.PRIORITY: lambda: service.get_tasks_by_priority(user_id, filter_value),
            FilterKind.CATEGORY: lambda: service.get_tasks_by_category(user_id, filter_value),
            FilterKind.TAG: lambda: service.get_tasks_by_tag(user_id, filter_value),
            FilterKind.ASSIGNED: lambda: service.get_tasks_assigned_to_user(user_id),
        }
        tasks = queries[kind]()

        self.current_filter = kind
        self.current_filter_value = filter_value
        self.view.display_tasks(tasks, kind.value)
        self.notify_listeners(TasksFiltered(filter_kind=kind.value, filter_value=filter_value, count=len(tasks)))
        return tasks

    def _push_stats(self) -> TaskStatistics:
        stats = self.task_service.get_task_stats(self._require_user("update_task_stats").id)
        self.view.display_stats(stats)
        return stats

    def _require_user(self, action: str) -> User:
        if self.current_user is None:
            raise PermissionDeniedError(action, None)
        return self.current_user

    def _user_id(self) -> str | None:
        return self.current_user.id if self.current_user else None
