from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from taskboard.domain.enums import Priority
from taskboard.domain.errors import MissingReferenceError, ValidationError
from taskboard.domain.events import DomainEvent, ErrorOccurred, TaskCreated, TaskDeleted, TaskUpdated
from taskboard.domain.patches import AddNote, SetDependencies, TaskPatch
from taskboard.domain.stats import TaskStatistics
from taskboard.domain.task import Task
from taskboard.ports.clock import Clock
from taskboard.ports.id_provider import IdProvider
from taskboard.repositories.query import QueryOptions
from taskboard.repositories.task_repo import TaskRepository
from taskboard.repositories.user_repo import UserRepository
from taskboard.services.event_bus import EventBus


### COMMENTS
# ==========================================================
# Warstwa serwisowa zadań (services/task_service.py), przypadki użycia.
# ==========================================================
# Rola:
# - Reguły obejmujące kilka repozytoriów (właściciel zadania musi istnieć,
#   zależności muszą wskazywać istniejące zadania).
# - Publikacja zdarzeń domenowych: TaskCreated / TaskUpdated / TaskDeleted / ErrorOccurred.
# - Odczyty to czyste projekcje nad zapytaniami repozytorium, zawężone do user_id.
#
# Zasady:
# - Serwis nie łapie błędów "na stałe": publikuje ErrorOccurred i rzuca dalej.
# - Brak zadania przy odczycie/aktualizacji/usuwaniu to None/False: decyzję podejmuje kontroler.

_CREATE_FIELDS = frozenset(
    {
        "id", "title", "description", "user_id", "assigned_to", "priority", "category",
        "tags", "due_date", "estimated_hours", "actual_hours", "status", "completed",
        "dependencies", "attachments",
    }
)


class TaskService:
    """
    Serwis przypadków użycia dla zadań.

    :param tasks: Repozytorium zadań.
    :param users: Repozytorium użytkowników (walidacja właściciela).
    :param ids: Port generujący identyfikatory (notatki).
    :param clock: Port czasu.
    :param events: Szyna zdarzeń serwisu (tworzona, jeśli nie podano).
    """
    def __init__(
        self,
        tasks: TaskRepository,
        users: UserRepository,
        ids: IdProvider,
        clock: Clock,
        events: EventBus[DomainEvent] | None = None,
    ) -> None:
        self.tasks = tasks
        self.users = users
        self.ids = ids
        self.clock = clock
        self.events: EventBus[DomainEvent] = events or EventBus("task service")

    def add_listener(self, listener) -> None:
        self.events.subscribe(listener)

    def remove_listener(self, listener) -> None:
        self.events.unsubscribe(listener)

    def _fail(self, operation: str, error: Exception) -> None:
        self.events.publish(ErrorOccurred(operation=operation, error=str(error), timestamp=self.clock.now()))

    # ---- mutations ----

    def create_task(self, data: Mapping[str, Any]) -> Task:
        """
            Tworzy nowe zadanie dla istniejącego użytkownika.

            - Nieznane pola w `data` -> ValidationError.
            - Właściciel (`user_id`) musi istnieć -> inaczej MissingReferenceError.
            - Zależności muszą wskazywać istniejące zadania.
            - `created_at` z zegara, `id` nadaje repozytorium.

            :return: Zapisane zadanie.
        """
        try:
            unknown = set(data) - _CREATE_FIELDS
            if unknown:
                raise ValidationError("task", f"Nieznane pola: {', '.join(sorted(unknown))}")
            if not isinstance(data.get("title"), str) or not data["title"].strip():
                raise ValidationError("title", "Tytul zadania jest wymagany")
            user_id = data.get("user_id")
            if not user_id or self.users.find_by_id(user_id) is None:
                raise MissingReferenceError("User", str(user_id))
            for dep in data.get("dependencies") or []:
                if not self.tasks.exists(dep):
                    raise MissingReferenceError("Task", dep)

            task = Task(created_at=self.clock.now(), **data)
            saved = self.tasks.create(task)
        except Exception as e:
            self._fail("create_task", e)
            raise

        self.events.publish(TaskCreated(saved))
        return saved

    def update_task(self, task_id: str, patches: Sequence[TaskPatch]) -> Task | None:
        try:
            for patch in patches:
                if isinstance(patch, SetDependencies):
                    self._check_dependencies(task_id, patch.task_ids)
            updated = self.tasks.update(task_id, patches)
        except Exception as e:
            self._fail("update_task", e)
            raise

        if updated is not None:
            self.events.publish(TaskUpdated(updated))
        return updated

    def delete_task(self, task_id: str) -> bool:
        try:
            task = self.tasks.find_by_id(task_id)
            deleted = self.tasks.delete(task_id)
        except Exception as e:
            self._fail("delete_task", e)
            raise

        if deleted:
            self.events.publish(TaskDeleted(task_id=task_id, task=task))
        return deleted

    def add_note(self, task_id: str, content: str, author: str | None = None) -> Task | None:
        return self.update_task(task_id, [AddNote(note_id=self.ids.new_id(), content=content, author=author)])

    def add_dependency(self, task_id: str, depends_on: str) -> Task | None:
        task = self.tasks.find_by_id(task_id)
        if task is None:
            return None
        return self.update_task(task_id, [SetDependencies((*task.dependencies, depends_on))])

    def _check_dependencies(self, task_id: str, dependencies: Sequence[str]) -> None:
        for dep in dependencies:
            if dep != task_id and not self.tasks.exists(dep):
                raise MissingReferenceError("Task", dep)

    # ---- queries ----

    def get_task_by_id(self, task_id: str) -> Task | None:
        return self.tasks.find_by_id(task_id)

    def get_tasks_for_user(self, user_id: str) -> list[Task]:
        return self.tasks.find_all(QueryOptions(filters={"user_id": user_id}))

    def get_pending_tasks(self, user_id: str) -> list[Task]:
        return self.tasks.find_all(QueryOptions(filters={"user_id": user_id, "completed": False}))

    def get_completed_tasks(self, user_id: str) -> list[Task]:
        return self.tasks.find_all(QueryOptions(filters={"user_id": user_id, "completed": True}))

    def get_overdue_tasks(self, user_id: str) -> list[Task]:
        return self.tasks.find_overdue(user_id)

    def get_tasks_by_priority(self, user_id: str, priority: Priority | str) -> list[Task]:
        return self.tasks.find_all(QueryOptions(filters={"user_id": user_id, "priority": priority}))

    def get_tasks_by_category(self, user_id: str, category: str) -> list[Task]:
        category = (category or "").strip().lower()
        return self.tasks.find_all(QueryOptions(filters={"user_id": user_id, "category": category}))

    def get_tasks_by_tag(self, user_id: str, tag: str) -> list[Task]:
        return [t for t in self.get_tasks_for_user(user_id) if t.has_tag(tag or "")]

    def get_tasks_assigned_to_user(self, user_id: str) -> list[Task]:
        return self.tasks.find_all(QueryOptions(filters={"assigned_to": user_id}))

    def search_tasks(self, user_id: str, query: str) -> list[Task]:
        return self.tasks.search(query, user_id=user_id)

    def get_task_stats(self, user_id: str | None = None) -> TaskStatistics:
        return self.tasks.get_statistics(user_id)
