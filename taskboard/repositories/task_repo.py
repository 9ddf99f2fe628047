from __future__ import annotations

from datetime import datetime, timedelta

from taskboard.domain.enums import Priority
from taskboard.domain.errors import ValidationError
from taskboard.domain.stats import TaskStatistics
from taskboard.domain.task import Task
from taskboard.ports.clock import Clock
from taskboard.ports.id_provider import IdProvider
from taskboard.ports.storage import KeyValueStore
from taskboard.repositories.base import CachedRepository
from taskboard.repositories.query import QueryOptions
from taskboard.repositories.records import decode_task, encode_task

TASK_CACHE_TTL = timedelta(minutes=5)


class TaskRepository(CachedRepository[Task]):
    """Repozytorium zadań: CRUD z cache (TTL 5 min) + wyspecjalizowane zapytania."""

    entity_key = "tasks"
    entity_name = "Task"
    filter_fields = frozenset(
        {"user_id", "assigned_to", "completed", "priority", "category", "status"}
    )
    sort_fields = frozenset(
        {
            "title", "description", "priority", "category", "status", "completed",
            "due_date", "created_at", "updated_at", "completed_at",
            "estimated_hours", "actual_hours", "progress",
        }
    )

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock,
        ids: IdProvider,
        ttl: timedelta = TASK_CACHE_TTL,
    ) -> None:
        super().__init__(store, clock, ids, ttl)

    def _encode(self, entity: Task) -> dict:
        return encode_task(entity)

    def _decode(self, row: dict) -> Task:
        return decode_task(row)

    def _validate_new(self, entity: Task) -> None:
        if not entity.title or not entity.title.strip():
            raise ValidationError("title", "Tytul zadania jest wymagany")
        if not entity.user_id:
            raise ValidationError("user_id", "Zadanie musi miec wlasciciela")

    # ---- specialized queries ----

    def find_by_user_id(self, user_id: str) -> list[Task]:
        return self.find_all(QueryOptions(filters={"user_id": user_id}))

    def find_by_category(self, category: str) -> list[Task]:
        return self.find_all(QueryOptions(filters={"category": category.strip().lower()}))

    def find_by_priority(self, priority: Priority | str) -> list[Task]:
        return self.find_all(QueryOptions(filters={"priority": priority}))

    def find_by_status(self, completed: bool) -> list[Task]:
        return self.find_all(QueryOptions(filters={"completed": completed}))

    def find_by_assignee(self, user_id: str) -> list[Task]:
        return self.find_all(QueryOptions(filters={"assigned_to": user_id}))

    def find_overdue(self, user_id: str | None = None) -> list[Task]:
        now = self.clock.now()
        tasks = self.find_all(QueryOptions(filters={"user_id": user_id}))
        return [t for t in tasks if _overdue(t, now)]

    def find_by_due_date_range(self, start: datetime, end: datetime) -> list[Task]:
        """Zadania z terminem w przedziale [start, end] (obustronnie domkniętym)."""
        return [t for t in self.find_all() if t.due_date is not None and start <= t.due_date <= end]

    def search(self, query: str, user_id: str | None = None) -> list[Task]:
        """Pełny skan: fragment tekstu w tytule, opisie lub tagach (bez wielkości liter)."""
        term = query.strip().lower()
        tasks = self.find_all(QueryOptions(filters={"user_id": user_id}))
        return [
            t for t in tasks
            if term in t.title.lower()
            or term in t.description.lower()
            or any(term in tag for tag in t.tags)
        ]

    def get_statistics(self, user_id: str | None = None) -> TaskStatistics:
        tasks = self.find_by_user_id(user_id) if user_id else self.find_all()
        now = self.clock.now()

        completed = overdue = 0
        by_priority = {p.value: 0 for p in Priority}
        by_category: dict[str, int] = {}
        for t in tasks:
            if t.completed:
                completed += 1
            # liczone z due_date/completed, niezależnie od pól pochodnych
            if _overdue(t, now):
                overdue += 1
            by_priority[t.priority.value] += 1
            category = t.category or "uncategorized"
            by_category[category] = by_category.get(category, 0) + 1

        return TaskStatistics(
            total=len(tasks),
            completed=completed,
            pending=len(tasks) - completed,
            overdue=overdue,
            by_priority=by_priority,
            by_category=by_category,
        )


def _overdue(task: Task, now: datetime) -> bool:
    return not task.completed and task.due_date is not None and task.due_date < now
