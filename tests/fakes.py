from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from taskboard.adapters.memory.store import InMemoryStore


class FakeIdProvider:
    def __init__(self, prefix: str = "id"):
        self.prefix = prefix
        self.counter = 0
    def new_id(self) -> str:
        self.counter += 1
        return f"{self.prefix}-{self.counter}"


class FakeClock:
    def __init__(self, fixed: datetime | None = None):
        # jeśli nie podamy fixed, zwróci zawsze ten sam „teraz”
        self.fixed = fixed or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    def now(self) -> datetime:
        return self.fixed
    def advance(self, **kwargs) -> datetime:
        self.fixed = self.fixed + timedelta(**kwargs)
        return self.fixed


class CountingStore(InMemoryStore):
    """Magazyn pamięciowy liczący odczyty i zapisy (sprawdzamy, kiedy cache działa)."""
    def __init__(self, initial: dict[str, list[dict[str, Any]]] | None = None):
        super().__init__(initial)
        self.loads = 0
        self.saves = 0
    def load(self, key, fallback):
        self.loads += 1
        return super().load(key, fallback)
    def save(self, key, records):
        self.saves += 1
        super().save(key, records)


class FakePresenter:
    """Presenter zapisujący wszystkie wywołania kontrolera."""
    def __init__(self, confirm: bool = True):
        self.confirm = confirm
        self.listeners = []
        self.calls: list[tuple[str, Any]] = []
        self.tasks = []
        self.filter_kind = None
        self.stats = None
        self.errors: list[str] = []
        self.user = None

    def subscribe(self, listener):
        self.listeners.append(listener)
    def emit(self, intent):
        for listener in self.listeners:
            listener(intent)

    def initialize(self, user):
        self.user = user
        self.calls.append(("initialize", user.id))
    def display_tasks(self, tasks, filter_kind):
        self.tasks = list(tasks)
        self.filter_kind = filter_kind
        self.calls.append(("display_tasks", filter_kind))
    def display_stats(self, stats):
        self.stats = stats
        self.calls.append(("display_stats", stats.total))
    def add_task(self, task):
        self.calls.append(("add_task", task.id))
    def update_task(self, task):
        self.calls.append(("update_task", task.id))
    def remove_task(self, task_id):
        self.calls.append(("remove_task", task_id))
    def confirm_deletion(self, task):
        self.calls.append(("confirm_deletion", task.id))
        return self.confirm
    def show_error(self, message):
        self.errors.append(message)
    def show_success(self, message):
        self.calls.append(("show_success", message))
    def show_info(self, message):
        self.calls.append(("show_info", message))

    def called(self, name: str) -> list[Any]:
        return [arg for n, arg in self.calls if n == name]
