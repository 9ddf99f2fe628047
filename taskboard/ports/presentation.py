from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence

from taskboard.domain.stats import TaskStatistics
from taskboard.domain.task import Task
from taskboard.domain.user import User

IntentListener = Callable[[Any], None]


class TaskPresenter(Protocol):
    """Powierzchnia prezentacji sterowana przez TaskController.

    - Kontroler woła metody display/show, żeby coś pokazać.
    - Presenter emituje intencje użytkownika (controllers/intents.py)
      do zarejestrowanych słuchaczy (`subscribe`).
    """

    def subscribe(self, listener: IntentListener) -> None:
        pass

    def initialize(self, user: User) -> None:
        pass

    def display_tasks(self, tasks: Sequence[Task], filter_kind: str) -> None:
        pass

    def display_stats(self, stats: TaskStatistics) -> None:
        pass

    def add_task(self, task: Task) -> None:
        pass

    def update_task(self, task: Task) -> None:
        pass

    def remove_task(self, task_id: str) -> None:
        pass

    def confirm_deletion(self, task: Task) -> bool:
        pass

    def show_error(self, message: str) -> None:
        pass

    def show_success(self, message: str) -> None:
        pass

    def show_info(self, message: str) -> None:
        pass
