from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from taskboard.domain.task import Task
from taskboard.domain.user import User


@dataclass(frozen=True)
class TaskCreated:
    task: Task

@dataclass(frozen=True)
class TaskUpdated:
    task: Task

@dataclass(frozen=True)
class TaskDeleted:
    task_id: str
    task: Task | None = None

@dataclass(frozen=True)
class UserCreated:
    user: User

@dataclass(frozen=True)
class UserUpdated:
    user: User

@dataclass(frozen=True)
class ErrorOccurred:
    """Nieudana operacja: nazwa operacji + komunikat błędu."""
    operation: str
    error: str
    timestamp: datetime

@dataclass(frozen=True)
class TasksFiltered:
    filter_kind: str
    filter_value: str | None
    count: int

@dataclass(frozen=True)
class TasksSearched:
    query: str
    count: int

@dataclass(frozen=True)
class ControllerInitialized:
    user_id: str


DomainEvent = Union[
    TaskCreated, TaskUpdated, TaskDeleted, UserCreated, UserUpdated,
    ErrorOccurred, TasksFiltered, TasksSearched, ControllerInitialized,
]
