from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping


# Intencje użytkownika emitowane przez warstwę prezentacji.
# Każdy typ ma stały kształt danych; kontroler mapuje typ -> metoda.

@dataclass(frozen=True)
class CreateTaskRequested:
    data: Mapping[str, Any]

@dataclass(frozen=True)
class UpdateTaskRequested:
    task_id: str
    updates: Mapping[str, Any] = field(default_factory=dict)

@dataclass(frozen=True)
class DeleteTaskRequested:
    task_id: str

@dataclass(frozen=True)
class ToggleCompletionRequested:
    task_id: str

@dataclass(frozen=True)
class AssignTaskRequested:
    task_id: str
    user_id: str

@dataclass(frozen=True)
class FilterRequested:
    filter_type: str
    filter_value: str | None = None

@dataclass(frozen=True)
class SearchRequested:
    query: str = ""

@dataclass(frozen=True)
class RefreshRequested:
    pass

@dataclass(frozen=True)
class AddTimeRequested:
    task_id: str
    hours: float

@dataclass(frozen=True)
class SetDueDateRequested:
    task_id: str
    due_date: datetime | str | None

@dataclass(frozen=True)
class AddTagRequested:
    task_id: str
    tag: str

@dataclass(frozen=True)
class RemoveTagRequested:
    task_id: str
    tag: str

@dataclass(frozen=True)
class AddNoteRequested:
    task_id: str
    content: str
