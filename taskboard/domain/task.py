from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from collections.abc import Iterable
from typing import Any, NewType

from taskboard.domain.enums import Priority, TaskStatus
from taskboard.domain.errors import ValidationError

TaskId = NewType("TaskId", str)
UserId = NewType("UserId", str)

_IMMUTABLE = ("id", "user_id", "created_at")


def coerce_datetime(value: Any, field_name: str) -> datetime | None:
    """Zamienia datetime/ISO string na aware datetime w UTC (None przechodzi bez zmian)."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(field_name, f"Niepoprawna data: {value!r}")
    if not isinstance(value, datetime):
        raise ValidationError(field_name, f"Oczekiwano daty, otrzymano {type(value).__name__}")
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _validate_hours(value: Any, field_name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ValidationError(field_name, "Liczba godzin musi byc nieujemna albo pusta")
    return value


def _normalize_tag(tag: Any) -> str:
    if not isinstance(tag, str) or not tag.strip():
        raise ValidationError("tags", "Tag musi byc niepustym tekstem")
    return tag.strip().lower()


def _unique(values: Iterable[str]) -> list[str]:
    seen: list[str] = []
    for v in values:
        if v not in seen:
            seen.append(v)
    return seen


@dataclass(frozen=True)
class Note:
    """Notatka przypięta do zadania."""
    id: str
    content: str
    author: str | None
    created_at: datetime


@dataclass
class Task:
    """
    Model domenowy zadania.

    - `id`, `user_id`, `created_at` są niezmienne (id można nadać tylko raz, gdy jest puste),
    - pozostałe pola zmieniamy wyłącznie mutatorami, które walidują dane i przesuwają `updated_at`,
    - czas "teraz" dostarcza wywołujący (serwis/repozytorium przez port Clock).
    """
    title: str
    user_id: UserId
    created_at: datetime
    id: TaskId | None = None
    description: str = ""
    priority: Priority = Priority.MEDIUM
    category: str = "general"
    tags: list[str] = field(default_factory=list)
    due_date: datetime | None = None
    estimated_hours: float | None = None
    actual_hours: float | None = None
    status: TaskStatus = TaskStatus.PENDING
    completed: bool = False
    assigned_to: UserId | None = None
    notes: list[Note] = field(default_factory=list)
    attachments: list[dict] = field(default_factory=list)
    dependencies: list[TaskId] = field(default_factory=list)
    updated_at: datetime | None = None
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.title, str) or not self.title.strip():
            raise ValidationError("title", "Tytul nie moze byc pusty")
        if self.description is not None and not isinstance(self.description, str):
            raise ValidationError("description", "Opis musi byc tekstem")
        if not isinstance(self.user_id, str) or not self.user_id:
            raise ValidationError("user_id", "Zadanie musi miec wlasciciela")
        created_at = coerce_datetime(self.created_at, "created_at")
        if created_at is None:
            raise ValidationError("created_at", "Brak daty utworzenia")
        object.__setattr__(self, "created_at", created_at)

        self.title = self.title.strip()
        self.description = (self.description or "").strip()
        self.priority = self._validate_priority(self.priority)
        self.category = self._validate_category(self.category)
        self.tags = _unique(_normalize_tag(t) for t in self._validate_list(self.tags, "tags"))
        self.due_date = coerce_datetime(self.due_date, "due_date")
        self.estimated_hours = _validate_hours(self.estimated_hours, "estimated_hours")
        self.actual_hours = _validate_hours(self.actual_hours, "actual_hours")
        self.status = self._validate_status(self.status)
        self.assigned_to = self.assigned_to or self.user_id
        self.notes = list(self.notes)
        self.attachments = list(self.attachments)
        self.dependencies = _unique(self._validate_list(self.dependencies, "dependencies"))
        if self.id is not None and self.id in self.dependencies:
            raise ValidationError("dependencies", "Zadanie nie moze zalezec od samego siebie")
        self.updated_at = coerce_datetime(self.updated_at, "updated_at") or self.created_at
        self.completed_at = coerce_datetime(self.completed_at, "completed_at")

        # completed <=> status == completed
        if self.completed or self.status == TaskStatus.COMPLETED:
            self.completed = True
            self.status = TaskStatus.COMPLETED
            self.completed_at = self.completed_at or self.updated_at
        else:
            self.completed_at = None

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _IMMUTABLE and self.__dict__.get(name) is not None:
            raise AttributeError(f"Pole '{name}' jest niezmienne")
        super().__setattr__(name, value)

    # ---- identity ----

    def assign_id(self, task_id: str) -> None:
        """Nadaje identyfikator (tylko raz, robi to repozytorium przy create)."""
        if not task_id:
            raise ValidationError("id", "Identyfikator nie moze byc pusty")
        if task_id in self.dependencies:
            raise ValidationError("dependencies", "Zadanie nie moze zalezec od samego siebie")
        self.id = TaskId(task_id)

    # ---- derived ----

    def is_overdue(self, now: datetime) -> bool:
        if self.due_date is None or self.completed:
            return False
        return self.due_date < now

    def days_until_due(self, now: datetime) -> int | None:
        if self.due_date is None:
            return None
        return math.ceil((self.due_date - now).total_seconds() / 86400)

    @property
    def progress(self) -> float:
        if self.completed:
            return 100
        if not self.estimated_hours or not self.actual_hours:
            return 0
        return min(100, self.actual_hours / self.estimated_hours * 100)

    # ---- basic fields ----

    def update_title(self, title: str, now: datetime) -> "Task":
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("title", "Tytul nie moze byc pusty")
        self.title = title.strip()
        return self.touch(now)

    def update_description(self, description: str | None, now: datetime) -> "Task":
        if description is not None and not isinstance(description, str):
            raise ValidationError("description", "Opis musi byc tekstem")
        self.description = (description or "").strip()
        return self.touch(now)

    def update_priority(self, priority: Priority | str, now: datetime) -> "Task":
        self.priority = self._validate_priority(priority)
        return self.touch(now)

    def set_category(self, category: str, now: datetime) -> "Task":
        self.category = self._validate_category(category)
        return self.touch(now)

    # ---- tags ----

    def add_tag(self, tag: str, now: datetime) -> "Task":
        normalized = _normalize_tag(tag)
        if normalized not in self.tags:
            self.tags.append(normalized)
            self.touch(now)
        return self

    def remove_tag(self, tag: str, now: datetime) -> "Task":
        normalized = tag.strip().lower()
        if normalized in self.tags:
            self.tags.remove(normalized)
            self.touch(now)
        return self

    def clear_tags(self, now: datetime) -> "Task":
        self.tags = []
        return self.touch(now)

    def set_tags(self, tags: Iterable[str], now: datetime) -> "Task":
        self.tags = _unique(_normalize_tag(t) for t in self._validate_list(tags, "tags"))
        return self.touch(now)

    def has_tag(self, tag: str) -> bool:
        return tag.strip().lower() in self.tags

    # ---- time ----

    def set_due_date(self, due_date: datetime | str | None, now: datetime) -> "Task":
        self.due_date = coerce_datetime(due_date, "due_date")
        return self.touch(now)

    def clear_due_date(self, now: datetime) -> "Task":
        self.due_date = None
        return self.touch(now)

    def set_estimated_hours(self, hours: float | None, now: datetime) -> "Task":
        self.estimated_hours = _validate_hours(hours, "estimated_hours")
        return self.touch(now)

    def set_actual_hours(self, hours: float | None, now: datetime) -> "Task":
        self.actual_hours = _validate_hours(hours, "actual_hours")
        return self.touch(now)

    def add_time_spent(self, hours: float, now: datetime) -> "Task":
        if _validate_hours(hours, "hours") is None:
            raise ValidationError("hours", "Liczba godzin jest wymagana")
        self.actual_hours = (self.actual_hours or 0) + hours
        return self.touch(now)

    # ---- status / completion ----

    def mark_complete(self, now: datetime) -> "Task":
        if self.completed:
            return self
        self.completed = True
        self.status = TaskStatus.COMPLETED
        self.completed_at = now
        return self.touch(now)

    def mark_incomplete(self, now: datetime) -> "Task":
        if not self.completed:
            return self
        self.completed = False
        self.status = TaskStatus.PENDING
        self.completed_at = None
        return self.touch(now)

    def set_status(self, status: TaskStatus | str, now: datetime) -> "Task":
        status = self._validate_status(status)
        if status == TaskStatus.COMPLETED:
            return self.mark_complete(now)
        if self.completed:
            self.mark_incomplete(now)
        self.status = status
        return self.touch(now)

    # ---- assignment ----

    def assign_to(self, user_id: str, now: datetime) -> "Task":
        if not isinstance(user_id, str) or not user_id:
            raise ValidationError("assigned_to", "Wymagany poprawny identyfikator uzytkownika")
        self.assigned_to = UserId(user_id)
        return self.touch(now)

    def reassign_to_owner(self, now: datetime) -> "Task":
        self.assigned_to = self.user_id
        return self.touch(now)

    # ---- notes ----

    def add_note(self, note_id: str, content: str, author: str | None, now: datetime) -> "Task":
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("notes", "Notatka nie moze byc pusta")
        self.notes.append(Note(id=note_id, content=content.strip(), author=author, created_at=now))
        return self.touch(now)

    def remove_note(self, note_id: str, now: datetime) -> "Task":
        kept = [n for n in self.notes if n.id != note_id]
        if len(kept) != len(self.notes):
            self.notes = kept
            self.touch(now)
        return self

    # ---- dependencies ----

    def add_dependency(self, task_id: str, now: datetime) -> "Task":
        if not isinstance(task_id, str) or not task_id:
            raise ValidationError("dependencies", "Identyfikator zadania nie moze byc pusty")
        if task_id == self.id:
            raise ValidationError("dependencies", "Zadanie nie moze zalezec od samego siebie")
        if task_id not in self.dependencies:
            self.dependencies.append(TaskId(task_id))
            self.touch(now)
        return self

    def remove_dependency(self, task_id: str, now: datetime) -> "Task":
        if task_id in self.dependencies:
            self.dependencies.remove(task_id)
            self.touch(now)
        return self

    def set_dependencies(self, task_ids: Iterable[str], now: datetime) -> "Task":
        deps = _unique(self._validate_list(task_ids, "dependencies"))
        if self.id is not None and self.id in deps:
            raise ValidationError("dependencies", "Zadanie nie moze zalezec od samego siebie")
        self.dependencies = [TaskId(d) for d in deps]
        return self.touch(now)

    def has_dependency(self, task_id: str) -> bool:
        return task_id in self.dependencies

    # ---- utility ----

    def touch(self, now: datetime) -> "Task":
        self.updated_at = now
        return self

    def clone(self, new_id: str, now: datetime) -> "Task":
        """Kopia zadania z nowym ID i świeżymi znacznikami czasu."""
        copy = replace(
            self,
            id=None,
            created_at=now,
            updated_at=now,
            tags=list(self.tags),
            notes=list(self.notes),
            attachments=list(self.attachments),
            dependencies=list(self.dependencies),
        )
        copy.assign_id(new_id)
        return copy

    # ---- validation helpers ----

    @staticmethod
    def _validate_priority(priority: Any) -> Priority:
        try:
            return Priority(priority)
        except ValueError:
            allowed = ", ".join(p.value for p in Priority)
            raise ValidationError("priority", f"Niepoprawny priorytet {priority!r}, dozwolone: {allowed}")

    @staticmethod
    def _validate_status(status: Any) -> TaskStatus:
        try:
            return TaskStatus(status)
        except ValueError:
            allowed = ", ".join(s.value for s in TaskStatus)
            raise ValidationError("status", f"Niepoprawny status {status!r}, dozwolone: {allowed}")

    @staticmethod
    def _validate_category(category: Any) -> str:
        if not isinstance(category, str) or not category.strip():
            raise ValidationError("category", "Kategoria musi byc niepustym tekstem")
        return category.strip().lower()

    @staticmethod
    def _validate_list(values: Any, field_name: str) -> list:
        if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            raise ValidationError(field_name, "Oczekiwano listy")
        return list(values)
