from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Union

from taskboard.domain.enums import Priority, TaskStatus, UserRole
from taskboard.domain.errors import ValidationError
from taskboard.domain.task import Task
from taskboard.domain.user import User


### COMMENTS
# ==========================================================
# Operacje modyfikacji encji (domain/patches.py).
# ==========================================================
# - Każda zmiana encji to jawny obiekt "patch" (frozen dataclass) z metodą apply().
# - apply() woła mutator encji, więc walidacja i przesunięcie `updated_at` są w jednym miejscu.
# - Zestaw operacji jest zamknięty (Union): nie ma zapisu "dowolnego pola".
# - task_patches()/user_patches() tłumaczą słownik z żądania (np. z UI) na listę operacji;
#   nieznane pole -> ValidationError("updates", ...).


# ---- Task ----

@dataclass(frozen=True)
class SetTitle:
    title: str
    def apply(self, task: Task, now: datetime) -> None:
        task.update_title(self.title, now)

@dataclass(frozen=True)
class SetDescription:
    description: str | None
    def apply(self, task: Task, now: datetime) -> None:
        task.update_description(self.description, now)

@dataclass(frozen=True)
class SetPriority:
    priority: Priority | str
    def apply(self, task: Task, now: datetime) -> None:
        task.update_priority(self.priority, now)

@dataclass(frozen=True)
class SetCategory:
    category: str
    def apply(self, task: Task, now: datetime) -> None:
        task.set_category(self.category, now)

@dataclass(frozen=True)
class SetTags:
    tags: tuple[str, ...]
    def apply(self, task: Task, now: datetime) -> None:
        task.set_tags(self.tags, now)

@dataclass(frozen=True)
class SetDueDate:
    due_date: datetime | str | None
    def apply(self, task: Task, now: datetime) -> None:
        task.set_due_date(self.due_date, now)

@dataclass(frozen=True)
class SetEstimatedHours:
    hours: float | None
    def apply(self, task: Task, now: datetime) -> None:
        task.set_estimated_hours(self.hours, now)

@dataclass(frozen=True)
class SetActualHours:
    hours: float | None
    def apply(self, task: Task, now: datetime) -> None:
        task.set_actual_hours(self.hours, now)

@dataclass(frozen=True)
class SetStatus:
    status: TaskStatus | str
    def apply(self, task: Task, now: datetime) -> None:
        task.set_status(self.status, now)

@dataclass(frozen=True)
class SetCompleted:
    completed: bool
    def apply(self, task: Task, now: datetime) -> None:
        if self.completed:
            task.mark_complete(now)
        else:
            task.mark_incomplete(now)

@dataclass(frozen=True)
class AssignTo:
    user_id: str
    def apply(self, task: Task, now: datetime) -> None:
        task.assign_to(self.user_id, now)

@dataclass(frozen=True)
class SetDependencies:
    task_ids: tuple[str, ...]
    def apply(self, task: Task, now: datetime) -> None:
        task.set_dependencies(self.task_ids, now)

@dataclass(frozen=True)
class AddNote:
    note_id: str
    content: str
    author: str | None = None
    def apply(self, task: Task, now: datetime) -> None:
        task.add_note(self.note_id, self.content, self.author, now)

@dataclass(frozen=True)
class RemoveNote:
    note_id: str
    def apply(self, task: Task, now: datetime) -> None:
        task.remove_note(self.note_id, now)


TaskPatch = Union[
    SetTitle, SetDescription, SetPriority, SetCategory, SetTags, SetDueDate,
    SetEstimatedHours, SetActualHours, SetStatus, SetCompleted, AssignTo,
    SetDependencies, AddNote, RemoveNote,
]


def _as_tuple(field_name: str, value: Any) -> tuple:
    if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        raise ValidationError(field_name, "Oczekiwano listy")
    return tuple(value)


_TASK_FIELDS: dict[str, Callable[[Any], TaskPatch]] = {
    "title": SetTitle,
    "description": SetDescription,
    "priority": SetPriority,
    "category": SetCategory,
    "tags": lambda v: SetTags(_as_tuple("tags", v)),
    "due_date": SetDueDate,
    "estimated_hours": SetEstimatedHours,
    "actual_hours": SetActualHours,
    "status": SetStatus,
    "completed": lambda v: SetCompleted(bool(v)),
    "assigned_to": AssignTo,
    "dependencies": lambda v: SetDependencies(_as_tuple("dependencies", v)),
}


def task_patches(updates: Mapping[str, Any]) -> list[TaskPatch]:
    """Zamienia słownik {pole: wartość} na listę operacji (kolejność jak w słowniku)."""
    patches: list[TaskPatch] = []
    for name, value in updates.items():
        factory = _TASK_FIELDS.get(name)
        if factory is None:
            raise ValidationError("updates", f"Pole '{name}' nie moze byc zmieniane")
        patches.append(factory(value))
    return patches


# ---- User ----

@dataclass(frozen=True)
class SetUsername:
    username: str
    def apply(self, user: User, now: datetime) -> None:
        user.update_username(self.username, now)

@dataclass(frozen=True)
class SetEmail:
    email: str
    def apply(self, user: User, now: datetime) -> None:
        user.update_email(self.email, now)

@dataclass(frozen=True)
class SetDisplayName:
    display_name: str
    def apply(self, user: User, now: datetime) -> None:
        user.update_display_name(self.display_name, now)

@dataclass(frozen=True)
class SetFirstName:
    first_name: str | None
    def apply(self, user: User, now: datetime) -> None:
        user.update_first_name(self.first_name, now)

@dataclass(frozen=True)
class SetLastName:
    last_name: str | None
    def apply(self, user: User, now: datetime) -> None:
        user.update_last_name(self.last_name, now)

@dataclass(frozen=True)
class SetRole:
    role: UserRole | str
    def apply(self, user: User, now: datetime) -> None:
        user.set_role(self.role, now)

@dataclass(frozen=True)
class SetActive:
    active: bool
    def apply(self, user: User, now: datetime) -> None:
        if self.active:
            user.activate(now)
        else:
            user.deactivate(now)

@dataclass(frozen=True)
class SetVerified:
    verified: bool
    def apply(self, user: User, now: datetime) -> None:
        if self.verified:
            user.verify(now)
        else:
            user.is_verified = False
            user.touch(now)

@dataclass(frozen=True)
class RecordLogin:
    def apply(self, user: User, now: datetime) -> None:
        user.login(now)

@dataclass(frozen=True)
class RecordLogout:
    def apply(self, user: User, now: datetime) -> None:
        user.logout(now)


UserPatch = Union[
    SetUsername, SetEmail, SetDisplayName, SetFirstName, SetLastName,
    SetRole, SetActive, SetVerified, RecordLogin, RecordLogout,
]

_USER_FIELDS: dict[str, Callable[[Any], UserPatch]] = {
    "username": SetUsername,
    "email": SetEmail,
    "display_name": SetDisplayName,
    "first_name": SetFirstName,
    "last_name": SetLastName,
    "role": SetRole,
    "is_active": lambda v: SetActive(bool(v)),
    "is_verified": lambda v: SetVerified(bool(v)),
}


def user_patches(updates: Mapping[str, Any]) -> list[UserPatch]:
    patches: list[UserPatch] = []
    for name, value in updates.items():
        factory = _USER_FIELDS.get(name)
        if factory is None:
            raise ValidationError("updates", f"Pole '{name}' nie moze byc zmieniane")
        patches.append(factory(value))
    return patches
