from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from taskboard.domain.enums import UserRole
from taskboard.domain.errors import ValidationError
from taskboard.domain.task import UserId, coerce_datetime

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NEW_USER_DAYS = 7

_IMMUTABLE = ("id", "created_at")


def normalize_username(username: Any) -> str:
    if not isinstance(username, str) or not username.strip():
        raise ValidationError("username", "Nazwa uzytkownika jest wymagana")
    return username.strip().lower()


def normalize_email(email: Any) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("email", "Email jest wymagany")
    email = email.strip().lower()
    if not EMAIL_RE.match(email):
        raise ValidationError("email", f"Niepoprawny format adresu: {email!r}")
    return email


@dataclass
class User:
    """
    Model domenowy użytkownika.
    `username` i `email` są normalizowane do małych liter: unikalność pilnuje repozytorium.
    """
    username: str
    email: str
    created_at: datetime
    id: UserId | None = None
    display_name: str = ""
    first_name: str = ""
    last_name: str = ""
    role: UserRole = UserRole.USER
    is_active: bool = True
    is_verified: bool = False
    updated_at: datetime | None = None
    last_login_at: datetime | None = None
    last_active_at: datetime | None = None
    login_count: int = 0

    def __post_init__(self) -> None:
        self.username = normalize_username(self.username)
        self.email = normalize_email(self.email)
        created_at = coerce_datetime(self.created_at, "created_at")
        if created_at is None:
            raise ValidationError("created_at", "Brak daty utworzenia")
        object.__setattr__(self, "created_at", created_at)
        self.first_name = (self.first_name or "").strip()
        self.last_name = (self.last_name or "").strip()
        self.display_name = (self.display_name or "").strip() or self.full_name or self.username
        self.role = self._validate_role(self.role)
        self.is_active = bool(self.is_active)
        self.is_verified = bool(self.is_verified)
        self.updated_at = coerce_datetime(self.updated_at, "updated_at") or self.created_at
        self.last_login_at = coerce_datetime(self.last_login_at, "last_login_at")
        self.last_active_at = coerce_datetime(self.last_active_at, "last_active_at")
        if not isinstance(self.login_count, int) or self.login_count < 0:
            raise ValidationError("login_count", "Licznik logowan musi byc nieujemny")

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _IMMUTABLE and self.__dict__.get(name) is not None:
            raise AttributeError(f"Pole '{name}' jest niezmienne")
        super().__setattr__(name, value)

    def assign_id(self, user_id: str) -> None:
        if not user_id:
            raise ValidationError("id", "Identyfikator nie moze byc pusty")
        self.id = UserId(user_id)

    # ---- derived ----

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)

    @property
    def can_manage_users(self) -> bool:
        return self.role in (UserRole.MODERATOR, UserRole.ADMIN, UserRole.SUPER_ADMIN)

    def is_new_user(self, now: datetime) -> bool:
        return now - self.created_at <= timedelta(days=NEW_USER_DAYS)

    # ---- mutators ----

    def update_username(self, username: str, now: datetime) -> "User":
        self.username = normalize_username(username)
        return self.touch(now)

    def update_email(self, email: str, now: datetime) -> "User":
        self.email = normalize_email(email)
        self.is_verified = False
        return self.touch(now)

    def update_display_name(self, display_name: str, now: datetime) -> "User":
        if not isinstance(display_name, str) or not display_name.strip():
            raise ValidationError("display_name", "Nazwa wyswietlana nie moze byc pusta")
        self.display_name = display_name.strip()
        return self.touch(now)

    def update_first_name(self, first_name: str | None, now: datetime) -> "User":
        self.first_name = (first_name or "").strip()
        return self.touch(now)

    def update_last_name(self, last_name: str | None, now: datetime) -> "User":
        self.last_name = (last_name or "").strip()
        return self.touch(now)

    def set_role(self, role: UserRole | str, now: datetime) -> "User":
        self.role = self._validate_role(role)
        return self.touch(now)

    def activate(self, now: datetime) -> "User":
        self.is_active = True
        return self.touch(now)

    def deactivate(self, now: datetime) -> "User":
        self.is_active = False
        return self.touch(now)

    def verify(self, now: datetime) -> "User":
        self.is_verified = True
        return self.touch(now)

    def login(self, now: datetime) -> "User":
        self.last_login_at = now
        self.login_count += 1
        return self.touch_activity(now).touch(now)

    def logout(self, now: datetime) -> "User":
        return self.touch_activity(now).touch(now)

    def touch_activity(self, now: datetime) -> "User":
        self.last_active_at = now
        return self

    def touch(self, now: datetime) -> "User":
        self.updated_at = now
        return self

    @staticmethod
    def _validate_role(role: Any) -> UserRole:
        try:
            return UserRole(role)
        except ValueError:
            allowed = ", ".join(r.value for r in UserRole)
            raise ValidationError("role", f"Niepoprawna rola {role!r}, dozwolone: {allowed}")
