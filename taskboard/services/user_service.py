from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from taskboard.domain.errors import ValidationError
from taskboard.domain.events import DomainEvent, ErrorOccurred, UserCreated, UserUpdated
from taskboard.domain.patches import RecordLogout, UserPatch
from taskboard.domain.stats import UserStatistics
from taskboard.domain.user import User
from taskboard.ports.clock import Clock
from taskboard.repositories.user_repo import UserRepository
from taskboard.services.event_bus import EventBus

_CREATE_FIELDS = frozenset(
    {"id", "username", "email", "display_name", "first_name", "last_name", "role", "is_active", "is_verified"}
)


class UserService:
    """Przypadki użycia dla użytkowników (rejestracja, zmiana danych, uproszczone logowanie)."""

    def __init__(
        self,
        users: UserRepository,
        clock: Clock,
        events: EventBus[DomainEvent] | None = None,
    ) -> None:
        self.users = users
        self.clock = clock
        self.events: EventBus[DomainEvent] = events or EventBus("user service")

    def add_listener(self, listener) -> None:
        self.events.subscribe(listener)

    def remove_listener(self, listener) -> None:
        self.events.unsubscribe(listener)

    def _fail(self, operation: str, error: Exception) -> None:
        self.events.publish(ErrorOccurred(operation=operation, error=str(error), timestamp=self.clock.now()))

    def create_user(self, data: Mapping[str, Any]) -> User:
        try:
            unknown = set(data) - _CREATE_FIELDS
            if unknown:
                raise ValidationError("user", f"Nieznane pola: {', '.join(sorted(unknown))}")
            for required in ("username", "email"):
                if not data.get(required):
                    raise ValidationError(required, "Pole jest wymagane")
            user = User(created_at=self.clock.now(), **data)
            saved = self.users.create(user)
        except Exception as e:
            self._fail("create_user", e)
            raise

        self.events.publish(UserCreated(saved))
        return saved

    def get_user_by_id(self, user_id: str) -> User | None:
        return self.users.find_by_id(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        return self.users.find_by_username(username)

    def update_user(self, user_id: str, patches: Sequence[UserPatch]) -> User | None:
        try:
            updated = self.users.update(user_id, patches)
        except Exception as e:
            self._fail("update_user", e)
            raise

        if updated is not None:
            self.events.publish(UserUpdated(updated))
        return updated

    def get_all_users(self) -> list[User]:
        return self.users.find_all()

    def authenticate_user(self, username_or_email: str, password: str | None = None) -> User | None:
        try:
            return self.users.authenticate(username_or_email, password)
        except Exception as e:
            self._fail("authenticate_user", e)
            raise

    def logout_user(self, user_id: str) -> User | None:
        return self.update_user(user_id, [RecordLogout()])

    def get_user_stats(self) -> UserStatistics:
        return self.users.get_statistics()
