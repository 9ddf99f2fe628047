from __future__ import annotations

import logging
from datetime import timedelta

from taskboard.domain.enums import UserRole
from taskboard.domain.errors import DuplicateError, PermissionDeniedError, ValidationError
from taskboard.domain.patches import RecordLogin
from taskboard.domain.stats import UserStatistics
from taskboard.domain.user import User, normalize_email, normalize_username
from taskboard.ports.clock import Clock
from taskboard.ports.id_provider import IdProvider
from taskboard.ports.storage import KeyValueStore
from taskboard.repositories.base import CachedRepository
from taskboard.repositories.query import QueryOptions
from taskboard.repositories.records import decode_user, encode_user

logger = logging.getLogger(__name__)

USER_CACHE_TTL = timedelta(minutes=10)
RECENTLY_ACTIVE = timedelta(hours=24)


class UserRepository(CachedRepository[User]):
    """Repozytorium użytkowników: CRUD z cache (TTL 10 min), unikalne username i email."""

    entity_key = "users"
    entity_name = "User"
    filter_fields = frozenset({"is_active", "role", "is_verified"})
    sort_fields = frozenset(
        {
            "username", "email", "display_name", "first_name", "last_name", "role",
            "created_at", "updated_at", "last_login_at", "last_active_at", "login_count",
        }
    )

    def __init__(
        self,
        store: KeyValueStore,
        clock: Clock,
        ids: IdProvider,
        ttl: timedelta = USER_CACHE_TTL,
    ) -> None:
        super().__init__(store, clock, ids, ttl)

    def _encode(self, entity: User) -> dict:
        return encode_user(entity)

    def _decode(self, row: dict) -> User:
        return decode_user(row)

    def _validate_new(self, entity: User) -> None:
        normalize_username(entity.username)
        normalize_email(entity.email)

    def _check_unique(self, entity: User, rows: list[dict], *, exclude_id: str | None = None) -> None:
        for r in rows:
            if r.get("id") == exclude_id:
                continue
            if r.get("username") == entity.username:
                raise DuplicateError(self.entity_name, "username", entity.username)
            if r.get("email") == entity.email:
                raise DuplicateError(self.entity_name, "email", entity.email)

    # ---- lookups by unique keys ----

    def find_by_username(self, username: str) -> User | None:
        username = username.strip().lower()
        row = next((r for r in self._load() if r.get("username") == username), None)
        return self._decode(row) if row else None

    def find_by_email(self, email: str) -> User | None:
        email = email.strip().lower()
        row = next((r for r in self._load() if r.get("email") == email), None)
        return self._decode(row) if row else None

    def is_username_available(self, username: str) -> bool:
        return self.find_by_username(username) is None

    def is_email_available(self, email: str) -> bool:
        return self.find_by_email(email) is None

    # ---- specialized queries ----

    def find_active_users(self) -> list[User]:
        return self.find_all(QueryOptions(filters={"is_active": True}))

    def find_by_role(self, role: UserRole | str) -> list[User]:
        return self.find_all(QueryOptions(filters={"role": role}))

    def find_verified_users(self) -> list[User]:
        return self.find_all(QueryOptions(filters={"is_verified": True}))

    def search(self, query: str) -> list[User]:
        term = query.strip().lower()
        return [
            u for u in self.find_all()
            if term in u.username
            or term in u.display_name.lower()
            or term in u.first_name.lower()
            or term in u.last_name.lower()
            or term in u.email
        ]

    def authenticate(self, username_or_email: str, password: str | None = None) -> User | None:
        """
        Uproszczone logowanie: hasło NIE jest weryfikowane.

        - None, gdy użytkownik nie istnieje (po username albo email).
        - PermissionDeniedError, gdy konto jest nieaktywne.
        - Inaczej zapisuje logowanie (last_login_at, login_count) i zwraca użytkownika.
        """
        try:
            user = self.find_by_username(username_or_email) or self.find_by_email(username_or_email)
            if user is None:
                return None
            if not user.is_active:
                raise PermissionDeniedError("login", user.id)
            return self.update(user.id, [RecordLogin()])
        except Exception as e:
            logger.error("Error authenticating user %s: %s", username_or_email, e)
            raise

    # ---- statistics ----

    def get_statistics(self) -> UserStatistics:
        users = self.find_all()
        now = self.clock.now()
        by_role = {r.value: 0 for r in UserRole}
        for u in users:
            by_role[u.role.value] += 1
        return UserStatistics(
            total=len(users),
            active=sum(1 for u in users if u.is_active),
            verified=sum(1 for u in users if u.is_verified),
            by_role=by_role,
            new_users=sum(1 for u in users if u.is_new_user(now)),
            recently_active=sum(
                1 for u in users
                if u.last_active_at is not None and u.last_active_at > now - RECENTLY_ACTIVE
            ),
        )

    def get_recent_users(self, days: int = 7) -> list[User]:
        """Użytkownicy zarejestrowani w ostatnich `days` dniach, najnowsi pierwsi."""
        if days < 0:
            raise ValidationError("days", "Liczba dni musi byc nieujemna")
        cutoff = self.clock.now() - timedelta(days=days)
        recent = [u for u in self.find_all() if u.created_at > cutoff]
        return sorted(recent, key=lambda u: u.created_at, reverse=True)

    def get_users_by_activity(self, days: int = 30) -> tuple[list[User], list[User]]:
        """Dzieli użytkowników na (aktywni, nieaktywni) względem ostatnich `days` dni."""
        cutoff = self.clock.now() - timedelta(days=days)
        active: list[User] = []
        inactive: list[User] = []
        for u in self.find_all():
            if u.last_active_at is not None and u.last_active_at > cutoff:
                active.append(u)
            else:
                inactive.append(u)
        return active, inactive
