from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Generic, Iterable, Protocol, TypeVar

from taskboard.domain.errors import DuplicateError, ValidationError
from taskboard.ports.clock import Clock
from taskboard.ports.id_provider import IdProvider
from taskboard.ports.storage import KeyValueStore
from taskboard.repositories.cache import TtlCache
from taskboard.repositories.query import QueryOptions, run_query

logger = logging.getLogger(__name__)


### COMMENTS
# ==========================================================
# Bazowe repozytorium z cache TTL (repositories/base.py).
# ==========================================================
# - Jedyna ścieżka odczytu i zapisu nazwanej kolekcji w KeyValueStore.
# - create/update/delete: wczytaj CAŁĄ kolekcję -> zmień -> zapisz CAŁĄ kolekcję.
# - find_by_id: najpierw cache (wpis młodszy niż TTL), inaczej przeładowanie kolekcji.
# - find_all: nigdy nie korzysta z cache i go nie wypełnia (cache jest tylko per-id).
# - Brak rekordu to None/False: nie wyjątek.
# - Błędy logujemy raz, tutaj, i rzucamy dalej.
# - Cache jest lokalny dla instancji: zapis przez INNĄ instancję na tym samym magazynie
#   nie unieważnia naszego wpisu: zobaczymy zmianę dopiero po upływie TTL.


class Entity(Protocol):
    id: Any
    def assign_id(self, entity_id: str) -> None: ...
    def touch(self, now: Any) -> Any: ...


class Patch(Protocol):
    def apply(self, entity: Any, now: Any) -> None: ...


E = TypeVar("E", bound=Entity)


class CachedRepository(ABC, Generic[E]):
    """
    Generyczne repozytorium CRUD nad kolekcją `entity_key` magazynu.

    Podklasy definiują: nazwę kolekcji, kodek rekordów, pola filtrów i sortowania,
    walidację nowej encji i dodatkowe klucze unikalne.
    """

    entity_key: str = ""
    entity_name: str = "Entity"
    filter_fields: frozenset[str] = frozenset()
    sort_fields: frozenset[str] = frozenset()

    def __init__(self, store: KeyValueStore, clock: Clock, ids: IdProvider, ttl: timedelta) -> None:
        self.store = store
        self.clock = clock
        self.ids = ids
        self.cache: TtlCache[E] = TtlCache(ttl, clock)

    # ---- hooks ----

    @abstractmethod
    def _encode(self, entity: E) -> dict: ...

    @abstractmethod
    def _decode(self, row: dict) -> E: ...

    @abstractmethod
    def _validate_new(self, entity: E) -> None:
        """Rzuca ValidationError, gdy brakuje pól wymaganych do zapisu."""

    def _check_unique(self, entity: E, rows: list[dict], *, exclude_id: str | None = None) -> None:
        """Dodatkowe klucze unikalne (np. username/email). Domyślnie brak."""

    # ---- CRUD ----

    def create(self, entity: E) -> E:
        """
            Zapisuje nową encję.

            - Nadaje `id` z IdProvider, jeśli encja go nie ma.
            - DuplicateError, gdy `id` (lub inny klucz unikalny) już istnieje w kolekcji.
            - Przy błędzie kolekcja w magazynie pozostaje bez zmian.

            :return: Zapisana encja.
        """
        try:
            if entity is None:
                raise ValidationError(self.entity_key, f"{self.entity_name} jest wymagany")
            self._validate_new(entity)
            if not entity.id:
                entity.assign_id(self.ids.new_id())

            rows = self._load()
            if any(r.get("id") == entity.id for r in rows):
                raise DuplicateError(self.entity_name, "id", str(entity.id))
            self._check_unique(entity, rows)

            rows.append(self._encode(entity))
            self._save(rows)
            self.cache.put(str(entity.id), entity)
            logger.debug("%s created id=%s", self.entity_name, entity.id)
            return entity
        except Exception as e:
            logger.error("Error creating %s: %s", self.entity_name, e)
            raise

    def find_by_id(self, entity_id: str) -> E | None:
        try:
            cached = self.cache.get(entity_id)
            if cached is not None:
                return cached

            row = next((r for r in self._load() if r.get("id") == entity_id), None)
            if row is None:
                return None
            entity = self._decode(row)
            self.cache.put(entity_id, entity)
            return entity
        except Exception as e:
            logger.error("Error finding %s by id %s: %s", self.entity_name, entity_id, e)
            raise

    def find_all(self, options: QueryOptions | None = None) -> list[E]:
        """Zwraca encje po filtrach, sortowaniu i paginacji (bez udziału cache)."""
        try:
            entities = [self._decode(r) for r in self._load()]
            return run_query(
                entities,
                options or QueryOptions(),
                filter_fields=self.filter_fields,
                sort_fields=self.sort_fields,
            )
        except Exception as e:
            logger.error("Error finding all %s: %s", self.entity_name, e)
            raise

    def update(self, entity_id: str, patches: Iterable[Patch]) -> E | None:
        """
            Stosuje operacje `patches` (w kolejności) do istniejącej encji.

            - None, gdy encja nie istnieje (nic nie zapisujemy).
            - Każda operacja waliduje dane przez mutator encji.
            - `updated_at` zawsze przesuwane na "teraz".
        """
        try:
            rows = self._load()
            index = next((i for i, r in enumerate(rows) if r.get("id") == entity_id), None)
            if index is None:
                return None

            entity = self._decode(rows[index])
            now = self.clock.now()
            for patch in patches:
                patch.apply(entity, now)
            entity.touch(now)
            self._check_unique(entity, rows, exclude_id=entity_id)

            rows[index] = self._encode(entity)
            self._save(rows)
            self.cache.put(entity_id, entity)
            logger.debug("%s updated id=%s", self.entity_name, entity_id)
            return entity
        except Exception as e:
            logger.error("Error updating %s %s: %s", self.entity_name, entity_id, e)
            raise

    def delete(self, entity_id: str) -> bool:
        try:
            rows = self._load()
            kept = [r for r in rows if r.get("id") != entity_id]
            if len(kept) == len(rows):
                return False
            self._save(kept)
            self.cache.evict(entity_id)
            logger.debug("%s deleted id=%s", self.entity_name, entity_id)
            return True
        except Exception as e:
            logger.error("Error deleting %s %s: %s", self.entity_name, entity_id, e)
            raise

    def exists(self, entity_id: str) -> bool:
        return self.find_by_id(entity_id) is not None

    def count(self, options: QueryOptions | None = None) -> int:
        return len(self.find_all(options))

    # ---- storage ----

    def _load(self) -> list[dict]:
        return list(self.store.load(self.entity_key, []))

    def _save(self, rows: list[dict]) -> None:
        self.store.save(self.entity_key, rows)
