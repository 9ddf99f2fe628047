from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Literal, Mapping, Sequence, TypeVar

from taskboard.domain.errors import ValidationError

E = TypeVar("E")

SortOrder = Literal["asc", "desc"]


### COMMENTS
# ==========================================================
# Silnik zapytań find_all (repositories/query.py).
# ==========================================================
# Kolejność zawsze ta sama:
#   1. filtry równościowe (AND), wartości None są pomijane,
#   2. sortowanie (stabilne; desc odwraca kolejność),
#   3. paginacja offset/limit.
# Pola "datowe" (nazwa kończy się na _date / _at) porównujemy jako czas, brak daty na początku.
# Teksty porównujemy bez rozróżniania wielkości liter (także wartości enumów, np. priorytet).


@dataclass(frozen=True)
class QueryOptions:
    filters: Mapping[str, Any] = field(default_factory=dict)
    sort_by: str | None = None
    sort_order: SortOrder = "asc"
    limit: int | None = None
    offset: int = 0


def is_date_field(name: str) -> bool:
    return name.endswith("_date") or name.endswith("_at")


def _sort_key(name: str):
    date_like = is_date_field(name)

    def key(entity: Any) -> tuple:
        value = getattr(entity, name)
        if value is None:
            return (0, 0)
        if date_like and isinstance(value, datetime):
            return (1, value.timestamp())
        if isinstance(value, Enum):
            value = value.value
        if isinstance(value, str):
            return (1, value.lower())
        return (1, value)

    return key


def run_query(
    entities: Sequence[E],
    options: QueryOptions,
    *,
    filter_fields: frozenset[str],
    sort_fields: frozenset[str],
) -> list[E]:
    """Filtruje, sortuje i stronicuje listę encji wg `options`."""
    result = list(entities)

    for name, expected in options.filters.items():
        if name not in filter_fields:
            raise ValidationError("filters", f"Nieobsługiwany filtr: {name}")
        if expected is None:
            continue
        result = [e for e in result if getattr(e, name) == expected]

    if options.sort_by:
        if options.sort_by not in sort_fields:
            raise ValidationError("sort_by", f"Nieobsługiwane pole: {options.sort_by}")
        if options.sort_order not in ("asc", "desc"):
            raise ValidationError("sort_order", "Dozwolone: asc, desc")
        result.sort(key=_sort_key(options.sort_by), reverse=options.sort_order == "desc")

    offset = options.offset or 0
    if offset < 0 or (options.limit is not None and options.limit <= 0):
        raise ValidationError("pagination", "Offset >= 0, limit > 0")
    if options.limit is not None:
        return result[offset : offset + options.limit]
    return result[offset:]
