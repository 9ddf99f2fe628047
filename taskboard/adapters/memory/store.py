from __future__ import annotations

from copy import deepcopy
from typing import Any

### COMMENTS
# ==========================================================
# Magazyn pamięciowy (adapters/memory/store.py).
# ==========================================================
# - Dla testów i trybu --store memory (brak trwałości między uruchomieniami).
# - Kolekcje trzymane w słowniku `_data: dict[key, list[record]]`.
# - load/save kopiują rekordy: wywołujący nie może zmienić stanu magazynu
#   przez referencję do zwróconej listy.


class InMemoryStore:
    """
        Implementacja KeyValueStore w pamięci.

        :param initial: Opcjonalne kolekcje startowe, np. {"tasks": [...], "users": [...]}.
    """
    def __init__(self, initial: dict[str, list[dict[str, Any]]] | None = None) -> None:
        self._data: dict[str, list[dict[str, Any]]] = {}
        for key, records in (initial or {}).items():
            self._data[key] = deepcopy(list(records))

    def load(self, key: str, fallback: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if key not in self._data:
            return fallback
        return deepcopy(self._data[key])

    def save(self, key: str, records: list[dict[str, Any]]) -> None:
        self._data[key] = deepcopy(list(records))

    def keys(self) -> list[str]:
        return sorted(self._data)
