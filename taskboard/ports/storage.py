from typing import Protocol, Any


### COMMENTS
# ==========================================================
# Kontrakt magazynu klucz-wartość (ports/storage.py).
# ==========================================================
# - Magazyn trzyma całe kolekcje rekordów pod nazwanym kluczem ("tasks", "users").
# - Rekordy to zwykłe słowniki (JSON-owalne): bez obiektów domenowych.
# - Repozytorium traktuje magazyn jako źródło prawdy: zawsze czyta i zapisuje CAŁĄ kolekcję.
# - Adaptery mapują błędy techniczne (OSError, błędy bazy) na DomainError.


class KeyValueStore(Protocol):
    """Interfejs trwałego magazynu kolekcji rekordów."""

    def load(self, key: str, fallback: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Zwraca kolekcję zapisaną pod `key` albo `fallback`, gdy jej nie ma.

        Zwracana lista należy do wywołującego: może ją modyfikować
        bez wpływu na stan magazynu.
        """

    def save(self, key: str, records: list[dict[str, Any]]) -> None:
        """Nadpisuje całą kolekcję pod `key`.

        Wyjątki domenowe:
            DomainError: Gdy zapis się nie powiódł (I/O, baza danych).
        """
