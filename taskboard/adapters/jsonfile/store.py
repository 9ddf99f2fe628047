from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from taskboard.domain.errors import DomainError, ValidationError

logger = logging.getLogger(__name__)

### COMMENTS
# ==========================================================
# Magazyn plikowy JSON (adapters/jsonfile/store.py).
# ==========================================================
# - Jedna kolekcja = jeden plik `<katalog>/<key>.json` z listą rekordów.
# - Brak pliku -> fallback (pusta kolekcja przy pierwszym uruchomieniu).
# - Zapis atomowy: najpierw `<key>.json.swap` + fsync, potem os.replace.
#   Przerwany zapis zostawia stary plik nienaruszony.
# - OSError -> DomainError, uszkodzony JSON -> ValidationError("record").


class JsonFileStore:
    def __init__(self, directory: Path | str) -> None:
        """Inicjalizuje magazyn w katalogu `directory` (tworzy go, jeśli nie istnieje)."""
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        if not key or not key.replace("_", "").replace("-", "").isalnum():
            raise ValidationError("key", f"Niepoprawny klucz kolekcji: {key!r}")
        return self.directory / f"{key}.json"

    def load(self, key: str, fallback: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Czyta kolekcję `key`; brak pliku oznacza `fallback`."""
        path = self.path_for(key)
        try:
            with path.open("r", encoding="utf-8") as f:
                records = json.load(f)
        except FileNotFoundError:
            return fallback
        except json.JSONDecodeError as e:
            raise ValidationError("record", f"{path.name}: niepoprawny JSON: {e}")
        except OSError as e:
            raise DomainError(str(e))

        if not isinstance(records, list):
            raise ValidationError("record", f"{path.name}: oczekiwano listy rekordów")
        return records

    def save(self, key: str, records: list[dict[str, Any]]) -> None:
        """Nadpisuje kolekcję `key` w sposób atomowy."""
        path = self.path_for(key)
        tmp = path.with_suffix(path.suffix + ".swap")
        try:
            with tmp.open("w", encoding="utf-8", newline="\n") as f:
                json.dump(list(records), f, ensure_ascii=False, indent=2)
                f.write("\n")
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, path)
        except OSError as e:
            logger.error("Failed to write %s: %s", path, e)
            try:
                if tmp.exists():
                    tmp.unlink()
            except OSError:
                logger.warning("Could not remove swap file %s", tmp)
            raise DomainError(str(e))
