from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from dotenv import find_dotenv, load_dotenv

from taskboard.domain.errors import ValidationError

### COMMENTS
# ==========================================================
# Ustawienia aplikacji (config.py).
# ==========================================================
# - Jedno źródło ustawień: zmienne środowiskowe z prefiksem TASKBOARD_ (+ opcjonalny .env).
# - .env nie nadpisuje zmiennych już ustawionych w środowisku (override=False).
# - Niepoprawne liczby -> wartość domyślna; nieznany magazyn -> ValidationError.
# - Opcje CLI mają pierwszeństwo: with_overrides() pomija wartości None.

ENV_PREFIX = "TASKBOARD"
STORES = ("memory", "json", "sql")


def _k(suffix: str) -> str:
    return f"{ENV_PREFIX}_{suffix}"


def _env(env: Mapping[str, str], name: str, default: str | None = None) -> str | None:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip()


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _env(env, name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class Settings:
    store: str = "memory"
    data_dir: Path = Path(".taskboard")
    db_url: str | None = None
    task_cache_ttl: int = 300
    user_cache_ttl: int = 600
    log_level: str = "INFO"
    log_file: Path | None = None

    def __post_init__(self) -> None:
        if self.store not in STORES:
            raise ValidationError("store", f"Nieznany magazyn {self.store!r}, dostępne: {', '.join(STORES)}")

    @property
    def resolved_db_url(self) -> str:
        """URL bazy dla magazynu SQL (domyślnie plik SQLite w katalogu danych)."""
        return self.db_url or f"sqlite:///{self.data_dir / 'taskboard.db'}"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None, dotenv_path: str | Path | None = None) -> "Settings":
        """
            Buduje ustawienia ze zmiennych środowiskowych.

            :param env: Mapa zmiennych (domyślnie os.environ po wczytaniu .env).
            :param dotenv_path: Ścieżka do pliku .env (domyślnie szukany od bieżącego katalogu w górę).
            :return: Settings
        """
        if env is None:
            load_dotenv(dotenv_path or find_dotenv(usecwd=True), override=False)
            env = os.environ

        data_dir = Path(_env(env, _k("DATA_DIR"), ".taskboard")).expanduser()
        log_file = _env(env, _k("LOG_FILE"))
        return cls(
            store=(_env(env, _k("STORE"), "memory") or "memory").lower(),
            data_dir=data_dir,
            db_url=_env(env, _k("DB_URL")),
            task_cache_ttl=_env_int(env, _k("TASK_CACHE_TTL"), 300),
            user_cache_ttl=_env_int(env, _k("USER_CACHE_TTL"), 600),
            log_level=(_env(env, _k("LOG_LEVEL"), "INFO") or "INFO").upper(),
            log_file=Path(log_file).expanduser() if log_file else None,
        )

    def with_overrides(self, **overrides: Any) -> "Settings":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})
