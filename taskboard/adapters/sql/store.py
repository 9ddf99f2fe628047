from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import sqlalchemy as db
from sqlalchemy.exc import SQLAlchemyError

from taskboard.domain.errors import DomainError, ValidationError


class SqlStore:
    def __init__(self, url: str | Path) -> None:
        """
        url: np. 'sqlite:///.taskboard/taskboard.db' lub Path do pliku (zostanie zrobiony URL)
        """
        if isinstance(url, Path):
            url.parent.mkdir(parents=True, exist_ok=True)
            db_url = f"sqlite:///{url}"
        else:
            db_url = url

        self.engine = db.create_engine(db_url, future=True)
        self.meta = db.MetaData()

        # jedna tabela na wszystkie kolekcje: klucz -> lista rekordów jako JSON
        self.collections = db.Table(
            "collections",
            self.meta,
            db.Column("key", db.String, primary_key=True),
            db.Column("payload", db.Text, nullable=False),
        )

        # utwórz tabelę jeśli nie istnieje
        try:
            self.meta.create_all(self.engine)
        except SQLAlchemyError as e:
            raise DomainError(str(e))

    def load(self, key: str, fallback: list[dict[str, Any]]) -> list[dict[str, Any]]:
        stmt = db.select(self.collections.c.payload).where(self.collections.c.key == key)
        try:
            with self.engine.connect() as conn:
                payload = conn.execute(stmt).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DomainError(str(e))

        if payload is None:
            return fallback
        try:
            records = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValidationError("record", f"{key}: niepoprawny JSON: {e}")
        if not isinstance(records, list):
            raise ValidationError("record", f"{key}: oczekiwano listy rekordów")
        return records

    def save(self, key: str, records: list[dict[str, Any]]) -> None:
        payload = json.dumps(list(records), ensure_ascii=False)
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    db.update(self.collections)
                    .where(self.collections.c.key == key)
                    .values(payload=payload)
                )
                if result.rowcount == 0:
                    conn.execute(db.insert(self.collections).values(key=key, payload=payload))
        except SQLAlchemyError as e:
            raise DomainError(str(e))

    def keys(self) -> list[str]:
        stmt = db.select(self.collections.c.key).order_by(self.collections.c.key.asc())
        try:
            with self.engine.connect() as conn:
                return list(conn.execute(stmt).scalars().all())
        except SQLAlchemyError as e:
            raise DomainError(str(e))
