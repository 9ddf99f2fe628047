import uuid

from taskboard.ports.id_provider import IdProvider


class UuidIdProvider(IdProvider):
    """Generuje identyfikatory UUID4, opcjonalnie z prefiksem (np. "task_")."""

    def __init__(self, prefix: str = "") -> None:
        self.prefix = prefix

    def new_id(self) -> str:
        return f"{self.prefix}{uuid.uuid4()}"
