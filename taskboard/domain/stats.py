from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class TaskStatistics:
    total: int = 0
    completed: int = 0
    pending: int = 0
    overdue: int = 0
    by_priority: dict[str, int] = field(default_factory=dict)
    by_category: dict[str, int] = field(default_factory=dict)

    @property
    def completion_rate(self) -> float:
        """Procent ukończonych zadań (0 dla pustej kolekcji)."""
        if not self.total:
            return 0.0
        return round(self.completed / self.total * 100, 1)


@dataclass(frozen=True)
class UserStatistics:
    total: int = 0
    active: int = 0
    verified: int = 0
    by_role: dict[str, int] = field(default_factory=dict)
    new_users: int = 0
    recently_active: int = 0
