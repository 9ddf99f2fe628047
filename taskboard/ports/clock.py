from typing import Protocol
from datetime import datetime

class Clock(Protocol):
    """Abstrakcja źródła czasu. Zwraca czas w strefie UTC (aware).
    Repozytoria używają jej też do liczenia wieku wpisów w cache (TTL)."""
    def now(self) -> datetime:
        pass
