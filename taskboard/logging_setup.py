from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_HANDLER_FLAG = "_taskboard_handler"


class _ThirdPartyFilter(logging.Filter):
    """Logi spoza pakietu taskboard (np. sqlalchemy) przepuszczamy dopiero od WARNING."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == "taskboard" or record.name.startswith("taskboard."):
            return True
        return record.levelno >= logging.WARNING


def setup_logging(level: str | int = "INFO", log_file: str | Path | None = None) -> None:
    """
    Konfiguruje logowanie aplikacji:
    - handler na stderr (czytelny, z filtrem bibliotek zewnętrznych),
    - opcjonalny handler plikowy (wszystko od DEBUG).

    Wywołanie ponowne podmienia wcześniej dodane handlery (brak duplikatów).
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    for h in list(root.handlers):
        if getattr(h, _HANDLER_FLAG, False):
            root.removeHandler(h)
            h.close()

    fmt = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ThirdPartyFilter())
    setattr(ch, _HANDLER_FLAG, True)
    root.addHandler(ch)

    root_level = level
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        setattr(fh, _HANDLER_FLAG, True)
        root.addHandler(fh)
        root_level = logging.DEBUG

    root.setLevel(root_level)
    logging.captureWarnings(True)
