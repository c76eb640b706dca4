"""Process logger that also keeps recent entries in memory."""

from __future__ import annotations

import logging
import threading
from collections import deque
from datetime import datetime

_MAX_ENTRIES = 1000

_log = logging.getLogger("fundamentum")


def _timestamp() -> str:
    text = datetime.now().astimezone().isoformat(timespec="seconds")
    return text[:-6] + "Z" if text.endswith("+00:00") else text


class Logger:
    """Writes log lines and remembers the last thousand of them."""

    def __init__(self, level: str = "") -> None:
        self._debug = level == "debug"
        self._lock = threading.Lock()
        self._entries: deque[str] = deque(maxlen=_MAX_ENTRIES)

    def info(self, msg: str, *args: object) -> None:
        """Record an informational message; ``args`` are %-formatted into ``msg``."""
        self._write("INFO", logging.INFO, msg, args)

    def debug(self, msg: str, *args: object) -> None:
        """Record a debug message, only when the logger was made at debug level."""
        if self._debug:
            self._write("DEBUG", logging.DEBUG, msg, args)

    def error(self, msg: str, *args: object) -> None:
        """Record an error message."""
        self._write("ERROR", logging.ERROR, msg, args)

    def _write(self, label: str, level: int, msg: str, args: tuple[object, ...]) -> None:
        formatted = f"{label}: {msg % args if args else msg}"
        _log.log(level, formatted)
        entry = f"{_timestamp()} {formatted}"
        with self._lock:
            self._entries.append(entry)

    def recent_events(self, limit: int = 0) -> list[str]:
        """Return up to ``limit`` most recent entries, oldest first.

        A non-positive or too large limit returns every kept entry.
        """
        with self._lock:
            entries = list(self._entries)
        if 0 < limit < len(entries):
            return entries[-limit:]
        return entries