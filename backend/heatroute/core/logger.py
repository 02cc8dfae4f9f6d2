"""
Logging Setup for Heat Stress Routing

One call to `setup_logging()` routes every `logging.getLogger(__name__)` logger
of the package to the console and to a rotating debug file in the data
directory.

Place Context:
--------------
A nearby search evaluates its candidate places concurrently. To keep the
per-place finder output apart, the worker evaluating a place stores the place
id in a context variable; every record emitted meanwhile carries a
`[PLACE:id]` tag. The variable is per thread, so parallel workers do not see
each other's place.

    set_place_context(place.id)
    try:
        ...
    finally:
        set_place_context(None)

Example line:
    2015-08-01 14:00:10 [DEBUG] [heatroute.processing.optimal_time] [PLACE:2503618131] Optimal time ...
"""

import logging
import logging.handlers
import contextvars
from typing import Optional

from heatroute.core.config import LOG_FILE

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(place)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_current_place: contextvars.ContextVar[Optional[int]] = contextvars.ContextVar("current_place", default=None)


def set_place_context(place_id: Optional[int]) -> None:
    """Tags the records of the current thread with `place_id`; None removes the tag."""
    _current_place.set(place_id)


def get_place_context() -> Optional[int]:
    return _current_place.get()


class ContextFilter(logging.Filter):
    """Adds the `place` attribute used by `LOG_FORMAT`."""

    def filter(self, record: logging.LogRecord) -> bool:
        place_id = _current_place.get()
        record.place = "" if place_id is None else f"[PLACE:{place_id}]"
        return True


class SafeFormatter(logging.Formatter):
    """
    Formatter that tolerates records which did not pass a `ContextFilter`,
    e.g. records of third-party handlers sharing the formatter.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.__dict__.setdefault("place", "")
        return super().format(record)


def _attach(handler: logging.Handler, level: int, formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    return handler


def setup_logging(
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5
) -> None:
    """
    Replaces the root handlers with a console and a rotating file handler.

    Args:
        console_level (int): Minimum level printed to the console.
        file_level (int): Minimum level written to `LOG_FILE`.
        max_bytes (int): File size that triggers a rotation.
        backup_count (int): Rotated files kept next to `LOG_FILE`.
    """
    formatter = SafeFormatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [
        _attach(logging.StreamHandler(), console_level, formatter),
        _attach(
            logging.handlers.RotatingFileHandler(
                LOG_FILE, mode="w", maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            ),
            file_level,
            formatter
        ),
    ]

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    root.handlers = handlers
