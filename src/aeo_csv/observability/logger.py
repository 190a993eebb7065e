import json
import logging
import os
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Optional

LOGGER_NAME = "aeo_csv"


class _C:
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    CYAN = "\033[36m"
    MAGENTA = "\033[35m"


def _use_color() -> bool:
    return os.getenv("LOG_COLOR", "0") == "1" and sys.stdout.isatty()


def _event_color(event_type: str) -> str:
    et = (event_type or "").upper()
    if et.endswith("_FAILED"):
        return _C.RED
    if et.endswith("_REJECTED"):
        return _C.YELLOW
    if et.startswith("AUDIT"):
        return _C.CYAN
    if et.endswith(("_STARTED", "_COMPLETED", "_GENERATED")):
        return _C.GREEN
    return _C.MAGENTA


def event_level(event_type: str) -> int:
    """
    FAILED -> ERROR, REJECTED -> WARNING, anything else -> INFO.
    """
    et = (event_type or "").upper()
    if et.endswith("_FAILED"):
        return logging.ERROR
    if et.endswith("_REJECTED"):
        return logging.WARNING
    return logging.INFO


class EventFormatter(logging.Formatter):
    """
    Renders records carrying an ``event`` dict as one JSON line,
    stamped with time and level. Plain records format as usual.
    """

    def __init__(self, color: Optional[bool] = None):
        super().__init__("%(message)s")
        self.color = _use_color() if color is None else color

    def format(self, record: logging.LogRecord) -> str:
        event = getattr(record, "event", None)
        if event is None:
            return super().format(record)

        body = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            **event,
        }
        text = json.dumps(body, default=str)
        if self.color:
            return f"{_event_color(record.getMessage())}{text}{_C.RESET}"
        return text


def get_logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(os.getenv("AEO_CSV_LOG_LEVEL", "INFO").upper())
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(EventFormatter())
    logger.addHandler(handler)
    logger.propagate = False
    return logger


logger = get_logger()


def generate_request_id() -> str:
    return str(uuid.uuid4())


def log_event(event_type: str, payload: dict):
    """
    Emit one structured event: {"event_type": ..., **payload}
    at the level its outcome suffix implies.
    """
    logger.log(
        event_level(event_type),
        event_type,
        extra={"event": {"event_type": event_type, **payload}},
    )


class RequestTimer:
    """
    Wall-clock duration of one routed request.
    """
    def __init__(self):
        self.start_time = time.perf_counter()

    def duration(self) -> float:
        return round(time.perf_counter() - self.start_time, 4)
