import logging
import uuid
from contextvars import ContextVar
from typing import Optional

LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(request_id)-8s | %(name)s | %(message)s"

_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def generate_request_id() -> str:
    return uuid.uuid4().hex[:8]


def set_request_id(request_id: Optional[str]):
    """Binds a request id to the current context; returns the reset token."""
    return _request_id.set(request_id)


def get_request_id() -> Optional[str]:
    return _request_id.get()


def clear_request_id(token) -> None:
    _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Stamps every record with the request id of the context it was logged in."""
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id() or "-"
        return True


def setup_logging(level: str = "INFO") -> None:
    """
    Configures the root logger with a single stream handler.

    Safe to call more than once (e.g. under uvicorn reload); existing
    handlers are replaced.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
