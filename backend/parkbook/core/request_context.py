"""Per-request correlation id, shared by logging and problem responses."""

from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
import logging
from typing import Iterator, Optional
import uuid

REQUEST_ID_HEADER = "X-Request-ID"

_current_request_id: ContextVar[Optional[str]] = ContextVar("parkbook_request_id", default=None)


def new_request_id() -> str:
    return uuid.uuid4().hex


@contextmanager
def bound_request_id(request_id: Optional[str] = None) -> Iterator[str]:
    """Bind ``request_id`` (or a fresh one) for the duration of the block."""
    value = request_id or new_request_id()
    token = _current_request_id.set(value)
    try:
        yield value
    finally:
        _current_request_id.reset(token)


def get_request_id(default: Optional[str] = None) -> Optional[str]:
    return _current_request_id.get() or default


class RequestIdFilter(logging.Filter):
    """Stamp every record with the current request id (``-`` outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = get_request_id("-")
        return True


def attach_request_id_filter(logger: Optional[logging.Logger] = None) -> None:
    target = logger or logging.getLogger()
    for handler in target.handlers:
        if not any(isinstance(f, RequestIdFilter) for f in handler.filters):
            handler.addFilter(RequestIdFilter())
