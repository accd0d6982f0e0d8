"""
Correlation context for derivations and HTTP requests.

Two context variables travel with every log line:
- request_id: one per HTTP request, or one per derivation outside a request
- record_id:  the {date}_{user_id} key of the support record being derived
"""

import contextvars
import uuid
from typing import Optional

_request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)
_record_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "record_id", default=None
)


def get_request_id() -> Optional[str]:
    return _request_id_var.get()


def get_record_id() -> Optional[str]:
    """Key of the record currently being derived, if any."""
    return _record_id_var.get()


def generate_request_id(prefix: str = "req") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:16]}"


class RequestContext:
    """
    Scopes log lines under a correlation ID and, for derivations, a record key.

        with RequestContext(prefix="drv", record_id=event.record_id):
            logger.info("Support record created")

    Without an explicit request_id an outer ID is kept, so a derivation
    started inside an HTTP request logs under the request's ID.
    """

    def __init__(
        self,
        request_id: Optional[str] = None,
        prefix: str = "req",
        record_id: Optional[str] = None,
    ):
        self.request_id = request_id or get_request_id() or generate_request_id(prefix)
        self.record_id = record_id or get_record_id()
        self._tokens: list[tuple[contextvars.ContextVar, contextvars.Token]] = []

    def __enter__(self) -> "RequestContext":
        self._tokens = [
            (_request_id_var, _request_id_var.set(self.request_id)),
            (_record_id_var, _record_id_var.set(self.record_id)),
        ]
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens = []
