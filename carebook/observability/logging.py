"""
Log formatters and the HTTP correlation middleware.

Every line of a derivation is stamped with the current request ID and the
record key, so a billing clerk can grep one child's day out of a batch run.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from .context import RequestContext, generate_request_id, get_record_id, get_request_id

# LogRecord attributes that are not caller-supplied `extra` fields
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message"}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line:

    {"timestamp": "2025-06-02T09:00:00.000Z", "level": "INFO",
     "logger": "carebook.attendance.deriver", "message": "Support record created ...",
     "request_id": "drv-3f9c...", "record_id": "2025-06-02_U1", "status": "AfterSchool"}
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, UTC)
        log_obj: dict[str, Any] = {
            "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = get_request_id()
        if request_id:
            log_obj["request_id"] = request_id
        record_id = get_record_id()
        if record_id:
            log_obj["record_id"] = record_id

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS:
                log_obj.setdefault(key, value)

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_obj, default=str, ensure_ascii=False)


class HumanFormatter(logging.Formatter):
    """`2025-06-02 09:00:00 [INFO] carebook.attendance.deriver: [drv-3f9c 2025-06-02_U1] ...`"""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        tags = [t for t in (get_request_id(), get_record_id()) if t]
        prefix = f"[{' '.join(tags)}] " if tags else ""
        line = f"{timestamp} [{record.levelname}] {record.name}: {prefix}{record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str = "INFO", json_format: bool | None = None) -> None:
    """
    Install one stderr handler on the root logger.

    json_format=None picks JSON when stderr is not a terminal (services,
    cron imports) and the human format otherwise.
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else HumanFormatter())
    root_logger.addHandler(handler)


class CorrelationIdMiddleware:
    """
    ASGI middleware: runs each request under an X-Request-ID (incoming or
    generated) and echoes it on the response.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = None
        for key, value in scope.get("headers", []):
            if key.lower() == b"x-request-id":
                request_id = value.decode("utf-8", errors="replace") or None
                break
        request_id = request_id or generate_request_id()

        async def send_with_header(message):
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                headers.append((b"x-request-id", request_id.encode("utf-8")))
                message["headers"] = headers
            await send(message)

        with RequestContext(request_id=request_id):
            await self.app(scope, receive, send_with_header)
