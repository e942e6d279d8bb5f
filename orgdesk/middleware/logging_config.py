"""
Structured logging configuration.

- Development / testing: one readable line per record
- Production: one JSON object per record (log aggregator compatible)
- LOG_LEVEL / LOG_FORMAT env variables override the environment defaults

Records emitted while a request is being handled are tagged with its
request id and, once a report has been issued, its reference number, so a
rendering failure deep in a service can be traced back to the HTTP call and
to the document the caller was given.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

# Request-scope attributes: (record attribute, short label for readable output)
SCOPE_FIELDS = (
    ("workspace_id", "ws"),
    ("reference_number", "ref"),
    ("request_id", "req"),
)

# Access-log attributes set by the timing middleware
ACCESS_FIELDS = ("method", "path", "status", "duration_ms", "remote_addr")

NOISY_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine", "asyncio", "PIL", "playwright")


class RequestContextFilter(logging.Filter):
    """Copy request id / reference number from ``flask.g`` onto records.

    Values passed explicitly through ``extra=`` win.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            for attr in ("request_id", "reference_number", "workspace_id"):
                if getattr(record, attr, None) is None:
                    value = g.get(attr)
                    if value is not None:
                        setattr(record, attr, value)
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in ACCESS_FIELDS + tuple(attr for attr, _ in SCOPE_FIELDS):
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.levelno >= logging.WARNING:
            entry["origin"] = f"{record.module}.{record.funcName}:{record.lineno}"
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """``12:00:01 WARNING  orgdesk.services.pdf_service: msg ref=... [830ms]``"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def _level(self, record: logging.LogRecord) -> str:
        label = f"{record.levelname:<8}"
        if not self.use_color:
            return label
        return f"{self.COLORS.get(record.levelname, '')}{label}{self.RESET}"

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        scope = "".join(
            f" {label}={getattr(record, attr)}"
            for attr, label in SCOPE_FIELDS
            if getattr(record, attr, None) not in (None, "")
        )
        duration = getattr(record, "duration_ms", None)
        timing = f" [{duration:.0f}ms]" if duration is not None else ""
        line = f"{ts} {self._level(record)} {record.name}: {record.getMessage()}{scope}{timing}"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _use_json(app) -> bool:
    forced = os.getenv("LOG_FORMAT", "").strip().lower()
    if forced in ("json", "readable"):
        return forced == "json"
    return not app.config.get("DEBUG", False) and not app.config.get("TESTING", False)


def configure_logging(app):
    """
    Install a single stderr handler on the root logger.

    LOG_LEVEL defaults to INFO for JSON output and DEBUG otherwise.
    """
    as_json = _use_json(app)
    level_name = os.getenv("LOG_LEVEL", "INFO" if as_json else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(
        JSONFormatter() if as_json else ReadableFormatter(use_color=sys.stderr.isatty())
    )

    # Cleared first so repeated app creation in tests does not duplicate output
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not app.config.get("TESTING", False):
        app.logger.info("Logging configured: level=%s format=%s",
                        level_name, "json" if as_json else "readable")
